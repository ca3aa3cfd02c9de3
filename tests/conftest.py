from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from backend.app.dependencies import reset_cached_dependencies
from backend.app.logging_config import ROOT_LOGGER_NAME, TELEMETRY_LOGGER_NAME
from backend.app.main import create_app
from backend.app.repositories.award_repository import (
    AwardCategory,
    AwardCeremony,
    AwardOrganization,
    AwardRepository,
)
from backend.app.repositories.database import Database
from backend.app.services.tmdb_metadata_service import TmdbMovieMetadata, TmdbNotConfiguredError

NominationSpec = tuple[str | None, str | None, bool | None, object]
SectionSpec = tuple[str | None, str | None, list[NominationSpec]]
EventHtmlFactory = Callable[[list[SectionSpec]], str]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    monkeypatch.chdir(tmp_path)
    for name in (
        "AWARDS_CATALOG_DATA_DIR",
        "AWARDS_CATALOG_DB_PATH",
        "AWARDS_CATALOG_LOG_DIR",
        "AWARDS_CATALOG_TMDB_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWARDS_CATALOG_TELEMETRY_SINK", "none")
    yield

    # Handlers installed by app or script logging point at per-test files and streams.
    for logger_name in (ROOT_LOGGER_NAME, TELEMETRY_LOGGER_NAME):
        logger = logging.getLogger(logger_name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "catalog.db")
    db.initialize()
    return db


@dataclass(frozen=True)
class SeededAwards:
    organization: AwardOrganization
    ceremony: AwardCeremony
    best_picture: AwardCategory
    film_editing: AwardCategory


@pytest.fixture
def seeded_awards(database: Database) -> SeededAwards:
    repository = AwardRepository(database)
    organization = repository.create_organization(
        name="Academy of Motion Picture Arts and Sciences",
        short_name="AMPAS",
        country="US",
    )
    ceremony = repository.create_ceremony(
        organization_uid=organization.uid,
        year=2024,
        ceremony_number=96,
        imdb_event_url="https://www.imdb.com/event/ev0000003/2024/1",
    )
    best_picture = repository.create_category(organization_uid=organization.uid, name="Best Picture")
    film_editing = repository.create_category(
        organization_uid=organization.uid,
        name="Best Film Editing",
    )
    return SeededAwards(
        organization=organization,
        ceremony=ceremony,
        best_picture=best_picture,
        film_editing=film_editing,
    )


def _nomination_node(entry: NominationSpec) -> dict[str, Any]:
    imdb_id, title, is_winner, notes = entry
    title_node: dict[str, Any] = {}
    if imdb_id is not None:
        title_node["id"] = imdb_id
    if title is not None:
        title_node["titleText"] = {"text": title}
        title_node["originalTitleText"] = {"text": title}
    return {
        "node": {
            "isWinner": is_winner,
            "notes": notes,
            "awardedEntities": {"awardTitles": [{"title": title_node}]},
        }
    }


def _build_event_html(sections: list[SectionSpec]) -> str:
    awards: list[dict[str, Any]] = []
    for award_text, category_text, nominations in sections:
        category_node: dict[str, Any] = {
            "nominations": {"edges": [_nomination_node(item) for item in nominations]},
        }
        if category_text is not None:
            category_node["category"] = {"text": category_text}
        awards.append(
            {
                "text": award_text,
                "nominationCategories": {"edges": [{"node": category_node}]},
            }
        )
    payload = {"props": {"pageProps": {"edition": {"awards": awards}}}}
    return (
        "<html><head><title>Event</title></head><body>"
        '<script id="__NEXT_DATA__" type="application/json">'
        f"{json.dumps(payload)}"
        "</script></body></html>"
    )


@pytest.fixture
def event_html() -> EventHtmlFactory:
    return _build_event_html


class FakeEventFetcher:
    def __init__(self, html: str) -> None:
        self.html = html
        self.requested_urls: list[str] = []

    def fetch_event_html(self, url: str) -> str:
        self.requested_urls.append(url)
        return self.html


class FakeMetadataProvider:
    def __init__(
        self,
        movies: dict[str, TmdbMovieMetadata] | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self.movies = movies or {}
        self.error = error
        self.calls: list[str] = []

    def find_movie_by_imdb_id(self, imdb_id: str) -> TmdbMovieMetadata:
        self.calls.append(imdb_id)
        if self.error is not None:
            raise self.error
        metadata = self.movies.get(imdb_id)
        if metadata is None:
            raise TmdbNotConfiguredError("TMDB API key not configured")
        return metadata


@pytest.fixture
def fake_fetcher_factory() -> Callable[[str], FakeEventFetcher]:
    return FakeEventFetcher


@pytest.fixture
def fake_provider_factory() -> Callable[..., FakeMetadataProvider]:
    return FakeMetadataProvider


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    data_dir = tmp_path / "runtime-data"
    data_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("AWARDS_CATALOG_DATA_DIR", str(data_dir))
    monkeypatch.setenv("AWARDS_CATALOG_TELEMETRY_SINK", "none")
    reset_cached_dependencies()

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    reset_cached_dependencies()
