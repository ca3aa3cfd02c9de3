from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

import pytest

from backend.app.repositories.award_repository import AwardRepository
from backend.app.repositories.database import Database
from backend.app.repositories.movie_repository import DuplicateMovieError, MovieRepository
from backend.app.repositories.nomination_repository import NominationDraft, NominationRepository


def test_database_initialize_migrates_legacy_movies_table(tmp_path: Path) -> None:
    db_path = tmp_path / "legacy.db"
    conn = sqlite3.connect(db_path)
    conn.execute(
        """
        CREATE TABLE movies (
            uid TEXT PRIMARY KEY,
            original_language TEXT NOT NULL DEFAULT 'en',
            year INTEGER NULL,
            imdb_id TEXT NULL UNIQUE,
            tmdb_id INTEGER NULL UNIQUE,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    conn.commit()
    conn.close()

    db = Database(db_path)
    db.initialize()
    db.initialize()

    with db.connection() as check:
        columns = {str(row["name"]) for row in check.execute("PRAGMA table_info(movies)")}
    assert "release_date" in columns
    outcome = MovieRepository(db).create_or_get_by_imdb_id(
        imdb_id="tt0000001",
        release_date="2020-01-01",
    )
    assert outcome.movie.release_date == "2020-01-01"


def test_award_repository_round_trip(database: Database) -> None:
    awards = AwardRepository(database)
    organization = awards.create_organization(name=" Cannes Film Festival ", short_name="Cannes")
    category = awards.create_category(
        organization_uid=organization.uid,
        name="Palme d'Or",
        name_local="Palme d’Or",
        short_name=" ",
    )
    ceremony = awards.create_ceremony(
        organization_uid=organization.uid,
        year=2023,
        ceremony_number=76,
        imdb_event_url="https://www.imdb.com/event/ev0000147/2023/1/",
    )

    assert organization.uid.startswith("org_")
    assert awards.get_organization(organization.uid) == organization
    assert organization.name == "Cannes Film Festival"
    assert awards.get_category(category.uid) == category
    assert category.short_name is None
    assert awards.get_ceremony(ceremony.uid) == ceremony
    assert awards.list_categories(organization.uid) == [category]
    assert awards.get_ceremony("cer_missing") is None


def test_award_repository_rejects_blank_category_name(database: Database) -> None:
    awards = AwardRepository(database)
    organization = awards.create_organization(name="Berlinale")

    with pytest.raises(ValueError, match="Category name is required"):
        awards.create_category(organization_uid=organization.uid, name="   ")
    assert awards.list_categories(organization.uid) == []


def test_award_repository_rejects_duplicate_ceremony_year(database: Database) -> None:
    awards = AwardRepository(database)
    organization = awards.create_organization(name="Berlinale")
    awards.create_ceremony(organization_uid=organization.uid, year=2024)

    with pytest.raises(sqlite3.IntegrityError):
        awards.create_ceremony(organization_uid=organization.uid, year=2024)


def test_create_or_get_by_imdb_id_returns_existing_row(database: Database) -> None:
    movies = MovieRepository(database)

    first = movies.create_or_get_by_imdb_id(imdb_id="tt0111161", tmdb_id=278, year=1994)
    second = movies.create_or_get_by_imdb_id(imdb_id="tt0111161", tmdb_id=999)

    assert first.created is True
    assert second.created is False
    assert second.movie == first.movie
    assert movies.get_by_tmdb_id(278) == first.movie
    assert movies.count_movies() == 1


def test_create_or_get_by_imdb_id_raises_on_foreign_tmdb_conflict(database: Database) -> None:
    movies = MovieRepository(database)
    movies.create_or_get_by_imdb_id(imdb_id="tt0111161", tmdb_id=278)

    with pytest.raises(DuplicateMovieError):
        movies.create_or_get_by_imdb_id(imdb_id="tt0068646", tmdb_id=278)


def test_translations_and_posters_are_not_duplicated(database: Database) -> None:
    movies = MovieRepository(database)
    movie = movies.create_or_get_by_imdb_id(imdb_id="tt0245429").movie

    assert movies.add_title_translation(
        movie_uid=movie.uid, language_code="ja", content="千と千尋の神隠し", is_default=False
    )
    assert not movies.add_title_translation(
        movie_uid=movie.uid, language_code="ja", content="千と千尋の神隠し", is_default=True
    )
    assert movies.add_poster_url(
        movie_uid=movie.uid,
        url="https://image.tmdb.org/t/p/w500/a.jpg",
        width=500,
        height=750,
        language_code="en",
        source_type="tmdb",
    )
    assert not movies.add_poster_url(
        movie_uid=movie.uid,
        url="https://image.tmdb.org/t/p/w500/a.jpg",
        width=500,
        height=750,
        language_code="en",
        source_type="tmdb",
    )

    translations = movies.list_title_translations(movie.uid)
    assert [(item.language_code, item.is_default) for item in translations] == [("ja", True)]
    assert len(movies.list_poster_urls(movie.uid)) == 1


def test_replace_for_category_replaces_whole_set(database: Database, seeded_awards: Any) -> None:
    movies = MovieRepository(database)
    first = movies.create_or_get_by_imdb_id(imdb_id="tt0000001").movie
    second = movies.create_or_get_by_imdb_id(imdb_id="tt0000002").movie
    nominations = NominationRepository(database)
    scope = {
        "ceremony_uid": seeded_awards.ceremony.uid,
        "category_uid": seeded_awards.best_picture.uid,
    }

    inserted = nominations.replace_for_category(
        **scope,
        drafts=[
            NominationDraft(movie_uid=first.uid, is_winner=True, special_mention=" producers "),
            NominationDraft(movie_uid=second.uid, is_winner=False, special_mention=None),
            NominationDraft(movie_uid=first.uid, is_winner=False, special_mention="dup"),
        ],
    )
    assert inserted == 2
    rows = nominations.list_for_category(**scope)
    assert [(row.imdb_id, row.is_winner, row.special_mention) for row in rows] == [
        ("tt0000001", True, "producers"),
        ("tt0000002", False, None),
    ]

    nominations.replace_for_category(
        **scope,
        drafts=[NominationDraft(movie_uid=second.uid, is_winner=True, special_mention=None)],
    )
    rows = nominations.list_for_category(**scope)
    assert [(row.imdb_id, row.is_winner) for row in rows] == [("tt0000002", True)]
    assert nominations.count_for_ceremony(seeded_awards.ceremony.uid) == 1


def test_replace_for_category_rolls_back_on_failure(database: Database, seeded_awards: Any) -> None:
    movie = MovieRepository(database).create_or_get_by_imdb_id(imdb_id="tt0000001").movie
    nominations = NominationRepository(database)
    scope = {
        "ceremony_uid": seeded_awards.ceremony.uid,
        "category_uid": seeded_awards.best_picture.uid,
    }
    nominations.replace_for_category(
        **scope,
        drafts=[NominationDraft(movie_uid=movie.uid, is_winner=True, special_mention=None)],
    )

    with pytest.raises(sqlite3.IntegrityError):
        nominations.replace_for_category(
            **scope,
            drafts=[NominationDraft(movie_uid="movie_missing", is_winner=False, special_mention=None)],
        )

    rows = nominations.list_for_category(**scope)
    assert [row.movie_uid for row in rows] == [movie.uid]
