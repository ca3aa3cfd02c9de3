from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Protocol, cast
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import urlopen

TMDB_POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"


class TmdbMetadataError(Exception):
    pass


class TmdbNotConfiguredError(TmdbMetadataError):
    pass


class TmdbMovieNotFoundError(TmdbMetadataError):
    pass


class TmdbApiError(TmdbMetadataError):
    def __init__(self, message: str, *, status_code: int | None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class TmdbTitleTranslation:
    language_code: str
    title: str


@dataclass(frozen=True)
class TmdbMovieMetadata:
    tmdb_id: int
    title: str | None
    original_title: str | None
    original_language: str | None
    release_date: str | None
    year: int | None
    poster_path: str | None
    translations: list[TmdbTitleTranslation]

    @property
    def poster_url(self) -> str | None:
        if self.poster_path is None:
            return None
        return f"{TMDB_POSTER_BASE_URL}{self.poster_path}"


class MovieMetadataProvider(Protocol):
    def find_movie_by_imdb_id(self, imdb_id: str) -> TmdbMovieMetadata:
        ...


class TmdbMetadataService:
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.themoviedb.org/3",
        http_timeout_seconds: float = 10.0,
    ) -> None:
        self._api_key = _normalize_optional_text(api_key)
        self._base_url = base_url.rstrip("/")
        self._http_timeout_seconds = max(0.5, http_timeout_seconds)

    def find_movie_by_imdb_id(self, imdb_id: str) -> TmdbMovieMetadata:
        if self._api_key is None:
            raise TmdbNotConfiguredError("TMDB API key not configured")

        find_params = {"api_key": self._api_key, "external_source": "imdb_id"}
        find_url = f"{self._base_url}/find/{imdb_id}?{urlencode(find_params)}"
        find_payload = _request_json(find_url, timeout_seconds=self._http_timeout_seconds)
        tmdb_id = _first_movie_result_id(find_payload)
        if tmdb_id is None:
            raise TmdbMovieNotFoundError("TMDB data not found for IMDb ID")

        detail_params = {"api_key": self._api_key, "append_to_response": "translations"}
        detail_url = f"{self._base_url}/movie/{tmdb_id}?{urlencode(detail_params)}"
        detail_payload = _request_json(detail_url, timeout_seconds=self._http_timeout_seconds)
        return _metadata_from_detail(detail_payload, tmdb_id=tmdb_id)


def _request_json(url: str, *, timeout_seconds: float) -> dict[str, Any]:
    try:
        with urlopen(url, timeout=timeout_seconds) as response:
            raw = response.read().decode("utf-8")
    except HTTPError as exc:
        raise TmdbApiError(f"TMDB API error: {exc.reason}", status_code=int(exc.code)) from exc
    except (URLError, TimeoutError, OSError) as exc:
        raise TmdbApiError(f"TMDB API error: {type(exc).__name__}", status_code=None) from exc

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TmdbApiError("TMDB API error: invalid JSON response", status_code=None) from exc
    if not isinstance(parsed, dict):
        raise TmdbApiError("TMDB API error: unexpected response shape", status_code=None)

    raw_dict = cast(dict[object, object], parsed)
    payload: dict[str, Any] = {}
    for key, value in raw_dict.items():
        if isinstance(key, str):
            payload[key] = value
    return payload


def _first_movie_result_id(payload: dict[str, Any]) -> int | None:
    results_raw = payload.get("movie_results")
    if not isinstance(results_raw, list):
        return None
    for result in cast(list[object], results_raw):
        if not isinstance(result, dict):
            continue
        item = cast(dict[object, object], result)
        tmdb_id = _as_int(item.get("id"))
        if tmdb_id is not None:
            return tmdb_id
    return None


def _metadata_from_detail(payload: dict[str, Any], *, tmdb_id: int) -> TmdbMovieMetadata:
    release_date = _as_str(payload.get("release_date"))
    return TmdbMovieMetadata(
        tmdb_id=_as_int(payload.get("id")) or tmdb_id,
        title=_as_str(payload.get("title")),
        original_title=_as_str(payload.get("original_title")),
        original_language=_as_str(payload.get("original_language")),
        release_date=release_date,
        year=_parse_year(release_date),
        poster_path=_as_str(payload.get("poster_path")),
        translations=_tmdb_title_translations(payload),
    )


def _tmdb_title_translations(payload: dict[str, Any]) -> list[TmdbTitleTranslation]:
    translations_raw = payload.get("translations")
    if not isinstance(translations_raw, dict):
        return []
    entries_raw = cast(dict[object, object], translations_raw).get("translations")
    if not isinstance(entries_raw, list):
        return []

    translations: list[TmdbTitleTranslation] = []
    seen: set[str] = set()
    for entry in cast(list[object], entries_raw):
        if not isinstance(entry, dict):
            continue
        entry_dict = cast(dict[object, object], entry)
        language_code = _as_str(entry_dict.get("iso_639_1"))
        data_raw = entry_dict.get("data")
        title = (
            _as_str(cast(dict[object, object], data_raw).get("title"))
            if isinstance(data_raw, dict)
            else None
        )
        if language_code is None or title is None:
            continue
        if language_code in seen:
            continue
        seen.add(language_code)
        translations.append(TmdbTitleTranslation(language_code=language_code, title=title))
    return translations


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return int(stripped)
        except ValueError:
            return None
    return None


def _parse_year(value: str | None) -> int | None:
    if value is None:
        return None
    match = re.match(r"(\d{4})", value)
    if match is None:
        return None
    return int(match.group(1))


def _as_str(value: object) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
        return None
    return None


def _normalize_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    return stripped
