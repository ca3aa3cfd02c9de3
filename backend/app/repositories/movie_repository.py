from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from sqlite3 import Connection, Row

from backend.app.repositories.common import int_or_none, new_uid, text_or_none, utc_now_iso
from backend.app.repositories.database import Database

MOVIE_TITLE_RESOURCE = "movie_title"
DEFAULT_ORIGINAL_LANGUAGE = "en"


@dataclass(frozen=True)
class CatalogMovie:
    uid: str
    imdb_id: str | None
    tmdb_id: int | None
    year: int | None
    original_language: str
    release_date: str | None


@dataclass(frozen=True)
class MovieCreateOutcome:
    movie: CatalogMovie
    created: bool


@dataclass(frozen=True)
class PosterUrl:
    uid: str
    movie_uid: str
    url: str
    width: int | None
    height: int | None
    language_code: str | None
    source_type: str | None
    is_primary: bool


@dataclass(frozen=True)
class Translation:
    uid: str
    resource_uid: str
    language_code: str
    content: str
    is_default: bool


class DuplicateMovieError(RuntimeError):
    pass


class MovieRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def get_by_imdb_id(self, imdb_id: str) -> CatalogMovie | None:
        with self._db.connection() as conn:
            row = _select_movie(conn, "imdb_id = ?", (imdb_id,))
        return _row_to_movie(row) if row is not None else None

    def get_by_tmdb_id(self, tmdb_id: int) -> CatalogMovie | None:
        with self._db.connection() as conn:
            row = _select_movie(conn, "tmdb_id = ?", (tmdb_id,))
        return _row_to_movie(row) if row is not None else None

    def create_or_get_by_imdb_id(
        self,
        *,
        imdb_id: str,
        tmdb_id: int | None = None,
        year: int | None = None,
        original_language: str | None = None,
        release_date: str | None = None,
    ) -> MovieCreateOutcome:
        """
        Insert a movie keyed by its IMDb id, or return the row that already owns the id.

        A uniqueness conflict on the IMDb id resolves to the existing row with
        `created=False`. A conflict that is not explained by an existing IMDb id
        (for example a TMDB id owned by another movie) raises DuplicateMovieError.
        """
        uid = new_uid("movie")
        now_iso = utc_now_iso()
        with self._db.connection() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO movies (
                        uid, original_language, year, imdb_id, tmdb_id, release_date,
                        created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        uid,
                        text_or_none(original_language) or DEFAULT_ORIGINAL_LANGUAGE,
                        year,
                        imdb_id,
                        tmdb_id,
                        text_or_none(release_date),
                        now_iso,
                        now_iso,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                existing_row = _select_movie(conn, "imdb_id = ?", (imdb_id,))
                if existing_row is None:
                    raise DuplicateMovieError(
                        f"Movie insert conflicted for imdb_id={imdb_id}: {exc}"
                    ) from exc
                return MovieCreateOutcome(movie=_row_to_movie(existing_row), created=False)

            created_row = _select_movie(conn, "uid = ?", (uid,))
        if created_row is None:
            raise RuntimeError("Movie was not found after insert")
        return MovieCreateOutcome(movie=_row_to_movie(created_row), created=True)

    def add_poster_url(
        self,
        *,
        movie_uid: str,
        url: str,
        width: int | None,
        height: int | None,
        language_code: str | None,
        source_type: str,
    ) -> bool:
        now_iso = utc_now_iso()
        with self._db.connection() as conn:
            existing = conn.execute(
                "SELECT uid FROM poster_urls WHERE movie_uid = ? AND url = ?",
                (movie_uid, url),
            ).fetchone()
            if existing is not None:
                return False
            conn.execute(
                """
                INSERT INTO poster_urls (
                    uid, movie_uid, url, width, height, language_code, source_type,
                    is_primary, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    new_uid("poster"),
                    movie_uid,
                    url,
                    width,
                    height,
                    language_code,
                    source_type,
                    now_iso,
                    now_iso,
                ),
            )
        return True

    def list_poster_urls(self, movie_uid: str) -> list[PosterUrl]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT uid, movie_uid, url, width, height, language_code, source_type, is_primary
                FROM poster_urls
                WHERE movie_uid = ?
                ORDER BY created_at ASC
                """,
                (movie_uid,),
            ).fetchall()
        return [
            PosterUrl(
                uid=str(row["uid"]),
                movie_uid=str(row["movie_uid"]),
                url=str(row["url"]),
                width=int_or_none(row["width"]),
                height=int_or_none(row["height"]),
                language_code=text_or_none(row["language_code"]),
                source_type=text_or_none(row["source_type"]),
                is_primary=bool(row["is_primary"]),
            )
            for row in rows
        ]

    def add_title_translation(
        self,
        *,
        movie_uid: str,
        language_code: str,
        content: str,
        is_default: bool,
    ) -> bool:
        """Insert a title translation; an existing language only has its default flag raised."""
        now_iso = utc_now_iso()
        with self._db.connection() as conn:
            existing = conn.execute(
                """
                SELECT uid
                FROM translations
                WHERE resource_type = ? AND resource_uid = ? AND language_code = ?
                """,
                (MOVIE_TITLE_RESOURCE, movie_uid, language_code),
            ).fetchone()
            if existing is None:
                conn.execute(
                    """
                    INSERT INTO translations (
                        uid, resource_type, resource_uid, language_code, content, is_default,
                        created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        new_uid("tr"),
                        MOVIE_TITLE_RESOURCE,
                        movie_uid,
                        language_code,
                        content,
                        1 if is_default else 0,
                        now_iso,
                        now_iso,
                    ),
                )
                return True

            if is_default:
                conn.execute(
                    "UPDATE translations SET is_default = 1, updated_at = ? WHERE uid = ?",
                    (now_iso, str(existing["uid"])),
                )
        return False

    def list_title_translations(self, movie_uid: str) -> list[Translation]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT uid, resource_uid, language_code, content, is_default
                FROM translations
                WHERE resource_type = ? AND resource_uid = ?
                ORDER BY language_code ASC
                """,
                (MOVIE_TITLE_RESOURCE, movie_uid),
            ).fetchall()
        return [
            Translation(
                uid=str(row["uid"]),
                resource_uid=str(row["resource_uid"]),
                language_code=str(row["language_code"]),
                content=str(row["content"]),
                is_default=bool(row["is_default"]),
            )
            for row in rows
        ]

    def count_movies(self) -> int:
        with self._db.connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM movies").fetchone()
        return int(row["total"]) if row is not None else 0


def _select_movie(
    conn: Connection,
    where_clause: str,
    params: tuple[object, ...],
) -> Row | None:
    return conn.execute(
        f"""
        SELECT uid, imdb_id, tmdb_id, year, original_language, release_date
        FROM movies
        WHERE {where_clause}
        LIMIT 1
        """,
        params,
    ).fetchone()


def _row_to_movie(row: Row) -> CatalogMovie:
    return CatalogMovie(
        uid=str(row["uid"]),
        imdb_id=text_or_none(row["imdb_id"]),
        tmdb_id=int_or_none(row["tmdb_id"]),
        year=int_or_none(row["year"]),
        original_language=text_or_none(row["original_language"]) or DEFAULT_ORIGINAL_LANGUAGE,
        release_date=text_or_none(row["release_date"]),
    )
