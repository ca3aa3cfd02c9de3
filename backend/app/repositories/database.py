from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

MOVIES_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS movies (
    uid TEXT PRIMARY KEY,
    original_language TEXT NOT NULL DEFAULT 'en',
    year INTEGER NULL,
    imdb_id TEXT NULL UNIQUE,
    tmdb_id INTEGER NULL UNIQUE,
    release_date TEXT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_movies_year ON movies(year);
CREATE INDEX IF NOT EXISTS idx_movies_original_language ON movies(original_language);
"""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS award_organizations (
    uid TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    short_name TEXT NULL UNIQUE,
    country TEXT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS award_categories (
    uid TEXT PRIMARY KEY,
    organization_uid TEXT NOT NULL,
    name TEXT NOT NULL,
    name_en TEXT NULL,
    name_local TEXT NULL,
    short_name TEXT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (organization_uid, name),
    UNIQUE (organization_uid, short_name),
    FOREIGN KEY(organization_uid) REFERENCES award_organizations(uid)
);

CREATE TABLE IF NOT EXISTS award_ceremonies (
    uid TEXT PRIMARY KEY,
    organization_uid TEXT NOT NULL,
    ceremony_number INTEGER NULL,
    year INTEGER NOT NULL,
    imdb_event_url TEXT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (organization_uid, year),
    UNIQUE (organization_uid, ceremony_number),
    FOREIGN KEY(organization_uid) REFERENCES award_organizations(uid)
);

CREATE TABLE IF NOT EXISTS nominations (
    uid TEXT PRIMARY KEY,
    movie_uid TEXT NOT NULL,
    ceremony_uid TEXT NOT NULL,
    category_uid TEXT NOT NULL,
    is_winner INTEGER NOT NULL DEFAULT 0,
    special_mention TEXT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (movie_uid, ceremony_uid, category_uid),
    FOREIGN KEY(movie_uid) REFERENCES movies(uid),
    FOREIGN KEY(ceremony_uid) REFERENCES award_ceremonies(uid),
    FOREIGN KEY(category_uid) REFERENCES award_categories(uid)
);

CREATE INDEX IF NOT EXISTS idx_nominations_ceremony_category
ON nominations(ceremony_uid, category_uid);

CREATE TABLE IF NOT EXISTS poster_urls (
    uid TEXT PRIMARY KEY,
    movie_uid TEXT NOT NULL,
    url TEXT NOT NULL,
    width INTEGER NULL,
    height INTEGER NULL,
    language_code TEXT NULL,
    source_type TEXT NULL,
    is_primary INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(movie_uid) REFERENCES movies(uid)
);

CREATE INDEX IF NOT EXISTS idx_poster_urls_movie ON poster_urls(movie_uid);

CREATE TABLE IF NOT EXISTS translations (
    uid TEXT PRIMARY KEY,
    resource_type TEXT NOT NULL,
    resource_uid TEXT NOT NULL,
    language_code TEXT NOT NULL,
    content TEXT NOT NULL,
    is_default INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (resource_type, resource_uid, language_code)
);

CREATE INDEX IF NOT EXISTS idx_translations_resource
ON translations(resource_type, resource_uid);
"""


class Database:
    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            _maybe_migrate_movies_schema(conn)
            conn.executescript(MOVIES_SCHEMA_SQL)
            conn.executescript(SCHEMA_SQL)


def _maybe_migrate_movies_schema(conn: sqlite3.Connection) -> None:
    columns = _table_columns(conn, "movies")
    if not columns:
        return

    # Databases created before release dates were tracked lack the column.
    if "release_date" not in columns:
        conn.execute("ALTER TABLE movies ADD COLUMN release_date TEXT NULL")


def _table_columns(conn: sqlite3.Connection, table_name: str) -> set[str]:
    rows = conn.execute(f"PRAGMA table_info({table_name})").fetchall()
    return {str(row["name"]) for row in rows}
