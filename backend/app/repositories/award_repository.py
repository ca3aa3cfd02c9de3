from __future__ import annotations

from dataclasses import dataclass
from sqlite3 import Connection, Row

from backend.app.repositories.common import int_or_none, new_uid, text_or_none, utc_now_iso
from backend.app.repositories.database import Database


@dataclass(frozen=True)
class AwardOrganization:
    uid: str
    name: str
    short_name: str | None
    country: str | None


@dataclass(frozen=True)
class AwardCategory:
    uid: str
    organization_uid: str
    name: str
    name_en: str | None
    name_local: str | None
    short_name: str | None


@dataclass(frozen=True)
class AwardCeremony:
    uid: str
    organization_uid: str
    year: int
    ceremony_number: int | None
    imdb_event_url: str | None


class AwardRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def create_organization(
        self,
        *,
        name: str,
        short_name: str | None = None,
        country: str | None = None,
    ) -> AwardOrganization:
        uid = new_uid("org")
        now_iso = utc_now_iso()
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO award_organizations
                (uid, name, short_name, country, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    uid,
                    name.strip(),
                    text_or_none(short_name),
                    text_or_none(country),
                    now_iso,
                    now_iso,
                ),
            )
        return AwardOrganization(
            uid=uid,
            name=name.strip(),
            short_name=text_or_none(short_name),
            country=text_or_none(country),
        )

    def create_category(
        self,
        *,
        organization_uid: str,
        name: str,
        name_en: str | None = None,
        name_local: str | None = None,
        short_name: str | None = None,
    ) -> AwardCategory:
        normalized_name = name.strip()
        if not normalized_name:
            raise ValueError("Category name is required")
        uid = new_uid("cat")
        now_iso = utc_now_iso()
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO award_categories
                (uid, organization_uid, name, name_en, name_local, short_name, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    uid,
                    organization_uid,
                    normalized_name,
                    text_or_none(name_en),
                    text_or_none(name_local),
                    text_or_none(short_name),
                    now_iso,
                    now_iso,
                ),
            )
            row = _get_category_row(conn, uid)
        if row is None:
            raise RuntimeError("Award category was not found after insert")
        return _row_to_category(row)

    def create_ceremony(
        self,
        *,
        organization_uid: str,
        year: int,
        ceremony_number: int | None = None,
        imdb_event_url: str | None = None,
    ) -> AwardCeremony:
        uid = new_uid("cer")
        now_iso = utc_now_iso()
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO award_ceremonies
                (uid, organization_uid, ceremony_number, year, imdb_event_url, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    uid,
                    organization_uid,
                    ceremony_number,
                    year,
                    text_or_none(imdb_event_url),
                    now_iso,
                    now_iso,
                ),
            )
            row = _get_ceremony_row(conn, uid)
        if row is None:
            raise RuntimeError("Award ceremony was not found after insert")
        return _row_to_ceremony(row)

    def get_organization(self, uid: str) -> AwardOrganization | None:
        with self._db.connection() as conn:
            row = conn.execute(
                """
                SELECT uid, name, short_name, country
                FROM award_organizations
                WHERE uid = ?
                """,
                (uid,),
            ).fetchone()
        if row is None:
            return None
        return AwardOrganization(
            uid=str(row["uid"]),
            name=str(row["name"]),
            short_name=text_or_none(row["short_name"]),
            country=text_or_none(row["country"]),
        )

    def get_category(self, uid: str) -> AwardCategory | None:
        with self._db.connection() as conn:
            row = _get_category_row(conn, uid)
        if row is None:
            return None
        return _row_to_category(row)

    def get_ceremony(self, uid: str) -> AwardCeremony | None:
        with self._db.connection() as conn:
            row = _get_ceremony_row(conn, uid)
        if row is None:
            return None
        return _row_to_ceremony(row)

    def list_categories(self, organization_uid: str) -> list[AwardCategory]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT uid, organization_uid, name, name_en, name_local, short_name
                FROM award_categories
                WHERE organization_uid = ?
                ORDER BY name ASC
                """,
                (organization_uid,),
            ).fetchall()
        return [_row_to_category(row) for row in rows]


def _get_category_row(conn: Connection, uid: str) -> Row | None:
    row = conn.execute(
        """
        SELECT uid, organization_uid, name, name_en, name_local, short_name
        FROM award_categories
        WHERE uid = ?
        """,
        (uid,),
    ).fetchone()
    return row


def _get_ceremony_row(conn: Connection, uid: str) -> Row | None:
    row = conn.execute(
        """
        SELECT uid, organization_uid, ceremony_number, year, imdb_event_url
        FROM award_ceremonies
        WHERE uid = ?
        """,
        (uid,),
    ).fetchone()
    return row


def _row_to_category(row: Row) -> AwardCategory:
    return AwardCategory(
        uid=str(row["uid"]),
        organization_uid=str(row["organization_uid"]),
        name=str(row["name"]),
        name_en=text_or_none(row["name_en"]),
        name_local=text_or_none(row["name_local"]),
        short_name=text_or_none(row["short_name"]),
    )


def _row_to_ceremony(row: Row) -> AwardCeremony:
    return AwardCeremony(
        uid=str(row["uid"]),
        organization_uid=str(row["organization_uid"]),
        year=int(row["year"]),
        ceremony_number=int_or_none(row["ceremony_number"]),
        imdb_event_url=text_or_none(row["imdb_event_url"]),
    )
