from __future__ import annotations

from dataclasses import dataclass
from sqlite3 import Row

from backend.app.repositories.common import new_uid, text_or_none, utc_now_iso
from backend.app.repositories.database import Database


@dataclass(frozen=True)
class NominationDraft:
    movie_uid: str
    is_winner: bool
    special_mention: str | None


@dataclass(frozen=True)
class Nomination:
    uid: str
    movie_uid: str
    ceremony_uid: str
    category_uid: str
    is_winner: bool
    special_mention: str | None
    imdb_id: str | None


class NominationRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def replace_for_category(
        self,
        *,
        ceremony_uid: str,
        category_uid: str,
        drafts: list[NominationDraft],
    ) -> int:
        """
        Replace the whole nomination set of a (ceremony, category) pair in one transaction.

        Drafts sharing a movie collapse to the first one. Returns the number of rows written.
        """
        unique_drafts: list[NominationDraft] = []
        seen_movie_uids: set[str] = set()
        for draft in drafts:
            if draft.movie_uid in seen_movie_uids:
                continue
            seen_movie_uids.add(draft.movie_uid)
            unique_drafts.append(draft)

        now_iso = utc_now_iso()
        with self._db.connection() as conn:
            conn.execute(
                "DELETE FROM nominations WHERE ceremony_uid = ? AND category_uid = ?",
                (ceremony_uid, category_uid),
            )
            conn.executemany(
                """
                INSERT INTO nominations (
                    uid, movie_uid, ceremony_uid, category_uid, is_winner, special_mention,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        new_uid("nom"),
                        draft.movie_uid,
                        ceremony_uid,
                        category_uid,
                        1 if draft.is_winner else 0,
                        text_or_none(draft.special_mention),
                        now_iso,
                        now_iso,
                    )
                    for draft in unique_drafts
                ],
            )
        return len(unique_drafts)

    def list_for_category(self, *, ceremony_uid: str, category_uid: str) -> list[Nomination]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT
                    n.uid, n.movie_uid, n.ceremony_uid, n.category_uid, n.is_winner,
                    n.special_mention, m.imdb_id
                FROM nominations AS n
                JOIN movies AS m ON m.uid = n.movie_uid
                WHERE n.ceremony_uid = ? AND n.category_uid = ?
                ORDER BY n.rowid ASC
                """,
                (ceremony_uid, category_uid),
            ).fetchall()
        return [_row_to_nomination(row) for row in rows]

    def count_for_ceremony(self, ceremony_uid: str) -> int:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM nominations WHERE ceremony_uid = ?",
                (ceremony_uid,),
            ).fetchone()
        return int(row["total"]) if row is not None else 0


def _row_to_nomination(row: Row) -> Nomination:
    return Nomination(
        uid=str(row["uid"]),
        movie_uid=str(row["movie_uid"]),
        ceremony_uid=str(row["ceremony_uid"]),
        category_uid=str(row["category_uid"]),
        is_winner=bool(row["is_winner"]),
        special_mention=text_or_none(row["special_mention"]),
        imdb_id=text_or_none(row["imdb_id"]),
    )
