from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from backend.app.repositories.nomination_repository import Nomination
from backend.app.services.award_sync_service import AwardSyncResult


class CeremonySyncRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Missing and blank values are both rejected by the sync service with a 400.
    category_uid: str | None = Field(default=None, max_length=120)


class CeremonySyncStats(BaseModel):
    model_config = ConfigDict(extra="forbid")

    movies_created: int
    nominations_inserted: int
    skipped: int
    imdb_entries: int
    category_name: str

    @classmethod
    def from_result(cls, result: AwardSyncResult) -> CeremonySyncStats:
        return cls(
            movies_created=result.movies_created,
            nominations_inserted=result.nominations_inserted,
            skipped=result.skipped,
            imdb_entries=result.imdb_entries,
            category_name=result.category_name,
        )


class NominationView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    uid: str
    movie_uid: str
    imdb_id: str | None
    ceremony_uid: str
    category_uid: str
    is_winner: bool
    special_mention: str | None

    @classmethod
    def from_nomination(cls, nomination: Nomination) -> NominationView:
        return cls(
            uid=nomination.uid,
            movie_uid=nomination.movie_uid,
            imdb_id=nomination.imdb_id,
            ceremony_uid=nomination.ceremony_uid,
            category_uid=nomination.category_uid,
            is_winner=nomination.is_winner,
            special_mention=nomination.special_mention,
        )


class CeremonySyncResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool
    stats: CeremonySyncStats
    nominations: list[NominationView]


class NominationListResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ceremony_uid: str
    category_uid: str
    nominations: list[NominationView]
