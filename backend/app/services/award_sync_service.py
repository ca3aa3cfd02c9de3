from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from backend.app.repositories.award_repository import (
    AwardCategory,
    AwardCeremony,
    AwardRepository,
)
from backend.app.repositories.nomination_repository import (
    NominationDraft,
    NominationRepository,
)
from backend.app.services.category_matching import expand_target_names
from backend.app.services.imdb_event_client import EventPageFetcher, ensure_trailing_slash
from backend.app.services.imdb_event_parser import (
    extract_nominations,
    parse_event_html,
    select_category_section,
)
from backend.app.services.movie_resolver import MovieResolver, ResolutionCache
from backend.app.services.sync_errors import (
    NoCategoryMatchError,
    NoResolvableNominationsError,
    SyncNotFoundError,
    SyncValidationError,
)
from backend.app.telemetry import TelemetryClient

LOGGER = logging.getLogger("awards_catalog.award_sync")


@dataclass(frozen=True)
class SyncContext:
    ceremony: AwardCeremony
    category: AwardCategory
    event_url: str


@dataclass(frozen=True)
class AwardSyncResult:
    movies_created: int
    nominations_inserted: int
    skipped: int
    imdb_entries: int
    category_name: str


class AwardSyncService:
    def __init__(
        self,
        *,
        award_repository: AwardRepository,
        nomination_repository: NominationRepository,
        movie_resolver: MovieResolver,
        event_fetcher: EventPageFetcher,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._award_repository = award_repository
        self._nomination_repository = nomination_repository
        self._movie_resolver = movie_resolver
        self._event_fetcher = event_fetcher
        self._telemetry = telemetry if telemetry is not None else TelemetryClient.disabled()

    def sync_ceremony_nominations(self, ceremony_uid: str, category_uid: str) -> AwardSyncResult:
        """
        Replace the nominations of one (ceremony, category) pair with the IMDb event snapshot.

        Domain failures raise an AwardSyncError subclass before the nomination set is
        touched; the replace itself runs in a single transaction.
        """
        started = time.monotonic()
        self._telemetry.emit(
            "awards.sync.start",
            ceremony_uid=ceremony_uid,
            category_uid=category_uid,
        )
        try:
            result = self._sync(ceremony_uid, category_uid)
        except Exception as exc:
            self._telemetry.emit(
                "awards.sync.error",
                ceremony_uid=ceremony_uid,
                category_uid=category_uid,
                error_type=type(exc).__name__,
                duration_ms=_elapsed_ms(started),
            )
            LOGGER.warning(
                "award sync failed ceremony_uid=%s category_uid=%s error=%s",
                ceremony_uid,
                category_uid,
                exc,
            )
            raise

        self._telemetry.emit(
            "awards.sync.finish",
            ceremony_uid=ceremony_uid,
            category_uid=category_uid,
            movies_created=result.movies_created,
            nominations_inserted=result.nominations_inserted,
            skipped=result.skipped,
            imdb_entries=result.imdb_entries,
            duration_ms=_elapsed_ms(started),
        )
        LOGGER.info(
            "award sync finished ceremony_uid=%s category_uid=%s matched=%r "
            "inserted=%s created=%s skipped=%s",
            ceremony_uid,
            category_uid,
            result.category_name,
            result.nominations_inserted,
            result.movies_created,
            result.skipped,
        )
        return result

    def build_context(self, ceremony_uid: str, category_uid: str) -> SyncContext:
        normalized_category_uid = category_uid.strip()
        if not normalized_category_uid:
            raise SyncValidationError("Category UID is required")

        ceremony = self._award_repository.get_ceremony(ceremony_uid.strip())
        if ceremony is None:
            raise SyncNotFoundError("Ceremony not found")
        if ceremony.imdb_event_url is None:
            raise SyncValidationError("Ceremony does not have an IMDb event URL configured")

        category = self._award_repository.get_category(normalized_category_uid)
        if category is None:
            raise SyncNotFoundError("Category not found")
        if category.organization_uid != ceremony.organization_uid:
            raise SyncValidationError("Category does not belong to the ceremony organization")
        if not category.name.strip():
            raise SyncValidationError("Category name is required")

        return SyncContext(
            ceremony=ceremony,
            category=category,
            event_url=ensure_trailing_slash(ceremony.imdb_event_url),
        )

    def _sync(self, ceremony_uid: str, category_uid: str) -> AwardSyncResult:
        context = self.build_context(ceremony_uid, category_uid)
        category = context.category

        html = self._event_fetcher.fetch_event_html(context.event_url)
        payload = parse_event_html(html)

        target_names = expand_target_names(category.name)
        match = select_category_section(payload, target_names)
        if match is None:
            raise NoCategoryMatchError(
                f'IMDb event page has no category matching "{category.name}"'
            )
        LOGGER.info(
            "imdb category matched category=%r label=%r score=%s",
            category.name,
            match.section.label,
            match.score,
        )

        records = extract_nominations(match.section)
        if not records:
            raise NoResolvableNominationsError(
                f'IMDb event page did not provide nominations for category "{category.name}"'
            )

        cache = ResolutionCache()
        drafts: list[NominationDraft] = []
        movies_created = 0
        skipped = 0
        for record in records:
            if record.imdb_id is None:
                skipped += 1
                continue
            resolved = self._movie_resolver.resolve_imdb_id(
                record.imdb_id,
                cache=cache,
                fallback_title=record.title,
            )
            if resolved.created:
                movies_created += 1
            drafts.append(
                NominationDraft(
                    movie_uid=resolved.movie.uid,
                    is_winner=record.is_winner,
                    special_mention=record.note,
                )
            )

        if not drafts:
            raise NoResolvableNominationsError(
                "IMDb nominations could not be matched to any movies (missing IMDb IDs)"
            )

        inserted = self._nomination_repository.replace_for_category(
            ceremony_uid=context.ceremony.uid,
            category_uid=category.uid,
            drafts=drafts,
        )
        return AwardSyncResult(
            movies_created=movies_created,
            nominations_inserted=inserted,
            skipped=skipped,
            imdb_entries=len(records),
            category_name=match.section.label or category.name,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
