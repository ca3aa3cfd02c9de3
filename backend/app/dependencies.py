from __future__ import annotations

from functools import lru_cache

from backend.app.config import AppSettings, load_settings
from backend.app.repositories.award_repository import AwardRepository
from backend.app.repositories.database import Database
from backend.app.repositories.movie_repository import MovieRepository
from backend.app.repositories.nomination_repository import NominationRepository
from backend.app.services.award_sync_service import AwardSyncService
from backend.app.services.imdb_event_client import ImdbEventClient
from backend.app.services.movie_resolver import MovieResolver
from backend.app.services.tmdb_metadata_service import TmdbMetadataService
from backend.app.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_database() -> Database:
    database = Database(get_settings().db_path)
    database.initialize()
    return database


def get_award_repository() -> AwardRepository:
    return AwardRepository(get_database())


def get_nomination_repository() -> NominationRepository:
    return NominationRepository(get_database())


@lru_cache(maxsize=1)
def get_award_sync_service() -> AwardSyncService:
    return build_award_sync_service(
        settings=get_settings(),
        database=get_database(),
        telemetry=get_telemetry(),
    )


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


def build_award_sync_service(
    *,
    settings: AppSettings,
    database: Database,
    telemetry: TelemetryClient,
) -> AwardSyncService:
    return AwardSyncService(
        award_repository=AwardRepository(database),
        nomination_repository=NominationRepository(database),
        movie_resolver=MovieResolver(
            movie_repository=MovieRepository(database),
            metadata_provider=TmdbMetadataService(
                api_key=settings.tmdb_api_key,
                base_url=settings.tmdb_base_url,
                http_timeout_seconds=settings.tmdb_http_timeout_seconds,
            ),
        ),
        event_fetcher=ImdbEventClient(
            http_timeout_seconds=settings.imdb_fetch_timeout_seconds,
            user_agent=settings.imdb_user_agent,
            accept_language=settings.imdb_accept_language,
        ),
        telemetry=telemetry,
    )


def reset_cached_dependencies() -> None:
    get_award_sync_service.cache_clear()
    get_database.cache_clear()
    get_telemetry.cache_clear()
    get_settings.cache_clear()
