from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.app.services.imdb_event_client import DEFAULT_ACCEPT_LANGUAGE, DEFAULT_USER_AGENT

DEFAULT_DATA_DIR = ".awards-catalog"
_DATA_DIR_RELATIVE_DEFAULTS: tuple[tuple[str, Path], ...] = (
    ("db_path", Path("catalog.db")),
    ("log_dir", Path("logs")),
)
_PATH_FIELDS: tuple[str, ...] = (
    "data_dir",
    *(field_name for field_name, _ in _DATA_DIR_RELATIVE_DEFAULTS),
)
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = ("telemetry_enabled",)
_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _default_in_data_dir(relative_path: Path) -> Path:
    return Path(DEFAULT_DATA_DIR) / relative_path


def _data_dir_default_note(relative_path: Path) -> str:
    return f"Defaults to `${{AWARDS_CATALOG_DATA_DIR}}/{relative_path}` when not explicitly set."


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 1:
            return True
        if value == 0:
            return False
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _normalize_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if normalized:
        return normalized
    return None


class AppSettings(BaseSettings):
    """
    Runtime configuration for the awards catalog backend.

    Every option reads from an `AWARDS_CATALOG_*` environment variable or `.env`.
    """

    model_config = SettingsConfigDict(
        env_prefix="AWARDS_CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Core paths.
    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Root runtime directory for the catalog database and logs.",
    )
    db_path: Path = Field(
        default=_default_in_data_dir(Path("catalog.db")),
        description=f"SQLite database path. {_data_dir_default_note(Path('catalog.db'))}",
    )

    # TMDB metadata provider.
    tmdb_api_key: str | None = Field(
        default=None,
        description=(
            "TMDB API key used when creating catalog movies. Without it, movies are "
            "created from the IMDb id alone."
        ),
    )
    tmdb_base_url: str = Field(
        default="https://api.themoviedb.org/3",
        description="TMDB API base URL.",
    )
    tmdb_http_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for TMDB requests.",
    )

    # IMDb event pages.
    imdb_fetch_timeout_seconds: float = Field(
        default=20.0,
        description="HTTP timeout for fetching IMDb award event pages.",
    )
    imdb_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent sent when fetching IMDb event pages.",
    )
    imdb_accept_language: str = Field(
        default=DEFAULT_ACCEPT_LANGUAGE,
        description="Accept-Language sent when fetching IMDb event pages.",
    )

    # Logging.
    log_dir: Path = Field(
        default=_default_in_data_dir(Path("logs")),
        description=f"Directory for backend log files. {_data_dir_default_note(Path('logs'))}",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level (stdout).",
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Enable lightweight internal telemetry events.",
    )
    telemetry_sink: Literal["none", "log"] = Field(
        default="log",
        description=(
            "Telemetry sink backend. `log` emits structured telemetry locally; "
            "`none` disables sink output."
        ),
    )

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _normalize_telemetry_sink(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("AWARDS_CATALOG_TELEMETRY_SINK must be a string.")
        normalized = value.strip().lower()
        if normalized in {"none", "log"}:
            return normalized
        raise ValueError("AWARDS_CATALOG_TELEMETRY_SINK must be set to: none, log.")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("AWARDS_CATALOG_LOG_LEVEL must be a string.")
        normalized = value.strip().upper()
        if normalized in _LOG_LEVELS:
            return normalized
        raise ValueError(
            "AWARDS_CATALOG_LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )

    @field_validator("tmdb_base_url", mode="before")
    @classmethod
    def _normalize_tmdb_base_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("AWARDS_CATALOG_TMDB_BASE_URL must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized:
            raise ValueError("AWARDS_CATALOG_TMDB_BASE_URL must not be empty.")
        return normalized

    @field_validator("imdb_user_agent", "imdb_accept_language", mode="before")
    @classmethod
    def _normalize_imdb_headers(cls, value: Any, info: ValidationInfo) -> str:
        env_name = f"AWARDS_CATALOG_{str(info.field_name).upper()}"
        if not isinstance(value, str):
            raise ValueError(f"{env_name} must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError(f"{env_name} must not be empty.")
        return normalized

    @field_validator(*_PATH_FIELDS, mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        return _normalize_optional_text(value)


def _apply_path_defaults(settings: AppSettings) -> AppSettings:
    updates: dict[str, Path] = {}
    for field_name, relative_default in _DATA_DIR_RELATIVE_DEFAULTS:
        if field_name in settings.model_fields_set:
            continue
        updates[field_name] = settings.data_dir / relative_default
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def _resolve_path_fields(settings: AppSettings) -> AppSettings:
    resolved_updates = {
        field_name: _resolve_path(getattr(settings, field_name))
        for field_name in _PATH_FIELDS
    }
    return settings.model_copy(update=resolved_updates)


def load_settings(*, require_tmdb_api_key: bool = False) -> AppSettings:
    settings = AppSettings()
    settings = _apply_path_defaults(settings)
    settings = _resolve_path_fields(settings)

    if require_tmdb_api_key and settings.tmdb_api_key is None:
        raise ValueError(
            "Invalid configuration:\n"
            "- AWARDS_CATALOG_TMDB_API_KEY is required when TMDB metadata is mandatory."
        )

    return settings
