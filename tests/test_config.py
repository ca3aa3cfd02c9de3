from __future__ import annotations

from pathlib import Path

import pytest

from backend.app.config import DEFAULT_DATA_DIR, load_settings
from backend.app.services.imdb_event_client import DEFAULT_ACCEPT_LANGUAGE


def test_load_settings_defaults_paths_under_data_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    data_dir = tmp_path / "data"
    monkeypatch.setenv("AWARDS_CATALOG_DATA_DIR", str(data_dir))

    settings = load_settings()

    assert settings.data_dir == data_dir.resolve()
    assert settings.db_path == data_dir.resolve() / "catalog.db"
    assert settings.log_dir == data_dir.resolve() / "logs"
    assert settings.tmdb_api_key is None
    assert settings.imdb_accept_language == DEFAULT_ACCEPT_LANGUAGE


def test_load_settings_uses_default_data_dir_relative_to_cwd(tmp_path: Path) -> None:
    settings = load_settings()
    assert settings.db_path == (tmp_path / DEFAULT_DATA_DIR / "catalog.db").resolve()


def test_load_settings_parses_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWARDS_CATALOG_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("AWARDS_CATALOG_DB_PATH", str(tmp_path / "elsewhere" / "awards.db"))
    monkeypatch.setenv("AWARDS_CATALOG_TMDB_API_KEY", "  tmdb-key  ")
    monkeypatch.setenv("AWARDS_CATALOG_TMDB_BASE_URL", " https://tmdb.example/3/ ")
    monkeypatch.setenv("AWARDS_CATALOG_TMDB_HTTP_TIMEOUT_SECONDS", "3.5")
    monkeypatch.setenv("AWARDS_CATALOG_TELEMETRY_ENABLED", "off")
    monkeypatch.setenv("AWARDS_CATALOG_TELEMETRY_SINK", " LOG ")
    monkeypatch.setenv("AWARDS_CATALOG_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.db_path == (tmp_path / "elsewhere" / "awards.db").resolve()
    assert settings.log_dir == (tmp_path / "data" / "logs").resolve()
    assert settings.tmdb_api_key == "tmdb-key"
    assert settings.tmdb_base_url == "https://tmdb.example/3"
    assert settings.tmdb_http_timeout_seconds == 3.5
    assert settings.telemetry_enabled is False
    assert settings.telemetry_sink == "log"
    assert settings.log_level == "DEBUG"


def test_blank_tmdb_api_key_is_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWARDS_CATALOG_TMDB_API_KEY", "   ")
    assert load_settings().tmdb_api_key is None


def test_unparseable_boolean_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWARDS_CATALOG_TELEMETRY_ENABLED", "maybe")
    assert load_settings().telemetry_enabled is True


def test_load_settings_rejects_invalid_telemetry_sink(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWARDS_CATALOG_TELEMETRY_SINK", "otlp")

    with pytest.raises(ValueError, match="AWARDS_CATALOG_TELEMETRY_SINK"):
        load_settings()


def test_load_settings_rejects_invalid_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWARDS_CATALOG_LOG_LEVEL", "verbose")

    with pytest.raises(ValueError, match="AWARDS_CATALOG_LOG_LEVEL"):
        load_settings()


def test_load_settings_rejects_empty_user_agent(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWARDS_CATALOG_IMDB_USER_AGENT", "  ")

    with pytest.raises(ValueError, match="AWARDS_CATALOG_IMDB_USER_AGENT"):
        load_settings()


def test_load_settings_can_require_tmdb_key(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ValueError, match="AWARDS_CATALOG_TMDB_API_KEY"):
        load_settings(require_tmdb_api_key=True)

    monkeypatch.setenv("AWARDS_CATALOG_TMDB_API_KEY", "tmdb-key")
    assert load_settings(require_tmdb_api_key=True).tmdb_api_key == "tmdb-key"
