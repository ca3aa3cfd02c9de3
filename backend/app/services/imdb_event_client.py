from __future__ import annotations

import logging
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from backend.app.services.sync_errors import ExternalFetchError

LOGGER = logging.getLogger("awards_catalog.imdb_event")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.6 Safari/605.1.15"
)
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class EventPageFetcher(Protocol):
    def fetch_event_html(self, url: str) -> str:
        ...


def ensure_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else f"{url}/"


class ImdbEventClient:
    def __init__(
        self,
        *,
        http_timeout_seconds: float,
        user_agent: str = DEFAULT_USER_AGENT,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
    ) -> None:
        self._http_timeout_seconds = max(1.0, float(http_timeout_seconds))
        self._user_agent = user_agent
        self._accept_language = accept_language

    def fetch_event_html(self, url: str) -> str:
        request = Request(
            ensure_trailing_slash(url),
            headers={
                "User-Agent": self._user_agent,
                "Accept-Language": self._accept_language,
                "Accept": HTML_ACCEPT,
            },
            method="GET",
        )
        try:
            with urlopen(request, timeout=self._http_timeout_seconds) as response:
                charset = response.headers.get_content_charset() or "utf-8"
                return response.read().decode(charset, errors="replace")
        except HTTPError as exc:
            status_code = int(exc.code)
            LOGGER.warning("imdb event page fetch failed url=%s status=%s", url, status_code)
            raise ExternalFetchError(
                f"Failed to fetch IMDb event page (status {status_code})",
                status_code=status_code,
            ) from exc
        except (URLError, TimeoutError, OSError) as exc:
            LOGGER.warning(
                "imdb event page fetch failed url=%s error=%s",
                url,
                type(exc).__name__,
            )
            raise ExternalFetchError(
                f"Failed to fetch IMDb event page (network error: {type(exc).__name__})",
                status_code=None,
            ) from exc
