"""Preview URL lookup: resolve a playable clip for a title/artist pair."""

import logging
from typing import Protocol

import requests

from .config import DEEZER_SEARCH_URL, DEFAULT_HTTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class PreviewResolver(Protocol):
    def resolve_preview(self, title: str, artist: str) -> str | None:
        """Return a directly playable audio URL, or None when no clip exists."""
        ...


class DeezerPreviewResolver:
    """Looks up 30-second previews through Deezer's public search API."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        search_url: str = DEEZER_SEARCH_URL,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout
        self._search_url = search_url

    def resolve_preview(self, title: str, artist: str) -> str | None:
        query = f"{title} {artist}"
        try:
            response = self._session.get(
                self._search_url,
                params={"q": query, "limit": 1},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Deezer search failed for %r: %s", query, exc)
            return None

        if not response.ok:
            logger.warning("Deezer search returned %s for %r", response.status_code, query)
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Deezer search returned a non-JSON body for %r", query)
            return None

        items = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            logger.info("No Deezer results for %s by %s", title, artist)
            return None

        preview = items[0].get("preview")
        if not isinstance(preview, str) or not preview:
            return None
        return preview

    def close(self) -> None:
        self._session.close()
