"""HTTP client for the storefront timer endpoints."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class PublicTimerClient:
    """Talks to ``/api/timers/public`` on one API base URL.

    Owns a shared httpx client unless one is passed in. Failures are raised
    to the caller; the widget decides to swallow them.
    """

    def __init__(self, api_url: str, http: httpx.AsyncClient | None = None) -> None:
        if not api_url or not api_url.strip():
            raise ValueError("api_url is required")
        self.api_url = api_url.strip().rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient()

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def fetch_timer(self, shop: str, product_id: str) -> dict | None:
        """The public timer view for a product page, or None."""
        response = await self._http.get(
            f"{self.api_url}/api/timers/public/{quote(product_id, safe='')}",
            params={"shop": shop},
        )
        response.raise_for_status()
        return response.json().get("timer")

    async def track_impression(self, timer_id: str) -> int | None:
        """Record one impression. Returns the server's new count when given."""
        response = await self._http.get(
            f"{self.api_url}/api/timers/public/impression",
            params={"timerId": timer_id},
        )
        response.raise_for_status()
        return response.json().get("impressions")
