"""Page-level bootstrap: one widget per container, torn down together."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable

import httpx

from .client import PublicTimerClient
from .countdown import CountdownWidget, WidgetContainer, now_ms
from .storage import StartTimeStore

logger = logging.getLogger(__name__)


class WidgetRegistry:
    """Tracks which containers already have a widget.

    A container is mounted at most once per registry, keyed by its
    ``container_id``, so re-scanning the page never double-counts an
    impression. ``default_api_url`` is used for containers that do not
    declare their own.
    """

    def __init__(
        self,
        store: StartTimeStore,
        *,
        default_api_url: str | None = None,
        http: httpx.AsyncClient | None = None,
        clock: Callable[[], int] = now_ms,
        tick_interval: float = 1.0,
    ) -> None:
        self.store = store
        self.default_api_url = default_api_url
        self.clock = clock
        self.tick_interval = tick_interval
        self._http = http or httpx.AsyncClient()
        self._owns_http = http is None
        self._clients: dict[str, PublicTimerClient] = {}
        self._widgets: dict[str, CountdownWidget] = {}

    def __contains__(self, container_id: str) -> bool:
        return container_id in self._widgets

    def __len__(self) -> int:
        return len(self._widgets)

    def get(self, container_id: str) -> CountdownWidget | None:
        return self._widgets.get(container_id)

    def _client_for(self, container: WidgetContainer) -> PublicTimerClient | None:
        api_url = (container.api_url or "").strip() or self.default_api_url
        if not api_url:
            return None
        if api_url not in self._clients:
            self._clients[api_url] = PublicTimerClient(api_url, http=self._http)
        return self._clients[api_url]

    async def mount(self, container: WidgetContainer) -> CountdownWidget:
        """Create and start the container's widget, or return the existing one."""
        existing = self._widgets.get(container.container_id)
        if existing is not None:
            return existing

        widget = CountdownWidget(
            container,
            self._client_for(container),
            self.store,
            clock=self.clock,
            tick_interval=self.tick_interval,
        )
        self._widgets[container.container_id] = widget
        await widget.init()
        logger.debug(f"Mounted {container.container_id}: {widget.state.value}")
        return widget

    async def mount_all(self, containers: Iterable[WidgetContainer]) -> list[CountdownWidget]:
        """Mount every container that declares a product id."""
        pending = [c for c in containers if c.product_id]
        return list(await asyncio.gather(*(self.mount(c) for c in pending)))

    def unmount(self, container_id: str) -> None:
        widget = self._widgets.pop(container_id, None)
        if widget is not None:
            widget.destroy()

    async def close(self) -> None:
        """Destroy every widget and release the HTTP client."""
        for container_id in list(self._widgets):
            self.unmount(container_id)
        if self._owns_http:
            await self._http.aclose()
