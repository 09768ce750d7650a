"""Countdown widget for storefront product pages.

One ``CountdownWidget`` drives one container: it fetches the public timer
view, keeps the remaining time current with a one-second tick, and hides
itself on any failure. Visitors never see an error, only no widget.

States::

    UNINITIALIZED -> LOADING -> HIDDEN
                             -> DISPLAYING -> TICKING -> EXPIRED
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .client import PublicTimerClient
from .render import render_html
from .storage import StartTimeStore

logger = logging.getLogger(__name__)

DEFAULT_TEXT = "Hurry! Sale ends in"
DEFAULT_BACKGROUND_COLOR = "#000000"
DEFAULT_TEXT_COLOR = "#FFFFFF"
DEFAULT_POSITION = "top"

URGENT_THRESHOLD_MS = 60 * 60 * 1000
TICK_INTERVAL = 1.0


def now_ms() -> int:
    return int(time.time() * 1000)


class WidgetState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    HIDDEN = "hidden"
    DISPLAYING = "displaying"
    TICKING = "ticking"
    EXPIRED = "expired"


@dataclass
class WidgetContainer:
    """The page element a widget renders into.

    ``product_id``, ``shop`` and ``api_url`` are what the theme declares on
    the element; ``visible``, ``classes`` and ``html`` are what the widget
    writes back.
    """

    container_id: str
    product_id: str | None = None
    shop: str | None = None
    api_url: str | None = None
    visible: bool = False
    classes: set[str] = field(default_factory=lambda: {"countdown-timer-container"})
    styles: dict[str, str] = field(default_factory=dict)
    html: str = ""


@dataclass(frozen=True)
class TimeParts:
    days: int
    hours: int
    minutes: int
    seconds: int

    def units(self) -> list[tuple[str, str]]:
        """Label/value pairs to display; days only when non-zero."""
        units = [
            ("hours", f"{self.hours:02d}"),
            ("minutes", f"{self.minutes:02d}"),
            ("seconds", f"{self.seconds:02d}"),
        ]
        if self.days > 0:
            units.insert(0, ("days", f"{self.days:02d}"))
        return units


@dataclass(frozen=True)
class CountdownDisplay:
    """Everything one render puts on the page."""

    text: str
    background_color: str
    text_color: str
    position: str
    urgent: bool
    time: TimeParts


def format_time(remaining_ms: int) -> TimeParts:
    total_seconds = max(0, remaining_ms) // 1000
    return TimeParts(
        days=total_seconds // 86400,
        hours=(total_seconds % 86400) // 3600,
        minutes=(total_seconds % 3600) // 60,
        seconds=total_seconds % 60,
    )


def normalize_product_id(product_id: str) -> str:
    """``gid://shopify/Product/123`` -> ``123``."""
    return product_id.rsplit("/", 1)[-1].strip()


def _instant_ms(value: str) -> int:
    return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp() * 1000)


class CountdownWidget:
    def __init__(
        self,
        container: WidgetContainer,
        client: PublicTimerClient | None,
        store: StartTimeStore,
        *,
        clock: Callable[[], int] = now_ms,
        tick_interval: float = TICK_INTERVAL,
    ) -> None:
        self.container = container
        self.client = client
        self.store = store
        self.clock = clock
        self.tick_interval = tick_interval

        self.state = WidgetState.UNINITIALIZED
        self.timer: dict | None = None
        self.urgent = False
        self.impression_tracked = False
        self._tick_task: asyncio.Task | None = None
        self._impression_task: asyncio.Task | None = None

    # ==================== Lifecycle ====================

    async def init(self) -> WidgetState:
        """Fetch and start displaying. Only the first call does anything."""
        if self.state is not WidgetState.UNINITIALIZED:
            return self.state

        product_id = normalize_product_id(self.container.product_id or "")
        shop = (self.container.shop or "").strip()
        if not product_id or not shop or self.client is None:
            return self.hide()

        self.state = WidgetState.LOADING
        try:
            timer = await self.client.fetch_timer(shop, product_id)
        except Exception as e:
            logger.debug(f"Timer fetch failed for {self.container.container_id}: {e}")
            return self.hide()

        if not timer:
            return self.hide()

        self.timer = timer
        self.state = WidgetState.DISPLAYING
        if self.tick() is not WidgetState.DISPLAYING:
            return self.state

        self._track_impression()
        self.state = WidgetState.TICKING
        self._tick_task = asyncio.create_task(self._run())
        return self.state

    def destroy(self) -> None:
        """Tear down: stop ticking, drop an unsent impression, hide.

        Safe to call more than once. An expired widget stays EXPIRED.
        """
        for task in (self._tick_task, self._impression_task):
            if task is not None and not task.done():
                task.cancel()
        self._tick_task = self._impression_task = None
        if self.state is not WidgetState.EXPIRED:
            self.hide()

    def hide(self, state: WidgetState = WidgetState.HIDDEN) -> WidgetState:
        self.state = state
        self.container.visible = False
        return state

    @property
    def is_ticking(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    async def _run(self) -> None:
        while self.state is WidgetState.TICKING:
            await asyncio.sleep(self.tick_interval)
            if self.state is WidgetState.TICKING:
                self.tick()
        self._tick_task = None

    # ==================== Countdown ====================

    def remaining_ms(self) -> int:
        """Milliseconds left, floored at zero.

        Evergreen timers start on the first observation of this visitor and
        the start instant is persisted per timer id.
        """
        timer = self.timer or {}
        now = self.clock()
        if timer.get("type") == "evergreen":
            started_at = self.store.get_start(timer["id"])
            if started_at is None:
                started_at = now
                self.store.set_start(timer["id"], started_at)
            end = started_at + int(timer["duration"]) * 1000
        else:
            end = _instant_ms(timer["endDate"])
        return max(0, end - now)

    def tick(self) -> WidgetState:
        """Recompute and re-render once. Expires or hides as needed."""
        if self.timer is None or self.state in (WidgetState.HIDDEN, WidgetState.EXPIRED):
            return self.state
        try:
            remaining = self.remaining_ms()
            if remaining <= 0:
                return self.expire()
            self.render(remaining)
        except Exception as e:
            logger.debug(f"Countdown failed for {self.container.container_id}: {e}")
            return self.hide()
        return self.state

    def expire(self) -> WidgetState:
        """Fixed timers stay expired; evergreen ones restart on a later visit."""
        if self.timer and self.timer.get("type") == "evergreen":
            self.store.clear_start(self.timer["id"])
        return self.hide(WidgetState.EXPIRED)

    # ==================== Rendering ====================

    def display_for(self, remaining: int) -> CountdownDisplay:
        appearance = (self.timer or {}).get("appearance") or {}
        return CountdownDisplay(
            text=appearance.get("text") or DEFAULT_TEXT,
            background_color=appearance.get("backgroundColor") or DEFAULT_BACKGROUND_COLOR,
            text_color=appearance.get("textColor") or DEFAULT_TEXT_COLOR,
            position=appearance.get("position") or DEFAULT_POSITION,
            urgent=remaining < URGENT_THRESHOLD_MS,
            time=format_time(remaining),
        )

    def render(self, remaining: int) -> CountdownDisplay:
        display = self.display_for(remaining)
        container = self.container
        self.urgent = display.urgent

        container.classes = {
            c for c in container.classes if not c.startswith("countdown-timer-position-")
        }
        container.classes.add(f"countdown-timer-position-{display.position}")
        if display.urgent:
            container.classes.add("countdown-timer-urgent")
        else:
            container.classes.discard("countdown-timer-urgent")

        container.styles = {
            "background-color": display.background_color,
            "color": display.text_color,
        }
        container.html = render_html(display)
        container.visible = True
        return display

    # ==================== Impressions ====================

    def _track_impression(self) -> None:
        if self.impression_tracked or not self.timer or self.client is None:
            return
        self.impression_tracked = True
        self._impression_task = asyncio.create_task(self._send_impression(self.timer["id"]))

    async def _send_impression(self, timer_id: str) -> None:
        try:
            await self.client.track_impression(timer_id)  # type: ignore[union-attr]
        except Exception as e:
            logger.debug(f"Impression not recorded for timer {timer_id}: {e}")
