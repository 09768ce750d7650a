"""Storefront countdown engine."""

from .client import PublicTimerClient
from .countdown import (
    CountdownDisplay,
    CountdownWidget,
    TimeParts,
    WidgetContainer,
    WidgetState,
    format_time,
)
from .registry import WidgetRegistry
from .render import render_html
from .storage import StartTimeStore

__all__ = [
    "CountdownDisplay",
    "CountdownWidget",
    "PublicTimerClient",
    "StartTimeStore",
    "TimeParts",
    "WidgetContainer",
    "WidgetRegistry",
    "WidgetState",
    "format_time",
    "render_html",
]
