"""Storefront markup for a countdown display."""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .countdown import CountdownDisplay


def _unit(label: str, value: str) -> str:
    return (
        f'<div class="countdown-timer-unit countdown-timer-{label}">'
        f'<span class="countdown-timer-value">{value}</span>'
        f'<span class="countdown-timer-label">{label.capitalize()}</span>'
        "</div>"
    )


def render_html(display: CountdownDisplay) -> str:
    """Inner HTML of the timer container."""
    units = "".join(_unit(label, value) for label, value in display.time.units())
    return (
        '<div class="countdown-timer-display">'
        f'<div class="countdown-timer-text">{escape(display.text)}</div>'
        f'<div class="countdown-timer-time">{units}</div>'
        "</div>"
    )
