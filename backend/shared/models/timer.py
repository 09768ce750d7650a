"""Countdown timer models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

TIMER_TYPES = ("fixed", "evergreen")
TARGET_TYPES = ("all", "products", "collections")
TIMER_STATUSES = ("active", "scheduled", "expired")
POSITIONS = ("top", "middle", "bottom")

DEFAULT_BACKGROUND_COLOR = "#000000"
DEFAULT_TEXT_COLOR = "#FFFFFF"
DEFAULT_POSITION = "top"
DEFAULT_TEXT = "Hurry! Sale ends in"


@dataclass
class Appearance:
    background_color: str = DEFAULT_BACKGROUND_COLOR
    text_color: str = DEFAULT_TEXT_COLOR
    position: str = DEFAULT_POSITION
    text: str = DEFAULT_TEXT

    def to_dict(self) -> dict:
        """Wire format (camelCase keys)."""
        return {
            "backgroundColor": self.background_color,
            "textColor": self.text_color,
            "position": self.position,
            "text": self.text,
        }


@dataclass
class Timer:
    id: str
    shop: str
    name: str
    type: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    duration: int | None = None
    target_type: str = "all"
    target_ids: list[str] = field(default_factory=list)
    appearance: Appearance = field(default_factory=Appearance)
    status: str | None = "scheduled"
    impressions: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TimerSelection:
    """Criteria for the candidate timers of one product page.

    ``collection_ids`` holds the collections the product belongs to. Nothing
    resolves collection membership yet, so it is always empty and
    collection-targeted timers never match.
    """

    shop: str
    product_id: str
    collection_ids: tuple[str, ...] = ()

    @property
    def cache_key(self) -> str:
        collections = ",".join(sorted(self.collection_ids))
        return f"timer_candidates:{self.shop}:{self.product_id}:{collections}"
