"""Timer service: business-logic layer for countdown timers."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

import asyncpg

from shared.errors import MalformedIdentifierError, NotFoundError, ValidationError
from shared.models.timer import Timer
from shared.repositories.timer import WRITABLE_FIELDS, TimerRepository

from .timer_rules import (
    build_timer_selection,
    format_public_timer,
    format_timer_for_response,
    pick_public_timer,
    resolve_status,
)
from .validation import validate_appearance, validate_timer_input, validate_timer_record

logger = logging.getLogger(__name__)


def parse_timer_id(timer_id: str | None) -> UUID:
    """Turn a client supplied id into a storage key."""
    if not timer_id or not timer_id.strip():
        raise ValidationError("Timer ID is required")
    try:
        return UUID(timer_id.strip())
    except ValueError as e:
        raise MalformedIdentifierError("Invalid timer ID") from e


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TimerService:
    """Tenant-scoped timer CRUD plus the storefront read path.

    Admin methods take the verified session shop; the storefront methods take
    the shop the widget declares. Both arrive here as plain strings, and it is
    the router's dependency that decides which one is trusted.
    """

    def __init__(
        self,
        pool: asyncpg.Pool | None = None,
        *,
        repo: TimerRepository | None = None,
        clock=_utcnow,
    ) -> None:
        if repo is None:
            if pool is None:
                raise ValueError("TimerService needs a pool or a repository")
            repo = TimerRepository(pool)
        self.repo = repo
        self.clock = clock

    # ==================== Admin ====================

    async def list_timers(self, shop: str) -> list[dict]:
        now = self.clock()
        timers = await self.repo.list_all(shop)
        return [format_timer_for_response(t, now) for t in timers]

    async def get_timer(self, shop: str, timer_id: str) -> dict:
        timer = await self._get_owned(shop, parse_timer_id(timer_id))
        return format_timer_for_response(timer, self.clock())

    async def create_timer(self, shop: str, data: dict) -> dict:
        values = validate_timer_input(data)
        values.setdefault("target_type", "all")
        values.setdefault("target_ids", [])
        if "appearance" not in values:
            values["appearance"] = validate_appearance(None)
        validate_timer_record(values)

        now = self.clock()
        if values["type"] == "fixed":
            values["status"] = resolve_status(Timer(id="", shop=shop, **values), now)
        else:
            values.setdefault("status", "active")

        timer = await self.repo.insert(shop, values)
        logger.info(f"Timer created: {timer.id} ({timer.type}) for {shop}")
        return format_timer_for_response(timer, now)

    async def update_timer(self, shop: str, timer_id: str, data: dict) -> dict:
        """Merge a partial update onto the stored timer. Last write wins."""
        key = parse_timer_id(timer_id)
        changes = validate_timer_input(data)
        existing = await self._get_owned(shop, key)

        merged = {name: getattr(existing, name) for name in WRITABLE_FIELDS}
        merged.update(changes)
        validate_timer_record(merged)

        now = self.clock()
        if merged["type"] == "fixed":
            changes["status"] = resolve_status(Timer(id=existing.id, shop=shop, **merged), now)
        elif existing.type == "fixed" and "status" not in changes:
            changes["status"] = "active"

        timer = await self.repo.update(shop, key, changes)
        if timer is None:
            raise NotFoundError("Timer not found")
        logger.info(f"Timer updated: {timer.id} for {shop}")
        return format_timer_for_response(timer, now)

    async def delete_timer(self, shop: str, timer_id: str) -> None:
        deleted = await self.repo.delete(shop, parse_timer_id(timer_id))
        if not deleted:
            raise NotFoundError("Timer not found")
        logger.info(f"Timer deleted: {timer_id} for {shop}")

    async def _get_owned(self, shop: str, key: UUID) -> Timer:
        timer = await self.repo.get(shop, key)
        if timer is None:
            raise NotFoundError("Timer not found")
        return timer

    # ==================== Storefront ====================

    async def select_public_timer(
        self, shop: str, product_id: str, now: datetime | None = None
    ) -> dict | None:
        """The one timer to show on a product page, or None to hide the widget."""
        selection = build_timer_selection(shop, product_id)
        candidates = await self.repo.find_matching(selection)
        timer = pick_public_timer(candidates, now or self.clock())
        return format_public_timer(timer) if timer else None

    async def track_impression(self, timer_id: str | None) -> int:
        """Count one storefront impression. Returns the new total."""
        impressions = await self.repo.increment_impressions(parse_timer_id(timer_id))
        if impressions is None:
            raise NotFoundError("Timer not found")
        return impressions
