"""Repository for the countdown_timers table."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import asyncpg

from shared.cache import AsyncTTLCache, cached
from shared.errors import StorageError
from shared.models.timer import Appearance, Timer, TimerSelection

logger = logging.getLogger(__name__)

# Storefront candidate lookups; short TTL, dropped per shop on every write
_candidate_cache = AsyncTTLCache(maxsize=512, ttl=30)

_COLUMNS = (
    "id, shop, name, type, start_date, end_date, duration, target_type, "
    "target_ids, appearance, status, impressions, created_at, updated_at"
)

# Columns an admin write may set; everything else is owned by storage
WRITABLE_FIELDS = (
    "name",
    "type",
    "start_date",
    "end_date",
    "duration",
    "target_type",
    "target_ids",
    "appearance",
    "status",
)

_STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _row_to_timer(row: asyncpg.Record) -> Timer:
    d = dict(row)
    d["id"] = str(d["id"])
    appearance = d.get("appearance")
    if isinstance(appearance, str):
        appearance = json.loads(appearance)
    d["appearance"] = Appearance(
        **{
            key: value
            for key, value in (appearance or {}).items()
            if key in Appearance.__dataclass_fields__
        }
    )
    d["target_ids"] = list(d.get("target_ids") or [])
    return Timer(**d)


def _column_value(name: str, value):
    if name == "appearance":
        appearance = value if isinstance(value, Appearance) else Appearance()
        return json.dumps(appearance.__dict__)
    if name == "target_ids":
        return list(value or [])
    return value


@asynccontextmanager
async def _storage_errors(message: str) -> AsyncIterator[None]:
    """Translate driver failures into StorageError carrying *message*."""
    try:
        yield
    except _STORAGE_ERRORS as e:
        logger.exception(f"{message}: {type(e).__name__}: {e}")
        raise StorageError(message) from e


def _candidate_prefix(shop: str) -> str:
    return f"timer_candidates:{shop}:"


class TimerRepository:
    """SQL operations for countdown timers, always scoped by shop."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def list_all(self, shop: str) -> list[Timer]:
        """Return every timer of a shop, newest first."""
        async with _storage_errors("Failed to fetch timers"):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {_COLUMNS} FROM countdown_timers "
                    "WHERE shop = $1 ORDER BY created_at DESC",
                    shop,
                )
                return [_row_to_timer(row) for row in rows]

    async def get(self, shop: str, timer_id: UUID) -> Timer | None:
        async with _storage_errors("Failed to fetch timer"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_COLUMNS} FROM countdown_timers WHERE id = $1 AND shop = $2",
                    timer_id,
                    shop,
                )
                return _row_to_timer(row) if row else None

    @cached(
        cache=_candidate_cache,
        key_func=lambda self, selection: selection.cache_key,
    )
    async def find_matching(self, selection: TimerSelection) -> list[Timer]:
        """Return the timers targeting a product page, in storage order.

        Collection targets only match when ``selection.collection_ids``
        overlaps their ids.
        """
        async with _storage_errors("Failed to fetch timer"):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_COLUMNS} FROM countdown_timers
                    WHERE shop = $1 AND (
                        target_type = 'all'
                        OR (target_type = 'products' AND $2 = ANY(target_ids))
                        OR (target_type = 'collections' AND target_ids && $3::text[])
                    )
                    """,
                    selection.shop,
                    selection.product_id,
                    list(selection.collection_ids),
                )
                return [_row_to_timer(row) for row in rows]

    async def insert(self, shop: str, values: dict) -> Timer:
        """Insert a timer. *values* holds WRITABLE_FIELDS keys."""
        columns = [name for name in WRITABLE_FIELDS if name in values]
        params = [_column_value(name, values[name]) for name in columns]
        placeholders = ", ".join(f"${i}" for i in range(2, len(columns) + 2))
        async with _storage_errors("Failed to create timer"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO countdown_timers (shop, {", ".join(columns)})
                    VALUES ($1, {placeholders})
                    RETURNING {_COLUMNS}
                    """,
                    shop,
                    *params,
                )
        self.invalidate_cache(shop)
        return _row_to_timer(row)

    async def update(self, shop: str, timer_id: UUID, values: dict) -> Timer | None:
        """Overwrite the given fields. Last write wins; no version check."""
        columns = [name for name in WRITABLE_FIELDS if name in values]
        if not columns:
            return await self.get(shop, timer_id)
        params = [_column_value(name, values[name]) for name in columns]
        assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(columns, start=3))
        async with _storage_errors("Failed to update timer"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    UPDATE countdown_timers
                    SET {assignments}, updated_at = NOW()
                    WHERE id = $1 AND shop = $2
                    RETURNING {_COLUMNS}
                    """,
                    timer_id,
                    shop,
                    *params,
                )
        self.invalidate_cache(shop)
        return _row_to_timer(row) if row else None

    async def delete(self, shop: str, timer_id: UUID) -> bool:
        """Delete a timer. Returns True if a row was removed."""
        async with _storage_errors("Failed to delete timer"):
            async with self.pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM countdown_timers WHERE id = $1 AND shop = $2",
                    timer_id,
                    shop,
                )
        self.invalidate_cache(shop)
        return result == "DELETE 1"

    async def increment_impressions(self, timer_id: UUID) -> int | None:
        """Atomically add one impression. Returns the new count, or None."""
        async with _storage_errors("Failed to track impression"):
            async with self.pool.acquire() as conn:
                return await conn.fetchval(
                    "UPDATE countdown_timers SET impressions = impressions + 1 "
                    "WHERE id = $1 RETURNING impressions",
                    timer_id,
                )

    def invalidate_cache(self, shop: str) -> None:
        _candidate_cache.invalidate_prefix(_candidate_prefix(shop))
