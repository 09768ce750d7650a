"""Countdown timer admin API routes."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.dependencies import get_current_shop, get_timer_service
from services import TimerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/timers", tags=["timers"])


# ============================================
# Request Models
# ============================================


class TimerWrite(BaseModel):
    """Timer fields as the admin UI sends them (camelCase).

    Types are loose on purpose where the service normalizes the value
    itself (appearance, targetIds); only the fields present in the request
    are applied on update.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str | None = None
    type: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    duration: int | None = None
    target_type: str | None = None
    target_ids: list[Any] | None = None
    appearance: Any = None
    status: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ============================================
# Endpoints
# ============================================


@router.get("")
async def list_timers(
    shop: str = Depends(get_current_shop),
    service: TimerService = Depends(get_timer_service),
) -> dict:
    """All timers of the authenticated shop, newest first."""
    return {"timers": await service.list_timers(shop)}


@router.post("", status_code=201)
async def create_timer(
    body: TimerWrite,
    shop: str = Depends(get_current_shop),
    service: TimerService = Depends(get_timer_service),
) -> dict:
    return {"timer": await service.create_timer(shop, body.changes())}


@router.get("/{timer_id}")
async def get_timer(
    timer_id: str,
    shop: str = Depends(get_current_shop),
    service: TimerService = Depends(get_timer_service),
) -> dict:
    return {"timer": await service.get_timer(shop, timer_id)}


@router.put("/{timer_id}")
async def update_timer(
    timer_id: str,
    body: TimerWrite,
    shop: str = Depends(get_current_shop),
    service: TimerService = Depends(get_timer_service),
) -> dict:
    """Partial update; omitted fields keep their stored value."""
    return {"timer": await service.update_timer(shop, timer_id, body.changes())}


@router.delete("/{timer_id}")
async def delete_timer(
    timer_id: str,
    shop: str = Depends(get_current_shop),
    service: TimerService = Depends(get_timer_service),
) -> dict:
    await service.delete_timer(shop, timer_id)
    return {"message": "Timer deleted successfully"}
