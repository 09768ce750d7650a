"""Storefront timer API routes (unauthenticated, CORS open)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response

from core.config import get_settings
from core.dependencies import get_declared_shop, get_timer_service
from services import TimerService
from shared.errors import ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/api/timers/public"

router = APIRouter(prefix=PUBLIC_PREFIX, tags=["storefront"])


# Registered before /{product_id} so "impression" is not read as a product id
@router.get("/impression")
async def track_impression(
    timer_id: str | None = Query(None, alias="timerId"),
    service: TimerService = Depends(get_timer_service),
) -> dict:
    impressions = await service.track_impression(timer_id)
    return {"success": True, "impressions": impressions}


@router.get("/{product_id}")
async def get_public_timer(
    product_id: str,
    response: Response,
    shop: str = Depends(get_declared_shop),
    service: TimerService = Depends(get_timer_service),
) -> dict:
    """The timer to show on a product page; ``null`` means hide the widget."""
    product_id = product_id.strip()
    if not product_id:
        raise ValidationError("Product ID is required")

    timer = await service.select_public_timer(shop, product_id)
    response.headers["Cache-Control"] = f"public, max-age={get_settings().public_cache_max_age}"
    return {"timer": timer}
