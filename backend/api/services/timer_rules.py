"""Timer status, storefront visibility and target selection rules.

Everything here is pure: callers inject ``now`` so results are
deterministic.
"""

from __future__ import annotations

from datetime import datetime

from shared.models.timer import Timer, TimerSelection


def resolve_status(timer: Timer, now: datetime) -> str:
    """Admin-facing status label.

    Evergreen timers keep their stored status (``active`` when unset). Fixed
    timers are derived from their window, inclusive at both ends; a fixed
    timer missing either date is ``scheduled``, never shown as active.
    """
    if timer.type != "fixed":
        return timer.status or "active"

    if timer.start_date is None or timer.end_date is None:
        return "scheduled"
    if now < timer.start_date:
        return "scheduled"
    if now <= timer.end_date:
        return "active"
    return "expired"


def is_timer_active(timer: Timer, now: datetime) -> bool:
    """Whether the storefront should show the timer right now."""
    if timer.type == "evergreen":
        return timer.status == "active"

    if timer.start_date is None or timer.end_date is None:
        return False
    return timer.start_date <= now <= timer.end_date


def build_timer_selection(shop: str, product_id: str) -> TimerSelection:
    """Candidate criteria for a product page.

    Matches ``all`` timers and ``products`` timers listing the product.
    Collection membership is not resolved, so the selection carries no
    collection ids and collection-targeted timers never match.
    """
    return TimerSelection(shop=shop, product_id=product_id)


def pick_public_timer(candidates: list[Timer], now: datetime) -> Timer | None:
    """First active candidate in storage order.

    There is no ranking between overlapping timers; storage order decides.
    """
    return next((t for t in candidates if is_timer_active(t, now)), None)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def format_public_timer(timer: Timer) -> dict:
    """Minimal storefront payload. Never includes dates other than the end,
    the shop, impressions or status."""
    return {
        "id": timer.id,
        "type": timer.type,
        "endDate": _isoformat(timer.end_date),
        "duration": timer.duration,
        "appearance": timer.appearance.to_dict(),
    }


def format_timer_for_response(timer: Timer, now: datetime) -> dict:
    """Admin payload with the status resolved at *now*."""
    return {
        "id": timer.id,
        "shop": timer.shop,
        "name": timer.name,
        "type": timer.type,
        "startDate": _isoformat(timer.start_date),
        "endDate": _isoformat(timer.end_date),
        "duration": timer.duration,
        "targetType": timer.target_type,
        "targetIds": list(timer.target_ids),
        "appearance": timer.appearance.to_dict(),
        "status": resolve_status(timer, now),
        "impressions": timer.impressions,
        "createdAt": _isoformat(timer.created_at),
        "updatedAt": _isoformat(timer.updated_at),
    }
