"""
Tests for timer status, storefront visibility and target selection rules.
"""

from datetime import UTC, datetime, timedelta

import pytest

from services.timer_rules import (
    build_timer_selection,
    format_public_timer,
    format_timer_for_response,
    is_timer_active,
    pick_public_timer,
    resolve_status,
)
from shared.models.timer import Appearance, Timer, TimerSelection

START = datetime(2025, 6, 1, tzinfo=UTC)
END = datetime(2025, 6, 30, tzinfo=UTC)


def fixed(**kwargs) -> Timer:
    fields = {"id": "t1", "shop": "s1", "name": "Sale", "type": "fixed"}
    fields.update(start_date=START, end_date=END)
    fields.update(kwargs)
    return Timer(**fields)


def evergreen(**kwargs) -> Timer:
    fields = {"id": "t2", "shop": "s1", "name": "Flash", "type": "evergreen", "duration": 3600}
    fields.update(kwargs)
    return Timer(**fields)


class TestResolveStatus:
    """Admin-facing status label."""

    @pytest.mark.parametrize(
        "now, expected",
        [
            (datetime(2025, 1, 1, tzinfo=UTC), "scheduled"),
            (START - timedelta(microseconds=1), "scheduled"),
            (START, "active"),
            (datetime(2025, 6, 15, tzinfo=UTC), "active"),
            (END, "active"),
            (END + timedelta(microseconds=1), "expired"),
            (datetime(2025, 7, 1, tzinfo=UTC), "expired"),
        ],
    )
    def test_fixed_window(self, now, expected):
        """Window is inclusive at both ends."""
        assert resolve_status(fixed(), now) == expected

    @pytest.mark.parametrize("missing", ["start_date", "end_date"])
    def test_fixed_missing_date_is_scheduled(self, missing):
        """Incomplete fixed timers are never active or expired."""
        timer = fixed(**{missing: None})
        for now in (START, datetime(2025, 6, 15, tzinfo=UTC), datetime(2030, 1, 1, tzinfo=UTC)):
            assert resolve_status(timer, now) == "scheduled"

    def test_fixed_ignores_stored_status(self):
        timer = fixed(status="active")
        assert resolve_status(timer, datetime(2025, 7, 1, tzinfo=UTC)) == "expired"

    @pytest.mark.parametrize("stored", ["active", "scheduled", "expired"])
    def test_evergreen_returns_stored_status(self, stored):
        assert resolve_status(evergreen(status=stored), START) == stored

    def test_evergreen_defaults_to_active(self):
        assert resolve_status(evergreen(status=None), START) == "active"


class TestIsTimerActive:
    """Storefront visibility."""

    def test_fixed_inside_window(self):
        assert is_timer_active(fixed(), datetime(2025, 6, 15, tzinfo=UTC)) is True

    def test_fixed_after_window(self):
        assert is_timer_active(fixed(), datetime(2025, 7, 1, tzinfo=UTC)) is False

    def test_fixed_before_window(self):
        assert is_timer_active(fixed(), datetime(2025, 5, 15, tzinfo=UTC)) is False

    def test_fixed_boundaries(self):
        assert is_timer_active(fixed(), START) is True
        assert is_timer_active(fixed(), END) is True

    def test_fixed_missing_dates(self):
        assert is_timer_active(fixed(start_date=None, end_date=None), START) is False

    def test_evergreen_trusts_stored_status(self):
        assert is_timer_active(evergreen(status="active"), START) is True
        assert is_timer_active(evergreen(status="scheduled"), START) is False

    def test_evergreen_without_status_is_hidden(self):
        """Unlike the admin label, an unset status is not shown publicly."""
        assert is_timer_active(evergreen(status=None), START) is False


class TestSelection:
    def test_selection_never_carries_collections(self):
        selection = build_timer_selection("s1", "p1")
        assert selection.shop == "s1"
        assert selection.product_id == "p1"
        assert selection.collection_ids == ()

    def test_cache_key_is_per_shop_and_product(self):
        assert build_timer_selection("s1", "p1").cache_key == "timer_candidates:s1:p1:"

    def test_cache_key_includes_collections(self):
        with_collections = TimerSelection(shop="s1", product_id="p1", collection_ids=("c2", "c1"))
        assert with_collections.cache_key == "timer_candidates:s1:p1:c1,c2"
        assert with_collections.cache_key != build_timer_selection("s1", "p1").cache_key

    def test_pick_first_active_in_order(self):
        now = datetime(2025, 6, 15, tzinfo=UTC)
        expired = fixed(id="a", end_date=datetime(2025, 6, 2, tzinfo=UTC))
        first = evergreen(id="b", status="active")
        second = fixed(id="c")
        assert pick_public_timer([expired, first, second], now) is first

    def test_pick_none_when_nothing_active(self):
        now = datetime(2025, 7, 15, tzinfo=UTC)
        assert pick_public_timer([fixed(), evergreen(status="expired")], now) is None
        assert pick_public_timer([], now) is None


class TestFormatting:
    def test_public_view_is_minimal(self):
        timer = fixed(impressions=42, appearance=Appearance(text="Go"))
        view = format_public_timer(timer)
        assert view == {
            "id": "t1",
            "type": "fixed",
            "endDate": END.isoformat(),
            "duration": None,
            "appearance": {
                "backgroundColor": "#000000",
                "textColor": "#FFFFFF",
                "position": "top",
                "text": "Go",
            },
        }

    def test_public_view_for_evergreen(self):
        view = format_public_timer(evergreen(status="active"))
        assert view["duration"] == 3600
        assert view["endDate"] is None
        for hidden in ("startDate", "shop", "impressions", "status"):
            assert hidden not in view

    def test_admin_view_resolves_status(self):
        timer = fixed(status="scheduled")
        body = format_timer_for_response(timer, datetime(2025, 6, 15, tzinfo=UTC))
        assert body["status"] == "active"
        assert body["startDate"] == START.isoformat()
        assert body["targetType"] == "all"
        assert body["targetIds"] == []
