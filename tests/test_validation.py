"""
Tests for timer input validation.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from services.validation import (
    parse_instant,
    sanitize_text,
    validate_appearance,
    validate_color,
    validate_timer_input,
    validate_timer_name,
    validate_timer_record,
)
from shared.errors import ValidationError
from shared.models.timer import Appearance

DEFAULT_APPEARANCE = Appearance(
    background_color="#000000", text_color="#FFFFFF", position="top", text="Hurry! Sale ends in"
)


class TestValidateColor:
    @pytest.mark.parametrize("color", ["#fff", "#FFFFFF", "#a1B2c3", "  #abc  "])
    def test_accepts_hex(self, color):
        assert validate_color(color, "#000000") == color.strip()

    @pytest.mark.parametrize("color", ["red", "#12", "#1234", "fff", "#ggg", "", None, 123])
    def test_rejects_to_default(self, color):
        assert validate_color(color, "#123456") == "#123456"


class TestSanitizeText:
    def test_trims_and_truncates(self):
        assert sanitize_text("  hello  ", 100) == "hello"
        assert sanitize_text("x" * 150, 100) == "x" * 100

    def test_non_string_is_empty(self):
        assert sanitize_text(None) == ""
        assert sanitize_text(42) == ""


class TestValidateAppearance:
    @pytest.mark.parametrize("value", [None, "nope", 7, [], {}])
    def test_defaults_for_missing_or_non_object(self, value):
        assert validate_appearance(value) == DEFAULT_APPEARANCE

    def test_keeps_valid_fields(self):
        result = validate_appearance(
            {"backgroundColor": "#fff", "textColor": "#000", "position": "bottom", "text": " Go "}
        )
        assert result == Appearance("#fff", "#000", "bottom", "Go")

    def test_replaces_invalid_fields(self):
        result = validate_appearance(
            {"backgroundColor": "red", "textColor": "#12", "position": "left", "text": "   "}
        )
        assert result == DEFAULT_APPEARANCE

    def test_truncates_text(self):
        result = validate_appearance({"text": "a" * 250})
        assert result.text == "a" * 100

    def test_truncation_at_space_drops_trailing_space(self):
        result = validate_appearance({"text": "a" * 99 + " tail"})
        assert result.text == "a" * 99

    def test_accepts_attribute_keys(self):
        result = validate_appearance({"background_color": "#abc", "text_color": "#def"})
        assert result.background_color == "#abc"
        assert result.text_color == "#def"

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "garbage",
            {"backgroundColor": "blue", "position": "middle", "text": "x" * 300},
            {"textColor": "#ABCDEF", "text": "  Last chance  "},
            {"text": "a" * 99 + " tail"},
        ],
    )
    def test_idempotent(self, value):
        once = validate_appearance(value)
        assert validate_appearance(once) == once
        assert validate_appearance(once.to_dict()) == once


class TestValidateTimerName:
    def test_trims(self):
        assert validate_timer_name("  Summer Sale ") == "Summer Sale"

    def test_truncates_to_200(self):
        assert len(validate_timer_name("n" * 250)) == 200

    def test_truncation_is_stable(self):
        name = validate_timer_name("n" * 199 + " more")
        assert name == "n" * 199
        assert validate_timer_name(name) == name

    @pytest.mark.parametrize("name", ["", "   ", None, 12])
    def test_rejects_empty(self, name):
        with pytest.raises(ValidationError):
            validate_timer_name(name)


class TestParseInstant:
    def test_naive_is_utc(self):
        assert parse_instant("2025-06-01T10:00:00", "startDate") == datetime(
            2025, 6, 1, 10, tzinfo=UTC
        )

    def test_z_suffix(self):
        assert parse_instant("2025-06-01T10:00:00Z", "startDate").tzinfo is not None

    def test_offset_converted_to_utc(self):
        value = datetime(2025, 6, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        assert parse_instant(value, "startDate") == datetime(2025, 6, 1, 10, tzinfo=UTC)

    def test_blank_is_none(self):
        assert parse_instant("", "startDate") is None
        assert parse_instant(None, "startDate") is None

    def test_invalid_format(self):
        with pytest.raises(ValidationError, match="Invalid endDate format"):
            parse_instant("not-a-date", "endDate")


class TestValidateTimerInput:
    def test_only_present_fields_returned(self):
        assert validate_timer_input({"name": " Sale "}) == {"name": "Sale"}

    def test_invalid_type(self):
        with pytest.raises(ValidationError, match="Invalid timer type"):
            validate_timer_input({"type": "weekly"})

    def test_invalid_target_type(self):
        with pytest.raises(ValidationError, match="Invalid target type"):
            validate_timer_input({"target_type": "tags"})

    def test_target_ids_must_be_list(self):
        with pytest.raises(ValidationError, match="targetIds must be an array"):
            validate_timer_input({"target_ids": "p1"})

    def test_target_ids_blank_entries_dropped(self):
        result = validate_timer_input({"target_ids": ["p1", " ", "", 5, " p2 "]})
        assert result["target_ids"] == ["p1", "p2"]

    def test_end_before_start(self):
        with pytest.raises(ValidationError, match="endDate must be after startDate"):
            validate_timer_input(
                {"start_date": "2025-06-30T00:00:00Z", "end_date": "2025-06-01T00:00:00Z"}
            )

    @pytest.mark.parametrize("duration", [0, -5, "abc", 1.5, True])
    def test_bad_duration(self, duration):
        with pytest.raises(ValidationError, match="Duration must be a positive number"):
            validate_timer_input({"duration": duration})

    def test_duration_coerced(self):
        assert validate_timer_input({"duration": "3600"})["duration"] == 3600

    def test_duration_capped_to_column_range(self):
        assert validate_timer_input({"duration": 2**31 - 1})["duration"] == 2**31 - 1
        with pytest.raises(ValidationError, match="must not exceed"):
            validate_timer_input({"duration": 10**10})

    def test_huge_duration_is_rejected_not_overflowed(self):
        with pytest.raises(ValidationError):
            validate_timer_input({"duration": 10**400})

    def test_appearance_normalized(self):
        result = validate_timer_input({"appearance": {"position": "sideways"}})
        assert result["appearance"] == DEFAULT_APPEARANCE

    def test_status_must_be_known(self):
        with pytest.raises(ValidationError, match="Invalid status"):
            validate_timer_input({"status": "paused"})


class TestValidateTimerRecord:
    def base(self, **kwargs):
        values = {"name": "Sale", "type": "evergreen", "duration": 60, "target_type": "all"}
        values.update(kwargs)
        return values

    def test_valid_evergreen(self):
        validate_timer_record(self.base())

    def test_evergreen_requires_duration(self):
        with pytest.raises(ValidationError, match="require a positive duration"):
            validate_timer_record(self.base(duration=None))

    def test_fixed_requires_dates(self):
        with pytest.raises(ValidationError, match="require startDate and endDate"):
            validate_timer_record(self.base(type="fixed", start_date=datetime(2025, 1, 1)))

    def test_type_required(self):
        with pytest.raises(ValidationError, match="Invalid timer type"):
            validate_timer_record(self.base(type=None))

    def test_targets_required_unless_all(self):
        with pytest.raises(ValidationError, match="targetIds must not be empty"):
            validate_timer_record(self.base(target_type="products", target_ids=[]))
        validate_timer_record(self.base(target_type="collections", target_ids=["c1"]))
