"""Input validation for timer writes.

Cosmetic fields (colors, position, banner text) degrade to defaults and never
fail. Identity and scheduling fields (name, type, dates, duration, targets)
raise ValidationError before anything reaches storage.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from shared.errors import ValidationError
from shared.models.timer import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_POSITION,
    DEFAULT_TEXT,
    DEFAULT_TEXT_COLOR,
    POSITIONS,
    TARGET_TYPES,
    TIMER_STATUSES,
    TIMER_TYPES,
    Appearance,
)

_HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")

NAME_MAX_LENGTH = 200
TEXT_MAX_LENGTH = 100
# countdown_timers.duration is a 32-bit INTEGER column
MAX_DURATION = 2**31 - 1


def validate_color(value: Any, default: str = DEFAULT_BACKGROUND_COLOR) -> str:
    """Return the trimmed color if it is ``#rgb`` or ``#rrggbb``, else *default*."""
    if not isinstance(value, str):
        return default
    trimmed = value.strip()
    return trimmed if _HEX_COLOR_RE.match(trimmed) else default


def sanitize_text(value: Any, max_length: int = TEXT_MAX_LENGTH) -> str:
    """Trim, silently truncate, trim again. Non-strings become ``""``."""
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_length].rstrip()


def validate_appearance(value: Any) -> Appearance:
    """Normalize any input into a fully populated Appearance. Never raises.

    Accepts an Appearance, or a mapping with wire (camelCase) or attribute
    (snake_case) keys.
    """
    if isinstance(value, Appearance):
        value = value.to_dict()
    if not isinstance(value, Mapping):
        return Appearance()

    def pick(camel: str, snake: str) -> Any:
        return value[camel] if camel in value else value.get(snake)

    position = pick("position", "position")
    return Appearance(
        background_color=validate_color(
            pick("backgroundColor", "background_color"), DEFAULT_BACKGROUND_COLOR
        ),
        text_color=validate_color(pick("textColor", "text_color"), DEFAULT_TEXT_COLOR),
        position=position if position in POSITIONS else DEFAULT_POSITION,
        text=sanitize_text(pick("text", "text"), TEXT_MAX_LENGTH) or DEFAULT_TEXT,
    )


def validate_timer_name(value: Any) -> str:
    name = sanitize_text(value, NAME_MAX_LENGTH)
    if not name:
        raise ValidationError("Timer name is required and cannot be empty")
    return name


def parse_instant(value: Any, field: str) -> datetime | None:
    """ISO-8601 string or datetime to an aware UTC datetime; naive means UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationError(f"Invalid {field} format") from e
    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid {field} format")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _validate_duration(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        raise ValidationError("Duration must be a positive number (in seconds)")
    try:
        number = float(value)
    except (ValueError, OverflowError) as e:
        raise ValidationError("Duration must be a positive number (in seconds)") from e
    if number <= 0 or not number.is_integer():
        raise ValidationError("Duration must be a positive number (in seconds)")
    if number > MAX_DURATION:
        raise ValidationError(f"Duration must not exceed {MAX_DURATION} seconds")
    return int(number)


def _validate_choice(value: Any, choices: tuple[str, ...], label: str) -> str:
    if value not in choices:
        raise ValidationError(f"Invalid {label}. Must be one of: {', '.join(choices)}")
    return value


def validate_timer_input(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate the fields present in *data* (snake_case keys).

    Only keys that are present are returned, so the result doubles as a
    partial update. Whole-record requirements are checked separately by
    :func:`validate_timer_record`.
    """
    values: dict[str, Any] = {}

    if "name" in data:
        values["name"] = validate_timer_name(data["name"])

    if "type" in data:
        values["type"] = _validate_choice(data["type"], TIMER_TYPES, "timer type")

    if "target_type" in data:
        values["target_type"] = _validate_choice(data["target_type"], TARGET_TYPES, "target type")

    if "target_ids" in data:
        target_ids = data["target_ids"]
        if target_ids is None:
            target_ids = []
        if not isinstance(target_ids, list | tuple):
            raise ValidationError("targetIds must be an array")
        values["target_ids"] = [
            tid.strip() for tid in target_ids if isinstance(tid, str) and tid.strip()
        ]

    if "appearance" in data:
        values["appearance"] = validate_appearance(data["appearance"])

    for field, label in (("start_date", "startDate"), ("end_date", "endDate")):
        if field in data:
            values[field] = parse_instant(data[field], label)

    if "duration" in data:
        values["duration"] = _validate_duration(data["duration"])

    if data.get("status") is not None:
        values["status"] = _validate_choice(data["status"], TIMER_STATUSES, "status")

    start, end = values.get("start_date"), values.get("end_date")
    if start is not None and end is not None and start >= end:
        raise ValidationError("endDate must be after startDate")

    return values


def validate_timer_record(values: Mapping[str, Any]) -> None:
    """Whole-record requirements for a timer about to be stored."""
    if not values.get("name"):
        raise ValidationError("Timer name is required and cannot be empty")

    timer_type = values.get("type")
    if timer_type not in TIMER_TYPES:
        raise ValidationError(f"Invalid timer type. Must be one of: {', '.join(TIMER_TYPES)}")

    if timer_type == "fixed":
        start, end = values.get("start_date"), values.get("end_date")
        if start is None or end is None:
            raise ValidationError("Fixed timers require startDate and endDate")
        if start >= end:
            raise ValidationError("endDate must be after startDate")
    elif not values.get("duration"):
        raise ValidationError("Evergreen timers require a positive duration (in seconds)")

    if values.get("target_type", "all") != "all" and not values.get("target_ids"):
        raise ValidationError("targetIds must not be empty unless targetType is 'all'")
