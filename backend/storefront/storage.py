"""Durable per-visitor start instants for evergreen timers."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

KEY_PREFIX = "countdown_timer_"


def start_key(timer_id: str) -> str:
    return f"{KEY_PREFIX}{timer_id}"


class StartTimeStore:
    """Visitor-local key/value store backed by one JSON file.

    Survives restarts of the visitor's session but is never shared between
    visitors or devices. Values are epoch milliseconds. Read and write
    errors propagate.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, int]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _save(self, data: dict[str, int]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        os.replace(tmp, self.path)

    def get_start(self, timer_id: str) -> int | None:
        value = self._load().get(start_key(timer_id))
        return int(value) if value is not None else None

    def set_start(self, timer_id: str, started_at_ms: int) -> None:
        data = self._load()
        data[start_key(timer_id)] = int(started_at_ms)
        self._save(data)

    def clear_start(self, timer_id: str) -> None:
        data = self._load()
        if data.pop(start_key(timer_id), None) is not None:
            self._save(data)
            logger.debug(f"Cleared evergreen start for timer {timer_id}")
