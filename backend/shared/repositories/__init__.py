"""Shared repository layer for the countdown timer backend."""

from .timer import TimerRepository

__all__ = [
    "TimerRepository",
]
