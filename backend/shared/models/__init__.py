"""Shared data models for the countdown timer backend."""

from .timer import Appearance, Timer, TimerSelection

__all__ = [
    "Appearance",
    "Timer",
    "TimerSelection",
]
