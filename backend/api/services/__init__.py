"""Services layer - Business logic

Services are initialized with their dependencies and accessed through
dependency injection.
"""

from .auth_service import AuthService
from .timer_service import TimerService

__all__ = [
    "AuthService",
    "TimerService",
]
