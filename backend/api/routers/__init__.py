"""API Routers package

Routers are organized by audience: the merchant admin and the storefront.
"""

from . import public_timers_router, timers_router

__all__ = [
    "public_timers_router",
    "timers_router",
]
