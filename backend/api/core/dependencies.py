"""Dependency injection utilities for FastAPI"""

import logging

import asyncpg
from fastapi import Cookie, Depends, HTTPException, Query

from core.config import get_settings
from core.database import get_database_manager
from services import AuthService, TimerService
from shared.errors import ValidationError

logger = logging.getLogger(__name__)


# ============================================
# Service Dependencies
# ============================================


def get_auth_service() -> AuthService:
    """Get AuthService instance (dependency injection)"""
    settings = get_settings()
    return AuthService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_days=settings.jwt_expire_days,
    )


def get_db_pool() -> asyncpg.Pool:
    db_manager = get_database_manager()
    if not db_manager.is_connected:
        raise HTTPException(status_code=503, detail="Database not ready")
    return db_manager.pool


def get_timer_service(pool: asyncpg.Pool = Depends(get_db_pool)) -> TimerService:
    """Get TimerService instance (dependency injection)"""
    return TimerService(pool)


# ============================================
# Shop Identity
#
# Two separate strategies on purpose: admin routes trust only the verified
# session, storefront routes take the shop the widget declares.
# ============================================


async def get_current_shop(auth_token: str | None = Cookie(None)) -> str:
    """Shop from the verified admin session cookie"""
    if not auth_token:
        logger.warning("No auth token provided")
        raise HTTPException(status_code=401, detail="Not logged in")

    payload = get_auth_service().verify_token(auth_token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return str(payload["shop"])


async def get_declared_shop(shop: str | None = Query(None)) -> str:
    """Shop named by the storefront's ``?shop=`` parameter (untrusted)"""
    if not shop or not shop.strip():
        raise ValidationError("Shop parameter is required")
    return shop.strip()
