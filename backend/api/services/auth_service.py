"""JWT session tokens for the merchant admin"""

import logging
from datetime import UTC, datetime, timedelta

import jwt

logger = logging.getLogger(__name__)


class AuthService:
    """Issue and verify the admin session token that names the current shop"""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_days: int = 30):
        if not secret_key:
            raise ValueError("JWT secret key cannot be empty")

        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_days = expire_days

    def create_access_token(self, shop: str) -> str:
        """Create a session token for a shop that completed the auth handshake"""
        now = datetime.now(UTC)
        payload = {
            "sub": shop,
            "shop": shop,
            "exp": now + timedelta(days=self.expire_days),
            "iat": now,
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"Session token created for shop: {shop}")
        return token

    def verify_token(self, token: str) -> dict | None:
        """Return the payload of a valid token, None otherwise"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            return None

        if not payload.get("shop"):
            logger.warning("Token missing shop claim")
            return None
        return payload
