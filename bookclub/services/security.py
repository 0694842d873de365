"""
Password hashing (passlib/bcrypt) and JWTs (python-jose, HS256).

Tokens carry {"sub": "<user id>", "type": "access"|"refresh", "exp": ...}.
The "type" claim keeps a refresh token from being accepted as an access
token and the other way around.
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from bookclub.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# =============================================================================
# JWT
# =============================================================================


def _issue(claims: dict, token_type: str, lifetime: timedelta) -> str:
    payload = {**claims, "type": token_type, "exp": datetime.now(UTC) + lifetime}
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _issue(data, "access", lifetime)


def create_refresh_token(data: dict, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(days=settings.refresh_token_expire_days)
    return _issue(data, "refresh", lifetime)


def create_token_pair(user_id: int) -> dict[str, str]:
    """Access and refresh tokens for a freshly authenticated user."""
    claims = {"sub": str(user_id)}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
        "token_type": "bearer",
    }


def decode_token(token: str) -> dict | None:
    """Payload of a well-signed, unexpired token; None for anything else."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected JWT: {e}")
        return None


def verify_token_type(token: str, expected_type: str) -> dict | None:
    payload = decode_token(token)
    if payload is None:
        return None
    if payload.get("type") != expected_type:
        logger.warning(f"Expected a {expected_type} token, got {payload.get('type')!r}")
        return None
    return payload
