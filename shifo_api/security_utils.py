"""
Security utilities
Password hashing (passlib/bcrypt) and signed JWT helpers (python-jose)
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRES_IN, JWT_ISSUER, JWT_SECRET

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

_DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


class InvalidToken(Exception):
    """Raised when a token fails signature, issuer or expiry checks"""


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against bcrypt hash"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# JWT TOKENS
# ============================================================================


def parse_expires_in(value: str = JWT_EXPIRES_IN) -> timedelta:
    """Convert an expiry string like '7d' or '12h' into a timedelta"""
    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid JWT_EXPIRES_IN value: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def create_access_token(claims: dict[str, Any], expires_in: str = JWT_EXPIRES_IN) -> str:
    """Sign a JWT with the platform issuer and configured expiry"""
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iss": JWT_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + parse_expires_in(expires_in)).timestamp()),
    }
    return jose_jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature, issuer and expiry and return the claims"""
    try:
        return jose_jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM], issuer=JWT_ISSUER)
    except JWTError as e:
        raise InvalidToken(str(e)) from e
