"""
Security utilities for Stocklet
Password hashing and the signed session token lifecycle
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash"""
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    """Generate password hash"""
    return pwd_context.hash(password)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    jti: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenClaims:
    """Decoded claims of a verified session token"""
    user_id: int
    email: str
    jti: str
    expires_at: datetime

    @property
    def exp(self) -> int:
        return int(self.expires_at.timestamp())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: int, email: str, now: Optional[datetime] = None) -> IssuedToken:
    """
    Create a signed session token with a fresh jti.

    Args:
        user_id: Owner of the session
        email: Owner's email, carried so refreshes need no lookup
        now: Issue time, defaults to the current UTC time

    Returns:
        The encoded token together with its jti and expiry
    """
    issued_at = now or utcnow()
    expires_at = issued_at + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    jti = str(uuid.uuid4())

    claims = {
        "sub": str(user_id),
        "email": email,
        "jti": jti,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return IssuedToken(token=token, jti=jti, expires_at=expires_at.replace(microsecond=0))


def decode_access_token(token: Optional[str]) -> Optional[TokenClaims]:
    """
    Verify a token and return its claims.

    Signature, issuer, audience and expiry (with clock-skew leeway) are
    checked. Every failure returns None; nothing is raised.
    """
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"leeway": settings.CLOCK_SKEW_SECONDS},
        )
    except JWTError as e:
        logger.debug(f"Token verification failed: {e}")
        return None

    try:
        return TokenClaims(
            user_id=int(payload["sub"]),
            email=payload["email"],
            jti=payload["jti"],
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.debug(f"Token is missing required claims: {e}")
        return None


def get_request_token(request: Request) -> Optional[str]:
    """Session cookie first, then an ``Authorization: Bearer`` header"""
    token = request.cookies.get(settings.COOKIE_NAME)
    if token:
        return token

    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def verify_request_token(request: Request) -> Optional[TokenClaims]:
    """Decoded claims of the request's token, or None when there is no valid session"""
    return decode_access_token(get_request_token(request))


def needs_refresh(claims: TokenClaims, now: Optional[datetime] = None) -> bool:
    """True when the token expires within the refresh threshold plus skew"""
    current = now or utcnow()
    remaining = (claims.expires_at - current).total_seconds()
    return remaining < settings.REFRESH_THRESHOLD_SECONDS + settings.CLOCK_SKEW_SECONDS


def set_session_cookie(response, token: str) -> None:
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        max_age=settings.cookie_max_age,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )
