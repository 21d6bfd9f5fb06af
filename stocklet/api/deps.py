"""
API Dependencies
Common dependencies for API endpoints
"""

from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stocklet.core.database import get_db
from stocklet.core.exceptions import UnauthorizedError
from stocklet.core.logging import get_logger
from stocklet.core.security import verify_request_token
from stocklet.services.auth_service import AuthService

security_logger = get_logger("security")


@dataclass(frozen=True)
class AuthSession:
    """Identity resolved from a valid, unrevoked session token"""
    user_id: int
    email: str
    jti: str
    expires_at: datetime


def require_session(request: Request, db: Session = Depends(get_db)) -> AuthSession:
    """
    Resolve the caller's session or fail with 401

    Bad, expired and revoked tokens, and a failed denylist lookup, all
    produce the same UnauthorizedError, which clears the cookie.
    """
    claims = verify_request_token(request)
    if claims is None:
        raise UnauthorizedError()

    try:
        revoked = AuthService(db).is_revoked(claims.jti)
    except SQLAlchemyError as e:
        security_logger.error(f"Revocation lookup failed: {e}")
        raise UnauthorizedError()

    if revoked:
        security_logger.warning(f"Revoked token presented by user {claims.user_id}")
        raise UnauthorizedError()

    return AuthSession(
        user_id=claims.user_id,
        email=claims.email,
        jti=claims.jti,
        expires_at=claims.expires_at,
    )
