"""
Authentication Service
User registration, credential checks and token revocation
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stocklet.core.config import settings
from stocklet.core.exceptions import (
    ConflictError, ForbiddenError, UnauthorizedError, ValidationError
)
from stocklet.core.logging import get_logger
from stocklet.core.security import TokenClaims, hash_password, verify_password
from stocklet.models.auth import RevokedToken, User

logger = logging.getLogger(__name__)
security_logger = get_logger("security")


def _naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class AuthService:
    """Service for users and the revoked-token denylist"""

    def __init__(self, db: Session):
        self.db = db

    # User Methods

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive, stored lowercase)"""
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def register(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Create a new user

        Raises:
            ForbiddenError: registration is switched off
            ValidationError: missing email/password or password too short
            ConflictError: email already registered
        """
        if not settings.REGISTRATION_ENABLED:
            raise ForbiddenError("Registration is currently disabled.")

        if not email or not email.strip() or not password:
            raise ValidationError("Email and password are required.")

        if len(password) < settings.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long."
            )

        normalized = email.strip().lower()
        if self.get_user_by_email(normalized):
            raise ConflictError("User with this email already exists.")

        user = User(email=normalized, password_hash=hash_password(password))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User with this email already exists.")
        self.db.refresh(user)

        logger.info(f"User registered: {user.email}")
        return user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Check credentials and return the matching user

        Unknown email and wrong password are reported identically.
        """
        if not email or not email.strip() or not password:
            raise ValidationError("Email and password are required.")

        user = self.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            security_logger.warning(f"Failed login attempt for {email.strip().lower()}")
            raise UnauthorizedError("Invalid credentials.")

        security_logger.info(f"User logged in: {user.email}")
        return user

    # Revocation Methods

    def is_revoked(self, jti: str) -> bool:
        """True when the token id is on the denylist"""
        return self.db.query(RevokedToken.id).filter(RevokedToken.jti == jti).first() is not None

    def revoke(self, claims: TokenClaims) -> bool:
        """
        Put a token id on the denylist until its natural expiry

        Returns False when the jti was already revoked.
        """
        self.purge_expired()

        if self.is_revoked(claims.jti):
            self.db.commit()
            return False

        self.db.add(RevokedToken(jti=claims.jti, expires_at=_naive_utc(claims.expires_at)))
        try:
            self.db.commit()
        except IntegrityError:
            # Concurrent logout with the same token
            self.db.rollback()
            return False

        security_logger.info(f"Token revoked for user {claims.user_id} (jti={claims.jti})")
        return True

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete denylist rows whose token can no longer verify on its own"""
        # Tokens stay verifiable for the skew leeway past their expiry
        cutoff = (_naive_utc(now) if now else datetime.utcnow()) - timedelta(seconds=settings.CLOCK_SKEW_SECONDS)
        result = self.db.execute(delete(RevokedToken).where(RevokedToken.expires_at < cutoff))
        if result.rowcount:
            logger.debug(f"Purged {result.rowcount} expired revoked tokens")
        return result.rowcount or 0
