"""
Authentication Models
Users and the revoked-token denylist
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime

from stocklet.core.database import Base


class User(Base):
    """Application users"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class RevokedToken(Base):
    """
    Denylisted token id

    ``expires_at`` mirrors the token's own expiry (naive UTC). Rows past it
    are purged by the auth service because the token would fail
    verification anyway.
    """
    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    revoked_at = Column(DateTime, default=datetime.utcnow, nullable=False)
