"""
Authentication API endpoints
Registration, login, token refresh and logout
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stocklet.api.responses import HandlerResult, respond
from stocklet.core.database import get_db
from stocklet.core.exceptions import UnauthorizedError
from stocklet.core.logging import get_logger
from stocklet.core.security import (
    clear_session_cookie,
    create_access_token,
    set_session_cookie,
    verify_request_token,
)
from stocklet.schemas.auth import Credentials, LoginResponse, RegisterResponse, UserSummary
from stocklet.schemas.common import MessageResponse
from stocklet.services.auth_service import AuthService

router = APIRouter()
security_logger = get_logger("security")


@router.post("/register", status_code=201, response_model=RegisterResponse)
def register(body: Credentials, db: Session = Depends(get_db)):
    """
    Create an account. Only available while registration is enabled.
    """
    user = AuthService(db).register(body.email, body.password)
    return respond(HandlerResult.created(
        {"user": UserSummary.model_validate(user)},
        message="User registered successfully.",
    ))


@router.post("/login", response_model=LoginResponse)
def login(body: Credentials, db: Session = Depends(get_db)):
    """
    Check credentials and start a session

    The token is set as an httpOnly cookie and also returned in the body
    for clients that send it as a Bearer header.
    """
    user = AuthService(db).authenticate(body.email, body.password)
    issued = create_access_token(user.id, user.email)

    response = respond(HandlerResult.ok(
        {
            "user": UserSummary.model_validate(user),
            "access_token": issued.token,
            "token_type": "bearer",
        },
        message="Login successful.",
    ))
    set_session_cookie(response, issued.token)
    return response


@router.post("/refresh")
def refresh(request: Request, db: Session = Depends(get_db)):
    """
    Exchange a valid token for a new one with a fresh jti
    """
    claims = verify_request_token(request)
    if claims is None:
        raise UnauthorizedError("Unauthorized: Invalid or expired token.")

    if AuthService(db).is_revoked(claims.jti):
        security_logger.warning(f"Refresh attempted with revoked token for user {claims.user_id}")
        raise UnauthorizedError("Unauthorized: Token has been revoked.")

    issued = create_access_token(claims.user_id, claims.email)
    response = respond(HandlerResult.ok(
        {"user": {"id": claims.user_id, "email": claims.email}},
        message="Token refreshed successfully",
    ))
    set_session_cookie(response, issued.token)
    return response


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, db: Session = Depends(get_db)):
    """
    Revoke the current token and clear the cookie

    Always succeeds: a denylist failure is logged and the cookie is still
    cleared.
    """
    claims = verify_request_token(request)
    if claims is not None:
        try:
            AuthService(db).revoke(claims)
        except SQLAlchemyError as e:
            db.rollback()
            security_logger.error(f"Error adding token to denylist: {e}")

    response = respond(HandlerResult.ok(message="Logout successful"))
    clear_session_cookie(response)
    return response
