"""
Handler results and their HTTP translation

Endpoints describe their outcome as a ``HandlerResult`` (a payload, a file
or a typed error) and ``respond`` turns it into a response, reissuing the
session cookie when the caller's token is close to expiry.
"""

from dataclasses import dataclass
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from stocklet.api.deps import AuthSession
from stocklet.core.exceptions import StockletException
from stocklet.core.logging import get_logger
from stocklet.core.security import (
    clear_session_cookie, create_access_token, needs_refresh, set_session_cookie
)
from stocklet.services.export_service import XLSX_MEDIA_TYPE

security_logger = get_logger("security")


@dataclass
class HandlerResult:
    """Outcome of an endpoint: exactly one of data, file content or error"""
    status_code: int = 200
    data: Any = None
    message: Optional[str] = None
    error: Optional[StockletException] = None
    content: Optional[bytes] = None
    filename: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None, status_code: int = 200) -> "HandlerResult":
        return cls(status_code=status_code, data=data, message=message)

    @classmethod
    def created(cls, data: Any = None, message: Optional[str] = None) -> "HandlerResult":
        return cls(status_code=201, data=data, message=message)

    @classmethod
    def attachment(cls, content: bytes, filename: str) -> "HandlerResult":
        return cls(content=content, filename=filename)

    @classmethod
    def from_error(cls, error: StockletException) -> "HandlerResult":
        return cls(status_code=error.status_code, error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None


def _body(result: HandlerResult) -> Any:
    data = jsonable_encoder(result.data) if result.data is not None else None
    if result.message is None:
        return data if data is not None else {}
    if data is None:
        return {"message": result.message}
    if isinstance(data, dict):
        return {"message": result.message, **data}
    return {"message": result.message, "data": data}


def respond(result: HandlerResult, session: Optional[AuthSession] = None) -> Response:
    """Translate a handler result into an HTTP response"""
    if result.is_error:
        response = JSONResponse(
            status_code=result.status_code,
            content={"message": result.error.message},
        )
        if result.status_code == 401:
            clear_session_cookie(response)
        return response

    if result.content is not None:
        response = Response(
            content=result.content,
            status_code=result.status_code,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )
    else:
        response = JSONResponse(status_code=result.status_code, content=_body(result))

    if session is not None and needs_refresh(session):
        issued = create_access_token(session.user_id, session.email)
        set_session_cookie(response, issued.token)
        security_logger.info(f"Session token reissued for user {session.user_id}")

    return response
