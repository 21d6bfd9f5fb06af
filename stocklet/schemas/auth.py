"""
Authentication schemas for request/response validation
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict


class Credentials(BaseModel):
    """Login and registration request

    Fields are optional so that a missing value is reported with the
    service's own message instead of a generic validation error.
    """
    email: Optional[str] = None
    password: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "owner@example.com",
                "password": "secret123"
            }
        }
    }


class UserSummary(BaseModel):
    """Public view of a user"""
    id: int
    email: str

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    """Successful login"""
    message: str
    user: UserSummary
    access_token: str
    token_type: str = "bearer"


class RegisterResponse(BaseModel):
    message: str
    user: UserSummary
