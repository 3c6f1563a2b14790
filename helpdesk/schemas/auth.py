from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .user import EMAIL_PATTERN, UserOut


class SetupRequest(BaseModel):
    name: str = Field(min_length=3, max_length=50)
    username: str = Field(min_length=3, max_length=15)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=72)


class LoginRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {"email": "admin@example.com", "password": "correct horse"}
        }
    }


class LoginResponse(BaseModel):
    session_token: str
    user: UserOut

    model_config = {
        "json_schema_extra": {
            "example": {
                "session_token": "<opaque>",
                "user": {"id": 1, "name": "Admin", "username": "admin", "email": "admin@example.com", "role": "admin"},
            }
        }
    }


class StatusResponse(BaseModel):
    setup: bool
    user: Optional[UserOut] = None
