from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.choices import Role

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    username: str
    email: str
    role: Role


class UserCreate(BaseModel):
    name: str = Field(min_length=3, max_length=50)
    username: str = Field(min_length=3, max_length=15)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=72)
    role: Role = Role.MEMBER


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=50)
    username: Optional[str] = Field(default=None, min_length=3, max_length=15)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    role: Optional[Role] = None
