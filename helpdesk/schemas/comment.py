from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .user import UserOut


class CommentCreate(BaseModel):
    content: str = Field(min_length=10)
    reply_to: Optional[int] = Field(default=None, ge=1)


class CommentUpdate(BaseModel):
    content: str = Field(min_length=10)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: int
    content: str
    reply_to: Optional[int] = None
    created_at: datetime
    created_by: Optional[UserOut] = Field(default=None, validation_alias=AliasChoices("author", "created_by"))
