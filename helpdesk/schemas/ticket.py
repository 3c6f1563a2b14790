from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..core.choices import TicketStatus
from .user import UserOut


class TicketCreate(BaseModel):
    title: str = Field(min_length=3, max_length=70)
    description: str = Field(min_length=10)
    labels: list[str] = Field(default_factory=list)
    assignees: list[int] = Field(default_factory=list)


class TicketUpdate(BaseModel):
    # Omitted fields stay as they are; an explicit empty list clears the set.
    title: Optional[str] = Field(default=None, min_length=3, max_length=70)
    labels: Optional[list[str]] = None
    assignees: Optional[list[int]] = None


class TicketStatusUpdate(BaseModel):
    status: TicketStatus


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    status: TicketStatus
    labels: list[str] = Field(validation_alias=AliasChoices("label_names", "labels"))
    assignees: list[int] = Field(validation_alias=AliasChoices("assignee_ids", "assignees"))
    created_at: datetime
    created_by: Optional[UserOut] = Field(default=None, validation_alias=AliasChoices("creator", "created_by"))


class AssignmentCreate(BaseModel):
    user_id: int = Field(ge=1)


class AssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: int
    user_id: int
    assigned_by: Optional[int] = None
