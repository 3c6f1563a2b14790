from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import require_user
from ..models.user import User
from ..schemas.comment import CommentCreate, CommentOut
from ..schemas.ticket import (
    AssignmentCreate,
    AssignmentOut,
    TicketCreate,
    TicketOut,
    TicketStatusUpdate,
    TicketUpdate,
)
from ..services import comments as comment_service
from ..services import tickets as ticket_service

router = APIRouter(prefix="/api/v1/tickets", tags=["tickets"])
assignments_router = APIRouter(prefix="/api/v1/assignments", tags=["tickets"])


def _serialize_ticket(ticket) -> TicketOut:
    return TicketOut.model_validate(ticket, from_attributes=True)


@router.get("", response_model=list[TicketOut])
def api_list(
    q: str | None = Query(default=None, description="e.g. `label:bug,request printer`"),
    db: Session = Depends(get_db),
    _: User = Depends(require_user),
):
    return [_serialize_ticket(ticket) for ticket in ticket_service.search_tickets(db, q)]


@router.post("", response_model=TicketOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: TicketCreate, db: Session = Depends(get_db), actor: User = Depends(require_user)):
    ticket = ticket_service.create_ticket(db, actor, **payload.model_dump())
    return _serialize_ticket(ticket)


@router.get("/{ticket_id}", response_model=TicketOut)
def api_get(ticket_id: int, db: Session = Depends(get_db), _: User = Depends(require_user)):
    return _serialize_ticket(ticket_service.get_ticket(db, ticket_id))


@router.patch("/{ticket_id}", response_model=TicketOut)
def api_update(
    ticket_id: int,
    payload: TicketUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_user),
):
    ticket = ticket_service.patch_ticket(db, actor, ticket_id, **payload.model_dump(exclude_unset=True))
    return _serialize_ticket(ticket)


@router.patch("/{ticket_id}/status", response_model=TicketOut)
def api_update_status(
    ticket_id: int,
    payload: TicketStatusUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_user),
):
    ticket = ticket_service.patch_ticket_status(db, actor, ticket_id, payload.status)
    return _serialize_ticket(ticket)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete(ticket_id: int, db: Session = Depends(get_db), actor: User = Depends(require_user)):
    ticket_service.delete_ticket(db, actor, ticket_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{ticket_id}/comments", response_model=list[CommentOut])
def api_list_comments(ticket_id: int, db: Session = Depends(get_db), _: User = Depends(require_user)):
    return [CommentOut.model_validate(comment) for comment in comment_service.list_comments(db, ticket_id)]


@router.post("/{ticket_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def api_create_comment(
    ticket_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_user),
):
    comment = comment_service.create_comment(db, actor, ticket_id, **payload.model_dump())
    return CommentOut.model_validate(comment)


@router.post("/{ticket_id}/assignments", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def api_create_assignment(
    ticket_id: int,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_user),
):
    assignment = ticket_service.add_assignment(db, actor, ticket_id, payload.user_id)
    return AssignmentOut.model_validate(assignment)


@assignments_router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_assignment(assignment_id: int, db: Session = Depends(get_db), actor: User = Depends(require_user)):
    ticket_service.remove_assignment(db, actor, assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
