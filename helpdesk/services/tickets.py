"""Ticket mutations.

Every mutation runs inside a single ``transaction``: the ticket row, its first
comment, label links and assignments either all land or none do. Label and
assignee updates are reconciled as a symmetric difference against what is
stored, so re-sending the current set touches nothing.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from ..core.choices import TicketStatus
from ..core.errors import NotFound, PermissionDenied
from ..crud import assignments as assignment_store
from ..crud import comments as comment_store
from ..crud import labels as label_store
from ..crud import tickets as ticket_store
from ..crud import users as user_store
from ..db.session import transaction
from ..models.assignment import Assignment
from ..models.ticket import Ticket
from ..models.user import User
from .policy import can_mutate
from .tag_query import Tag, parse_tag_query

logger = logging.getLogger("helpdesk.tickets")


def _distinct(values: Iterable) -> list:
    """Drop duplicates, keeping first-seen order."""

    return list(dict.fromkeys(values))


def _clean_label_names(names: Iterable[str]) -> list[str]:
    return _distinct(name.strip() for name in names if name and name.strip())


def _load_ticket(db: Session, ticket_id: int) -> Ticket:
    ticket = ticket_store.get_ticket_by_id(db, ticket_id)
    if ticket is None:
        raise NotFound("ticket")
    return ticket


def _load_mutable_ticket(db: Session, actor: User, ticket_id: int, action: str) -> Ticket:
    ticket = _load_ticket(db, ticket_id)
    if not can_mutate(actor, ticket.created_by):
        raise PermissionDenied(f"only admins and the ticket's creator can {action} tickets")
    return ticket


def _attach_label(db: Session, actor: User, ticket_id: int, name: str) -> None:
    label = label_store.get_label_by_name(db, name)
    if label is None:
        label = label_store.create_label_if_not_exists(db, name=name, created_by=actor.id)
    label_store.assign_label_to_ticket(db, ticket_id=ticket_id, label_id=label.id)


def _attach_assignee(db: Session, actor: User, ticket_id: int, user_id: int) -> Assignment:
    if user_store.get_user_by_id(db, user_id) is None:
        raise NotFound("user")
    return assignment_store.create_assignment(db, ticket_id=ticket_id, user_id=user_id, assigned_by=actor.id)


def _sync_labels(db: Session, actor: User, ticket: Ticket, desired: Sequence[str]) -> tuple[list[str], list[str]]:
    current = set(ticket.label_names)
    wanted = _clean_label_names(desired)
    removed = sorted(current.difference(wanted))
    added = [name for name in wanted if name not in current]
    for name in removed:
        label_store.unassign_label_from_ticket(db, ticket_id=ticket.id, name=name)
    for name in added:
        _attach_label(db, actor, ticket.id, name)
    return added, removed


def _sync_assignees(db: Session, actor: User, ticket: Ticket, desired: Sequence[int]) -> tuple[list[int], list[int]]:
    current = set(ticket.assignee_ids)
    wanted = _distinct(desired)
    removed = sorted(current.difference(wanted))
    added = [user_id for user_id in wanted if user_id not in current]
    for user_id in removed:
        assignment_store.delete_assignment(db, ticket_id=ticket.id, user_id=user_id)
    for user_id in added:
        _attach_assignee(db, actor, ticket.id, user_id)
    return added, removed


def create_ticket(
    db: Session,
    actor: User,
    *,
    title: str,
    description: str,
    labels: Sequence[str] = (),
    assignees: Sequence[int] = (),
) -> Ticket:
    with transaction(db):
        ticket = ticket_store.create_ticket(db, title=title, created_by=actor.id)
        comment_store.create_comment(db, ticket_id=ticket.id, content=description, user_id=actor.id)
        for name in _clean_label_names(labels):
            _attach_label(db, actor, ticket.id, name)
        for user_id in _distinct(assignees):
            _attach_assignee(db, actor, ticket.id, user_id)
        created = ticket_store.get_ticket_by_id(db, ticket.id)
    logger.info(
        "tickets.created",
        extra={"extra_data": {"ticket_id": created.id, "actor_id": actor.id}},
    )
    return created


def patch_ticket(
    db: Session,
    actor: User,
    ticket_id: int,
    *,
    title: str | None = None,
    labels: Sequence[str] | None = None,
    assignees: Sequence[int] | None = None,
) -> Ticket:
    """Sparse update: ``None`` leaves a field alone, an empty list clears a set."""

    with transaction(db):
        ticket = _load_mutable_ticket(db, actor, ticket_id, "update")
        changes: dict[str, object] = {}
        if title is not None and title != ticket.title:
            ticket_store.update_ticket_by_id(db, ticket.id, title=title)
            changes["title"] = True
        if labels is not None:
            added, removed = _sync_labels(db, actor, ticket, labels)
            if added or removed:
                changes["labels"] = {"added": added, "removed": removed}
        if assignees is not None:
            added_ids, removed_ids = _sync_assignees(db, actor, ticket, assignees)
            if added_ids or removed_ids:
                changes["assignees"] = {"added": added_ids, "removed": removed_ids}
        updated = ticket_store.get_ticket_by_id(db, ticket.id)
    logger.info(
        "tickets.patched",
        extra={"extra_data": {"ticket_id": ticket_id, "actor_id": actor.id, "changes": changes}},
    )
    return updated


def patch_ticket_status(db: Session, actor: User, ticket_id: int, status: TicketStatus) -> Ticket:
    # Any signed-in user may open or close a ticket; there is no ownership gate here.
    with transaction(db):
        _load_ticket(db, ticket_id)
        ticket_store.update_ticket_status_by_id(db, ticket_id, TicketStatus(status))
        updated = ticket_store.get_ticket_by_id(db, ticket_id)
    logger.info(
        "tickets.status_changed",
        extra={"extra_data": {"ticket_id": ticket_id, "actor_id": actor.id, "status": TicketStatus(status).value}},
    )
    return updated


def delete_ticket(db: Session, actor: User, ticket_id: int) -> None:
    with transaction(db):
        _load_mutable_ticket(db, actor, ticket_id, "delete")
        ticket_store.delete_ticket_by_id(db, ticket_id)
    logger.info("tickets.deleted", extra={"extra_data": {"ticket_id": ticket_id, "actor_id": actor.id}})


def get_ticket(db: Session, ticket_id: int) -> Ticket:
    return _load_ticket(db, ticket_id)


def list_tickets(db: Session, predicates: Sequence[Tag] = ()) -> list[Ticket]:
    return ticket_store.list_tickets(db, [(tag.key, tag.values) for tag in predicates])


def search_tickets(db: Session, q: str | None) -> list[Ticket]:
    return list_tickets(db, parse_tag_query(q))


def add_assignment(db: Session, actor: User, ticket_id: int, user_id: int) -> Assignment:
    with transaction(db):
        _load_mutable_ticket(db, actor, ticket_id, "assign")
        assignment = _attach_assignee(db, actor, ticket_id, user_id)
    logger.info(
        "tickets.assigned",
        extra={"extra_data": {"ticket_id": ticket_id, "user_id": user_id, "actor_id": actor.id}},
    )
    return assignment


def remove_assignment(db: Session, actor: User, assignment_id: int) -> None:
    with transaction(db):
        assignment = assignment_store.get_assignment_by_id(db, assignment_id)
        if assignment is None:
            raise NotFound("assignment")
        _load_mutable_ticket(db, actor, assignment.ticket_id, "unassign")
        assignment_store.delete_assignment_by_id(db, assignment_id)
    logger.info("tickets.unassigned", extra={"extra_data": {"assignment_id": assignment_id, "actor_id": actor.id}})


__all__ = [
    "add_assignment",
    "create_ticket",
    "delete_ticket",
    "get_ticket",
    "list_tickets",
    "patch_ticket",
    "patch_ticket_status",
    "remove_assignment",
    "search_tickets",
]
