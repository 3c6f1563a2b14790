from __future__ import annotations

from typing import Iterable, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from ..core.choices import TicketStatus
from ..models.assignment import Assignment
from ..models.comment import Comment
from ..models.label import Label
from ..models.ticket import Ticket, ticket_labels


def _hydrated():
    return select(Ticket).options(
        selectinload(Ticket.labels),
        selectinload(Ticket.assignments),
        selectinload(Ticket.comments),
        selectinload(Ticket.creator),
    )


def create_ticket(db: Session, *, title: str, created_by: int) -> Ticket:
    ticket = Ticket(title=title, status=TicketStatus.OPEN, created_by=created_by)
    db.add(ticket)
    db.flush()
    return ticket


def get_ticket_by_id(db: Session, ticket_id: int) -> Ticket | None:
    """Load a ticket with labels, assignees and comments freshly read.

    ``populate_existing`` overwrites whatever the identity map holds, so rows
    inserted through Core statements in the same transaction show up.
    """

    stmt = _hydrated().where(Ticket.id == ticket_id).execution_options(populate_existing=True)
    return db.execute(stmt).scalars().first()


def update_ticket_by_id(db: Session, ticket_id: int, *, title: str) -> Ticket | None:
    ticket = db.get(Ticket, ticket_id)
    if ticket is None:
        return None
    ticket.title = title
    db.flush()
    return ticket


def update_ticket_status_by_id(db: Session, ticket_id: int, status: TicketStatus) -> Ticket | None:
    ticket = db.get(Ticket, ticket_id)
    if ticket is None:
        return None
    ticket.status = status
    db.flush()
    return ticket


def delete_ticket_by_id(db: Session, ticket_id: int) -> bool:
    """Delete a ticket together with its comments, label links and assignments."""

    db.execute(delete(ticket_labels).where(ticket_labels.c.ticket_id == ticket_id))
    db.execute(delete(Assignment).where(Assignment.ticket_id == ticket_id))
    db.execute(delete(Comment).where(Comment.ticket_id == ticket_id))
    result = db.execute(delete(Ticket).where(Ticket.id == ticket_id))
    db.expire_all()
    return result.rowcount > 0


def _label_clause(values: Sequence[str]):
    # Any one of the listed labels is enough.
    labelled = (
        select(ticket_labels.c.ticket_id)
        .join(Label, Label.id == ticket_labels.c.label_id)
        .where(Label.name.in_(list(values)))
    )
    return Ticket.id.in_(labelled)


def list_tickets(db: Session, predicates: Iterable[tuple[str, Sequence[str]]] = ()) -> list[Ticket]:
    """Fetch tickets matching every predicate, ordered by id.

    ``title`` values must all appear in the title (case-insensitive);
    ``label`` values match when the ticket carries any of them.
    """

    stmt = _hydrated()
    for key, values in predicates:
        if key == "title":
            for value in values:
                stmt = stmt.where(func.lower(Ticket.title).contains(value.lower(), autoescape=True))
        elif key == "label":
            stmt = stmt.where(_label_clause(values))
        else:
            raise ValueError(f"unsupported ticket filter: {key}")
    stmt = stmt.order_by(Ticket.id)
    return list(db.execute(stmt).scalars().all())
