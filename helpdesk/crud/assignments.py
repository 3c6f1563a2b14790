from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..db.session import insert_ignoring_conflicts
from ..models.assignment import Assignment


def get_assignment_by_id(db: Session, assignment_id: int) -> Assignment | None:
    return db.get(Assignment, assignment_id)


def get_assignment(db: Session, *, ticket_id: int, user_id: int) -> Assignment | None:
    stmt = select(Assignment).where(Assignment.ticket_id == ticket_id, Assignment.user_id == user_id)
    return db.execute(stmt).scalars().first()


def create_assignment(db: Session, *, ticket_id: int, user_id: int, assigned_by: int | None) -> Assignment:
    """Assign ``user_id`` to the ticket; an existing pair is returned untouched."""

    insert_ignoring_conflicts(
        db,
        Assignment,
        {"ticket_id": ticket_id, "user_id": user_id, "assigned_by": assigned_by},
    )
    assignment = get_assignment(db, ticket_id=ticket_id, user_id=user_id)
    if assignment is None:
        raise LookupError(f"assignment ({ticket_id}, {user_id}) missing after insert")
    return assignment


def delete_assignment(db: Session, *, ticket_id: int, user_id: int) -> bool:
    result = db.execute(
        delete(Assignment).where(Assignment.ticket_id == ticket_id, Assignment.user_id == user_id)
    )
    return result.rowcount > 0


def delete_assignment_by_id(db: Session, assignment_id: int) -> bool:
    result = db.execute(delete(Assignment).where(Assignment.id == assignment_id))
    return result.rowcount > 0
