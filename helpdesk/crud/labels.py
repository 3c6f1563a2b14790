from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..db.session import insert_ignoring_conflicts
from ..models.label import Label
from ..models.ticket import ticket_labels


def get_label_by_name(db: Session, name: str) -> Label | None:
    return db.execute(select(Label).where(Label.name == name)).scalars().first()


def list_labels(db: Session) -> list[Label]:
    return list(db.execute(select(Label).order_by(Label.name)).scalars().all())


def create_label_if_not_exists(db: Session, *, name: str, created_by: int | None) -> Label:
    """Get-or-create by name.

    A concurrent transaction may insert the same name between our lookup and
    our insert; the unique constraint absorbs that and we read back the
    winner's row.
    """

    insert_ignoring_conflicts(db, Label, {"name": name, "created_by": created_by})
    label = get_label_by_name(db, name)
    if label is None:
        raise LookupError(f"label {name!r} missing after insert")
    return label


def assign_label_to_ticket(db: Session, *, ticket_id: int, label_id: int) -> None:
    insert_ignoring_conflicts(db, ticket_labels, {"ticket_id": ticket_id, "label_id": label_id})


def unassign_label_from_ticket(db: Session, *, ticket_id: int, name: str) -> bool:
    label_ids = select(Label.id).where(Label.name == name)
    result = db.execute(
        delete(ticket_labels).where(
            ticket_labels.c.ticket_id == ticket_id,
            ticket_labels.c.label_id.in_(label_ids),
        )
    )
    return result.rowcount > 0
