from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..core.errors import ValidationFailure
from ..crud import labels as label_store
from ..db.session import transaction
from ..models.label import Label
from ..models.user import User

logger = logging.getLogger("helpdesk.labels")


def list_labels(db: Session) -> list[Label]:
    return label_store.list_labels(db)


def create_label(db: Session, actor: User, name: str) -> Label:
    """Return the label called ``name``, creating it if nobody has yet."""

    name = name.strip()
    if not name:
        raise ValidationFailure("name", "required", "label name must not be blank")
    with transaction(db):
        label = label_store.get_label_by_name(db, name)
        if label is None:
            label = label_store.create_label_if_not_exists(db, name=name, created_by=actor.id)
            logger.info("labels.created", extra={"extra_data": {"label": name, "actor_id": actor.id}})
    return label
