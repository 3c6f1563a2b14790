from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..core.errors import NotFound, PermissionDenied
from ..crud import comments as comment_store
from ..crud import tickets as ticket_store
from ..db.session import transaction
from ..models.comment import Comment
from ..models.user import User
from .policy import can_mutate

logger = logging.getLogger("helpdesk.comments")


def _load_mutable_comment(db: Session, actor: User, comment_id: int, action: str) -> Comment:
    comment = comment_store.get_comment_by_id(db, comment_id)
    if comment is None:
        raise NotFound("comment")
    if not can_mutate(actor, comment.user_id):
        raise PermissionDenied(f"only admins and the comment's author can {action} comments")
    return comment


def create_comment(
    db: Session,
    actor: User,
    ticket_id: int,
    *,
    content: str,
    reply_to: int | None = None,
) -> Comment:
    """Any signed-in user may comment on any existing ticket."""

    with transaction(db):
        if ticket_store.get_ticket_by_id(db, ticket_id) is None:
            raise NotFound("ticket")
        if reply_to is not None:
            parent = comment_store.get_comment_by_id(db, reply_to)
            if parent is None or parent.ticket_id != ticket_id:
                raise NotFound("comment")
        comment = comment_store.create_comment(
            db,
            ticket_id=ticket_id,
            content=content,
            user_id=actor.id,
            reply_to=reply_to,
        )
    logger.info(
        "comments.created",
        extra={"extra_data": {"comment_id": comment.id, "ticket_id": ticket_id, "actor_id": actor.id}},
    )
    return comment


def list_comments(db: Session, ticket_id: int) -> list[Comment]:
    if ticket_store.get_ticket_by_id(db, ticket_id) is None:
        raise NotFound("ticket")
    return comment_store.list_comments_by_ticket(db, ticket_id)


def patch_comment(db: Session, actor: User, comment_id: int, *, content: str) -> Comment:
    with transaction(db):
        _load_mutable_comment(db, actor, comment_id, "edit")
        comment = comment_store.update_comment_by_id(db, comment_id, content=content)
    logger.info("comments.patched", extra={"extra_data": {"comment_id": comment_id, "actor_id": actor.id}})
    return comment


def delete_comment(db: Session, actor: User, comment_id: int) -> None:
    with transaction(db):
        _load_mutable_comment(db, actor, comment_id, "delete")
        comment_store.delete_comment_by_id(db, comment_id)
    logger.info("comments.deleted", extra={"extra_data": {"comment_id": comment_id, "actor_id": actor.id}})
