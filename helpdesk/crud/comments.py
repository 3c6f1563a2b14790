from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from ..models.comment import Comment


def create_comment(
    db: Session,
    *,
    ticket_id: int,
    content: str,
    user_id: int,
    reply_to: int | None = None,
) -> Comment:
    comment = Comment(ticket_id=ticket_id, content=content, user_id=user_id, reply_to=reply_to)
    db.add(comment)
    db.flush()
    return comment


def get_comment_by_id(db: Session, comment_id: int) -> Comment | None:
    return db.get(Comment, comment_id)


def list_comments_by_ticket(db: Session, ticket_id: int) -> list[Comment]:
    stmt = (
        select(Comment)
        .options(selectinload(Comment.author))
        .where(Comment.ticket_id == ticket_id)
        .order_by(Comment.id)
    )
    return list(db.execute(stmt).scalars().all())


def update_comment_by_id(db: Session, comment_id: int, *, content: str) -> Comment | None:
    comment = db.get(Comment, comment_id)
    if comment is None:
        return None
    comment.content = content
    db.flush()
    return comment


def delete_comment_by_id(db: Session, comment_id: int) -> bool:
    # Replies outlive the comment they answered.
    db.execute(update(Comment).where(Comment.reply_to == comment_id).values(reply_to=None))
    result = db.execute(delete(Comment).where(Comment.id == comment_id))
    db.expire_all()
    return result.rowcount > 0
