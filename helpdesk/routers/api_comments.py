from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import require_user
from ..models.user import User
from ..schemas.comment import CommentOut, CommentUpdate
from ..services import comments as comment_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


@router.patch("/{comment_id}", response_model=CommentOut)
def api_update(
    comment_id: int,
    payload: CommentUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_user),
):
    comment = comment_service.patch_comment(db, actor, comment_id, content=payload.content)
    return CommentOut.model_validate(comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete(comment_id: int, db: Session = Depends(get_db), actor: User = Depends(require_user)):
    comment_service.delete_comment(db, actor, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
