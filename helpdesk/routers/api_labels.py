from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import require_user
from ..models.user import User
from ..schemas.label import LabelCreate, LabelOut
from ..services import labels as label_service

router = APIRouter(prefix="/api/v1/labels", tags=["labels"])


@router.get("", response_model=list[LabelOut])
def api_list(db: Session = Depends(get_db), _: User = Depends(require_user)):
    return [LabelOut.model_validate(label) for label in label_service.list_labels(db)]


@router.post("", response_model=LabelOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: LabelCreate, db: Session = Depends(get_db), actor: User = Depends(require_user)):
    return LabelOut.model_validate(label_service.create_label(db, actor, payload.name))
