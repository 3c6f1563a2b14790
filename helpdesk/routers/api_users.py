from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import require_user
from ..models.user import User
from ..schemas.user import UserCreate, UserOut, UserUpdate
from ..services import users as user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=list[UserOut])
def api_list(db: Session = Depends(get_db), _: User = Depends(require_user)):
    return [UserOut.model_validate(user) for user in user_service.list_users(db)]


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: UserCreate, db: Session = Depends(get_db), actor: User = Depends(require_user)):
    return UserOut.model_validate(user_service.create_user(db, actor, **payload.model_dump()))


@router.get("/{user_id}", response_model=UserOut)
def api_get(user_id: int, db: Session = Depends(get_db), _: User = Depends(require_user)):
    return UserOut.model_validate(user_service.get_user(db, user_id))


@router.patch("/{user_id}", response_model=UserOut)
def api_update(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_user),
):
    user = user_service.patch_user(db, actor, user_id, **payload.model_dump(exclude_none=True))
    return UserOut.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete(user_id: int, db: Session = Depends(get_db), actor: User = Depends(require_user)):
    user_service.delete_user(db, actor, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
