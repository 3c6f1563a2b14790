from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from ..core.config import settings
from ..db.session import get_db
from ..deps.auth import optional_user, session_token_from_request
from ..models.user import User
from ..schemas.auth import LoginRequest, LoginResponse, SetupRequest, StatusResponse
from ..schemas.user import UserOut
from ..services import auth as auth_service

router = APIRouter(prefix="/api/v1", tags=["auth"])


@router.get("/status", response_model=StatusResponse, summary="Setup state and current user")
def api_status(db: Session = Depends(get_db), user: User | None = Depends(optional_user)):
    return StatusResponse(
        setup=auth_service.is_setup_done(db),
        user=UserOut.model_validate(user) if user is not None else None,
    )


@router.post("/setup", response_model=UserOut, summary="Create the first admin account")
def api_setup(payload: SetupRequest, db: Session = Depends(get_db)):
    user = auth_service.setup(db, **payload.model_dump())
    return UserOut.model_validate(user)


@router.post("/auth/login", response_model=LoginResponse, summary="Exchange credentials for a session token")
def api_login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    result = auth_service.login(db, payload.email, payload.password)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        result.token,
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
    )
    return LoginResponse(session_token=result.token, user=UserOut.model_validate(result.user))


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Revoke the current session")
def api_logout(request: Request, db: Session = Depends(get_db)):
    auth_service.logout(db, session_token_from_request(request))
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
