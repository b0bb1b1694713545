from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    get_current_user,
    get_password_hash,
    load_user,
    token_subject,
    verify_password,
)
from ..config import settings
from ..constants import ACTION_LOGIN, ACTION_LOGOUT, ACTION_SIGNUP, DEFAULT_ROLES, ROLE_ADMIN
from ..core.rate_limit import rate_limit_dependency
from ..models.models import User
from ..schemas.schemas import (
    Envelope,
    LoginRequest,
    RoleAssignmentRead,
    RoleRead,
    SessionRead,
    SignupRequest,
    Token,
    TokenRefreshRequest,
    UserRead,
)
from ..services.activity import log_activity

router = APIRouter()


def _find_by_email(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def _build_token_response(user: User) -> Token:
    access_payload = {
        "sub": user.id,
        "role": user.account_role,
        "type": "access",
    }
    return Token(
        access_token=create_access_token(access_payload),
        refresh_token=create_refresh_token(user.id),
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
        refresh_expires_in=settings.refresh_token_expire_minutes * 60,
        user=UserRead.model_validate(user),
    )


@router.post(
    "/signup",
    response_model=Envelope[Token],
    dependencies=[Depends(rate_limit_dependency("auth:signup"))],
)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    if payload.role == ROLE_ADMIN and not settings.allow_admin_signup:
        raise HTTPException(status_code=403, detail="Admin accounts cannot be self-registered")
    if _find_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=payload.email.lower(),
        full_name=payload.full_name,
        phone=payload.phone,
        hashed_password=get_password_hash(payload.password),
        account_role=payload.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log_activity(db, user.id, ACTION_SIGNUP, "Users", f"Signed up as {payload.role}")
    return {"success": True, "data": _build_token_response(user)}


@router.post(
    "/login",
    response_model=Envelope[Token],
    dependencies=[Depends(rate_limit_dependency("auth:login"))],
)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = _find_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")

    log_activity(db, user.id, ACTION_LOGIN, "Auth", "Signed in")
    return {"success": True, "data": _build_token_response(user)}


@router.post("/refresh", response_model=Envelope[Token])
def refresh_tokens(payload: TokenRefreshRequest, db: Session = Depends(get_db)):
    user_id = token_subject(payload.refresh_token, REFRESH_TOKEN)
    user = load_user(db, user_id) if user_id else None
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    return {"success": True, "data": _build_token_response(user)}


@router.post("/logout", response_model=Envelope[dict])
def logout(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    log_activity(db, current_user.id, ACTION_LOGOUT, "Auth", "Signed out")
    return {"success": True, "data": {"message": "Logged out"}}


@router.get("/me", response_model=Envelope[SessionRead])
def read_session(current_user: User = Depends(get_current_user)):
    session = SessionRead(
        **UserRead.model_validate(current_user).model_dump(),
        role_assignments=[RoleAssignmentRead.model_validate(item) for item in current_user.active_property_roles],
    )
    return {"success": True, "data": session}


@router.get("/roles", response_model=Envelope[List[RoleRead]])
def list_roles(_: User = Depends(get_current_user)):
    return {"success": True, "data": [RoleRead(name=name, description=description) for name, description in DEFAULT_ROLES]}
