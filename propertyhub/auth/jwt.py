from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session, selectinload

from .. import config
from ..config import settings
from ..models.models import User

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _sign(claims: Dict[str, Any], lifetime_minutes: int) -> str:
    issued_at = datetime.now(timezone.utc)
    body = {**claims, "iat": issued_at, "exp": issued_at + timedelta(minutes=lifetime_minutes)}
    return jwt.encode(body, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(claims: Dict[str, Any]) -> str:
    return _sign({"type": ACCESS_TOKEN, **claims}, settings.access_token_expire_minutes)


def create_refresh_token(user_id: str) -> str:
    return _sign({"sub": user_id, "type": REFRESH_TOKEN}, settings.refresh_token_expire_minutes)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def token_subject(token: Optional[str], expected_type: str = ACCESS_TOKEN) -> Optional[str]:
    """Return the user id a token was issued for, or None if it is unusable.

    Tokens without a ``type`` claim are treated as access tokens.
    """
    if not token:
        return None
    try:
        claims = decode_token(token)
    except JWTError:
        return None
    if claims.get("type", ACCESS_TOKEN) != expected_type:
        return None
    return claims.get("sub") or None


def get_db() -> Generator[Session, None, None]:
    db = config.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def load_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).options(selectinload(User.property_roles)).filter(User.id == str(user_id)).first()


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    user_id = token_subject(token)
    user = load_user(db, user_id) if user_id else None
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_account_roles(*allowed_roles: str, detail: str = "Operation not permitted for your role"):
    """Gate a route on the global account role; admins are not implicitly included."""

    def account_role_checker(user: User = Depends(get_current_user)) -> User:
        if allowed_roles and not user.has_account_role(*allowed_roles):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return user

    return account_role_checker
