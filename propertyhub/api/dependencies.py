from typing import Type, TypeVar

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.jwt import get_current_user, get_db
from ..auth.policy import AccessScope, resolve_scope
from ..models.models import User

__all__ = ["get_db", "get_access_scope", "get_or_404"]

ModelT = TypeVar("ModelT")


def get_access_scope(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> AccessScope:
    return resolve_scope(db, user)


def get_or_404(db: Session, model: Type[ModelT], entity_id, detail: str) -> ModelT:
    instance = db.get(model, str(entity_id))
    if instance is None:
        raise HTTPException(status_code=404, detail=detail)
    return instance
