from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..core.version import get_version_info
from ..schemas.schemas import Envelope

router = APIRouter()


@router.get("/health", response_model=Envelope[Dict[str, Any]])
def health(db: Session = Depends(get_db)):
    """Liveness plus a trivial round trip to the database."""
    db.execute(text("SELECT 1"))
    return {"success": True, "data": {"status": "ok", "database": "ok"}}


@router.get("/version", response_model=Envelope[Dict[str, str]])
def version():
    return {"success": True, "data": get_version_info()}
