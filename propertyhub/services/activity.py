import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.models import ActivityLog, utcnow

logger = logging.getLogger(__name__)


def log_activity(
    db_session: Session,
    user_id: Optional[str],
    action: str,
    entity: str,
    details: Optional[str] = None,
) -> Optional[ActivityLog]:
    """Append an activity entry in its own commit.

    Failures are logged and rolled back; the caller's primary write has
    already been committed and is never undone here.
    """
    entry = ActivityLog(
        created_at=utcnow(),
        user_id=user_id,
        action=action,
        entity=entity,
        details=details,
    )
    try:
        db_session.add(entry)
        db_session.commit()
    except SQLAlchemyError:
        db_session.rollback()
        logger.exception("Failed to log activity %s %s for user %s", action, entity, user_id)
        return None
    return entry
