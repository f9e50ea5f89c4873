"""In-app notification dispatch for workflow participants."""
import enum
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from riskflow.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationType(str, enum.Enum):
    RISK_STATUS_CHANGED = "risk_status_changed"
    TASK_ASSIGNED = "task_assigned"


class NotificationSeverity(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationDispatcher:
    """Best-effort: a failed notification never fails the workflow call."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        organization_id: str,
        user_id: Optional[str],
        type: NotificationType | str,
        title: str,
        message: str,
        entity_type: str,
        entity_id,
        severity: NotificationSeverity | str = NotificationSeverity.INFO
    ) -> Optional[Notification]:
        if not user_id:
            logger.debug("Skipping %s notification with no recipient", title)
            return None

        notification = Notification(
            organization_id=organization_id,
            user_id=user_id,
            type=NotificationType(type).value,
            title=title,
            message=message,
            entity_type=entity_type,
            entity_id=str(entity_id),
            severity=NotificationSeverity(severity).value
        )
        try:
            self.db.add(notification)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to notify %s about %s %s", user_id, entity_type, entity_id)
            return None
        return notification
