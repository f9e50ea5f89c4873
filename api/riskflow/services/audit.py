"""Audit recorder for workflow mutations.

Entries are written after the workflow transaction has committed. A failure
here is logged and dropped; the transition it describes has already happened.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from riskflow.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditRecorder:
    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        organization_id: str,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id,
        entity_name: Optional[str],
        description: Optional[str],
        changes: Optional[dict] = None
    ) -> Optional[AuditLog]:
        """Persist one audit entry. Returns None if the write failed."""
        entry = AuditLog(
            organization_id=organization_id,
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            entity_name=entity_name,
            description=description,
            changes=changes or None
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to write audit log %s for %s %s", action, entity_type, entity_id)
            return None
        return entry
