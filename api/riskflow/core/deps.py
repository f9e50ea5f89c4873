"""FastAPI dependencies shared by the workflow endpoints."""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from riskflow.core.config import settings
from riskflow.core.database import get_db
from riskflow.services.risk_workflow import RiskWorkflowService


@dataclass(frozen=True)
class Actor:
    """Caller identity forwarded by the gateway after authentication."""
    user_id: str
    organization_id: str


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_organization_id: Optional[str] = Header(default=None)
) -> Actor:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required"
        )
    organization_id = (x_organization_id or "").strip() or settings.DEFAULT_ORGANIZATION_ID
    return Actor(user_id=x_user_id.strip(), organization_id=organization_id)


def get_workflow_service(db: Session = Depends(get_db)) -> RiskWorkflowService:
    return RiskWorkflowService(db)
