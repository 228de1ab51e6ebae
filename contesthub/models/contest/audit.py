from pydantic import BaseModel, ConfigDict
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum


class AuditAction(str, Enum):
    """Audit action types"""
    # Contest actions
    CONTEST_CREATED = "contest_created"
    CONTEST_UPDATED = "contest_updated"
    CONTEST_DELETED = "contest_deleted"
    CONTEST_STATUS_CHANGED = "contest_status_changed"

    # Participant actions
    PARTICIPANT_ENROLLED = "participant_enrolled"
    SUBMISSION_CREATED = "submission_created"

    # Winner actions
    WINNER_DECLARED = "winner_declared"


class AuditEntry(BaseModel):
    """Audit trail entry"""
    model_config = ConfigDict(use_enum_values=True)

    contest_id: str
    action: AuditAction
    actor_email: str
    changes: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime
