from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, Dict, Any, List
from datetime import datetime
from pymongo.errors import PyMongoError
from contesthub.models.contest.audit import AuditAction, AuditEntry


class AuditService:
    """Service for audit trail logging"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.audit_log = db.contest_audit_log

    async def log_action(
        self,
        contest_id: str,
        action: AuditAction,
        actor_email: str,
        changes: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Log an audit trail entry.

        A failed insert is reported and does not fail the request.
        """
        try:
            audit_entry = AuditEntry(
                contest_id=contest_id,
                action=action,
                actor_email=actor_email,
                changes=changes,
                metadata=metadata,
                timestamp=datetime.utcnow()
            )

            await self.audit_log.insert_one(audit_entry.model_dump())
            return True

        except PyMongoError as e:
            print(f"[WARN] Failed to write audit entry {action.value} for contest {contest_id}: {e}")
            return False

    async def get_contest_history(
        self,
        contest_id: str,
        limit: int = 100
    ) -> List[Dict]:
        """Get audit history for a contest, newest first"""
        return await self.audit_log.find({
            "contest_id": contest_id
        }).sort("timestamp", -1).limit(limit).to_list(length=limit)
