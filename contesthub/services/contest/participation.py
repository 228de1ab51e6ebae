from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Dict, List, Tuple
from datetime import datetime
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from contesthub.core.exceptions import ConflictError, NotFoundError
from contesthub.models.contest.audit import AuditAction
from contesthub.models.contest.participation import PAID, ParticipationInDB, SubmissionCreate
from contesthub.services.contest.contest import ContestService, to_object_id


class ParticipationService:
    """
    Participation ledger: one payment/submission record per
    (contest_id, participant_email).
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.participations = db.participations
        self.contest_service = ContestService(db)

    async def record_payment(self, record: ParticipationInDB) -> Tuple[Dict, bool]:
        """
        Insert the participation record if it is not already there.

        The unique indexes on (contest_id, participant_email) and
        transaction_id make this the idempotency point for payment completion.

        Returns:
            (record, created)
        """
        document = record.model_dump()
        try:
            result = await self.participations.insert_one(document)
            document["_id"] = result.inserted_id
            return document, True
        except DuplicateKeyError:
            existing = await self.participations.find_one({
                "contest_id": record.contest_id,
                "participant_email": record.participant_email
            })
            if existing is None:
                existing = await self.participations.find_one({"transaction_id": record.transaction_id})

            if existing is None:
                raise

            if existing.get("transaction_id") != record.transaction_id:
                print(
                    f"[WARN] {record.participant_email} already paid for contest {record.contest_id} "
                    f"with {existing.get('transaction_id')}, ignoring {record.transaction_id}"
                )
            return existing, False

    async def get_record(self, contest_id: str, participant_email: str) -> Dict:
        record = await self.participations.find_one({
            "contest_id": contest_id,
            "participant_email": participant_email
        })
        if record is None:
            raise NotFoundError("Participation record not found")
        return record

    async def get_payment_status(self, contest_id: str, participant_email: str) -> Dict:
        """Advisory check used by clients to show the submission form"""
        to_object_id(contest_id)
        record = await self.participations.find_one(
            {"contest_id": contest_id, "participant_email": participant_email},
            {"payment_status": 1, "transaction_id": 1}
        )
        payment_status = record.get("payment_status") if record else None

        return {
            "contest_id": contest_id,
            "participant_email": participant_email,
            "paid": payment_status == PAID,
            "payment_status": payment_status
        }

    async def submit_task(
        self,
        contest_id: str,
        participant_email: str,
        submission: SubmissionCreate
    ) -> Dict:
        """
        Store (or replace) a participant's task submission.

        Only a paid participation record can carry a submission. A missing
        record is reported before the deadline check.
        """
        contest = await self.contest_service.get_contest(contest_id)

        query = {
            "contest_id": contest_id,
            "participant_email": participant_email,
            "payment_status": PAID
        }
        if await self.participations.count_documents(query) == 0:
            raise NotFoundError("No paid registration found for this contest")

        if contest.get("deadline") and contest["deadline"] < datetime.utcnow():
            raise ConflictError("Contest deadline has passed")

        record = await self.participations.find_one_and_update(
            query,
            {"$set": {
                "submission": submission.model_dump(),
                "submitted_at": datetime.utcnow()
            }},
            return_document=ReturnDocument.AFTER
        )
        if record is None:
            raise NotFoundError("No paid registration found for this contest")

        await self.contest_service.audit_service.log_action(
            contest_id=contest_id,
            action=AuditAction.SUBMISSION_CREATED,
            actor_email=participant_email
        )

        return record

    async def mark_winner(self, contest_id: str, participant_email: str) -> bool:
        """Flag the participant's record as the contest winner (no-op if already flagged)"""
        result = await self.participations.update_one(
            {
                "contest_id": contest_id,
                "participant_email": participant_email,
                "winner": {"$ne": True}
            },
            {"$set": {"winner": True, "winner_set_at": datetime.utcnow()}}
        )
        return result.modified_count == 1

    async def list_by_participant(self, participant_email: str) -> List[Dict]:
        """Every contest a participant paid for, newest first"""
        return await self.participations.find({
            "participant_email": participant_email
        }).sort("created_at", -1).to_list(length=None)

    async def list_wins(self, participant_email: str) -> List[Dict]:
        """Records where the participant was declared winner"""
        return await self.participations.find({
            "participant_email": participant_email,
            "winner": True
        }).sort("winner_set_at", -1).to_list(length=None)

    async def list_submissions(self, contest_id: str, creator_email: str) -> List[Dict]:
        """Submitted entries for a creator's own contest"""
        await self.contest_service.get_creator_contest(contest_id, creator_email)

        return await self.participations.find({
            "contest_id": contest_id,
            "submission": {"$ne": None}
        }).sort("submitted_at", 1).to_list(length=None)
