from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, List, Dict
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
import re

from contesthub.core.exceptions import ConflictError, NotFoundError, ValidationError
from contesthub.models.contest.contest import (
    ContestStatus,
    ContestCreate,
    ContestUpdate,
    ContestInDB,
    ContestParticipant,
    PUBLIC_PAGE_SIZE,
)
from contesthub.models.contest.audit import AuditAction
from contesthub.services.contest.audit import AuditService


MODERATION_STATUSES = (ContestStatus.APPROVED, ContestStatus.REJECTED)


def to_object_id(contest_id: str) -> ObjectId:
    """Parse a contest id, rejecting malformed ids before touching the store"""
    try:
        return ObjectId(contest_id)
    except (InvalidId, TypeError):
        raise ValidationError("Invalid contest id")


def public_view(contest: Dict) -> Dict:
    """Strip processor transaction ids from the participants list"""
    contest = dict(contest)
    contest["participants"] = [
        {k: v for k, v in participant.items() if k != "transaction_id"}
        for participant in contest.get("participants", [])
    ]
    return contest


class ContestService:
    """
    Contest repository and lifecycle state machine.

    Owns the contests collection: creation, listing, edits, moderation status,
    participant enrollment and the winner field.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.contests = db.contests
        self.audit_service = AuditService(db)

    async def create_contest(self, contest_data: ContestCreate, creator: Dict) -> Dict:
        """
        Create a new contest (creator only).

        Lifecycle fields always start fresh: pending, no participants, no winner.
        """
        now = datetime.utcnow()
        contest = ContestInDB(
            **contest_data.model_dump(),
            creator_email=creator["email"],
            creator_name=creator.get("name"),
            status=ContestStatus.PENDING,
            participants_count=0,
            participants=[],
            winner=None,
            created_at=now,
            updated_at=now
        ).model_dump()

        result = await self.contests.insert_one(contest)
        contest["_id"] = result.inserted_id

        # Log creation to audit trail
        await self.audit_service.log_action(
            contest_id=str(result.inserted_id),
            action=AuditAction.CONTEST_CREATED,
            actor_email=creator["email"],
            metadata={
                "name": contest["name"],
                "entry_price": contest["entry_price"],
                "contest_type": contest["contest_type"]
            }
        )

        return contest

    async def get_contest(self, contest_id: str) -> Dict:
        """Get any contest by ID"""
        contest = await self.contests.find_one({"_id": to_object_id(contest_id)})
        if not contest:
            raise NotFoundError("Contest not found")
        return contest

    async def get_creator_contest(self, contest_id: str, creator_email: str) -> Dict:
        """Get a contest only if it belongs to the given creator"""
        contest = await self.contests.find_one({
            "_id": to_object_id(contest_id),
            "creator_email": creator_email
        })
        if not contest:
            raise NotFoundError("Contest not found")
        return contest

    async def list_by_creator(self, creator_email: str) -> List[Dict]:
        """All contests created by one creator, newest first"""
        return await self.contests.find({
            "creator_email": creator_email
        }).sort("created_at", -1).to_list(length=None)

    async def list_all(
        self,
        status: Optional[ContestStatus] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict:
        """Moderation listing of every contest, optionally by status"""
        query = {"status": status.value} if status else {}
        return await self._paginate(query, [("created_at", -1)], page, limit)

    async def list_public(
        self,
        contest_type: Optional[str] = None,
        page: int = 1,
        sort_by_participants: bool = False
    ) -> Dict:
        """
        Approved contests only, fixed page size.

        Returns:
            {"contests", "total", "page", "total_pages"}
        """
        query = {"status": ContestStatus.APPROVED.value}
        if contest_type:
            query["contest_type"] = {"$regex": f"^{re.escape(contest_type.strip())}$", "$options": "i"}

        if sort_by_participants:
            sort = [("participants_count", -1), ("created_at", -1)]
        else:
            sort = [("created_at", -1)]

        result = await self._paginate(query, sort, page, PUBLIC_PAGE_SIZE)
        result["contests"] = [public_view(c) for c in result["contests"]]
        return result

    async def list_popular(self, limit: int = 6) -> List[Dict]:
        """Approved contests with the most participants"""
        contests = await self.contests.find({
            "status": ContestStatus.APPROVED.value
        }).sort([("participants_count", -1), ("created_at", -1)]).limit(limit).to_list(length=limit)
        return [public_view(c) for c in contests]

    async def list_contest_types(self) -> List[str]:
        """Distinct contest types among approved contests"""
        types = await self.contests.distinct("contest_type", {"status": ContestStatus.APPROVED.value})
        return sorted(types, key=str.lower)

    async def search_by_type(self, type_query: str) -> List[Dict]:
        """Case-insensitive substring match on contest_type (approved contests)"""
        type_query = type_query.strip()
        if not type_query:
            raise ValidationError("Search text is required")

        contests = await self.contests.find({
            "status": ContestStatus.APPROVED.value,
            "contest_type": {"$regex": re.escape(type_query), "$options": "i"}
        }).sort("created_at", -1).to_list(length=None)
        return [public_view(c) for c in contests]

    async def _paginate(self, query: Dict, sort: List, page: int, limit: int) -> Dict:
        total = await self.contests.count_documents(query)
        skip = (page - 1) * limit
        contests = await self.contests.find(query).sort(sort).skip(skip).limit(limit).to_list(length=limit)
        total_pages = (total + limit - 1) // limit

        return {
            "contests": contests,
            "total": total,
            "page": page,
            "total_pages": total_pages
        }

    async def update_contest(
        self,
        contest_id: str,
        creator_email: str,
        update_data: ContestUpdate
    ) -> Dict:
        """
        Merge edited fields into a creator's own contest.

        Fields are last-write-wins; an approved contest cannot be edited.
        """
        contest = await self.get_creator_contest(contest_id, creator_email)

        if contest["status"] == ContestStatus.APPROVED.value:
            raise ConflictError("Cannot edit an approved contest")

        update_dict = update_data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_dict:
            raise ValidationError("No fields to update")

        update_dict["updated_at"] = datetime.utcnow()

        # Status guard repeated in the filter
        updated = await self.contests.find_one_and_update(
            {
                "_id": contest["_id"],
                "creator_email": creator_email,
                "status": {"$ne": ContestStatus.APPROVED.value}
            },
            {"$set": update_dict},
            return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise ConflictError("Cannot edit an approved contest")

        await self.audit_service.log_action(
            contest_id=contest_id,
            action=AuditAction.CONTEST_UPDATED,
            actor_email=creator_email,
            changes={k: v for k, v in update_dict.items() if k != "updated_at"}
        )

        return updated

    async def delete_contest(
        self,
        contest_id: str,
        actor_email: str,
        creator_email: Optional[str] = None
    ) -> None:
        """
        Delete a contest.

        With creator_email set only that creator's contest matches; admins
        pass None to delete any contest.
        """
        query = {"_id": to_object_id(contest_id)}
        if creator_email is not None:
            query["creator_email"] = creator_email

        result = await self.contests.delete_one(query)
        if result.deleted_count == 0:
            raise NotFoundError("Contest not found")

        await self.audit_service.log_action(
            contest_id=contest_id,
            action=AuditAction.CONTEST_DELETED,
            actor_email=actor_email
        )

    async def set_status(
        self,
        contest_id: str,
        new_status: ContestStatus,
        admin_email: str
    ) -> Dict:
        """
        Moderate a contest: pending/rejected -> approved/rejected.

        Approved is terminal; the update filter never matches an approved
        contest.
        """
        if new_status not in MODERATION_STATUSES:
            raise ValidationError("Status can only be set to approved or rejected")

        object_id = to_object_id(contest_id)
        now = datetime.utcnow()

        previous = await self.contests.find_one_and_update(
            {"_id": object_id, "status": {"$ne": ContestStatus.APPROVED.value}},
            {"$set": {"status": new_status.value, "updated_at": now}},
            return_document=ReturnDocument.BEFORE
        )

        if previous is None:
            if await self.contests.count_documents({"_id": object_id}) == 0:
                raise NotFoundError("Contest not found")
            raise ConflictError("Cannot edit an approved contest")

        await self.audit_service.log_action(
            contest_id=contest_id,
            action=AuditAction.CONTEST_STATUS_CHANGED,
            actor_email=admin_email,
            changes={"status": {"from": previous["status"], "to": new_status.value}}
        )

        previous["status"] = new_status.value
        previous["updated_at"] = now
        return previous

    async def enroll_participant(
        self,
        contest_id: str,
        participant_email: str,
        payment_status: str,
        transaction_id: str
    ) -> bool:
        """
        Add a paid participant to the contest.

        Increment and push happen in one conditional update keyed on the
        participant email, so replays never double count. A participant who
        is already present has their payment status updated in place.

        Returns:
            True if the participant was newly added
        """
        object_id = to_object_id(contest_id)
        participant = ContestParticipant(
            email=participant_email,
            payment_status=payment_status,
            transaction_id=transaction_id,
            joined_at=datetime.utcnow()
        ).model_dump()

        result = await self.contests.update_one(
            {"_id": object_id, "participants.email": {"$ne": participant_email}},
            {
                "$inc": {"participants_count": 1},
                "$push": {"participants": participant}
            }
        )
        if result.modified_count:
            return True

        existing = await self.contests.update_one(
            {"_id": object_id, "participants.email": participant_email},
            {"$set": {"participants.$.payment_status": payment_status}}
        )
        if existing.matched_count == 0:
            raise NotFoundError("Contest not found")
        return False

    async def is_participant(self, contest_id: str, participant_email: str) -> bool:
        count = await self.contests.count_documents({
            "_id": to_object_id(contest_id),
            "participants.email": participant_email
        })
        return count > 0

    async def set_winner(
        self,
        contest_id: str,
        creator_email: str,
        winner: Dict
    ) -> bool:
        """
        Set the winner only if none is set yet (first declaration wins).

        Returns:
            True if this call set the winner
        """
        result = await self.contests.update_one(
            {
                "_id": to_object_id(contest_id),
                "creator_email": creator_email,
                "status": ContestStatus.APPROVED.value,
                "winner": None
            },
            {"$set": {
                "winner": winner,
                "winner_declared_at": datetime.utcnow(),
                "updated_at": datetime.utcnow()
            }}
        )
        return result.modified_count == 1
