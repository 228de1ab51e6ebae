from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Dict

from contesthub.core.exceptions import ConflictError, NotFoundError
from contesthub.models.contest.audit import AuditAction
from contesthub.models.contest.contest import ContestStatus, ContestWinner
from contesthub.models.contest.participation import PAID
from contesthub.services.auth.user_service import UserService
from contesthub.services.contest.contest import ContestService
from contesthub.services.contest.participation import ParticipationService


class WinnerService:
    """Declares contest winners, exactly once per contest"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.contest_service = ContestService(db)
        self.participation_service = ParticipationService(db)
        self.user_service = UserService(db)

    async def declare_winner(
        self,
        contest_id: str,
        creator_email: str,
        participant_email: str
    ) -> Dict:
        """
        Declare the winner of a creator's own contest.

        First declaration wins. Later calls report "already declared" and
        leave the stored winner untouched. A replay naming the current winner
        re-applies the ledger flag, which repairs a crash between the two writes.

        Returns:
            {"declared": bool, "message": str, "winner": dict}
        """
        contest = await self.contest_service.get_creator_contest(contest_id, creator_email)

        if contest["status"] != ContestStatus.APPROVED.value:
            raise ConflictError("Winner can only be declared for an approved contest")

        if contest.get("winner"):
            return await self._already_declared(contest_id, contest["winner"])

        record = await self.participation_service.get_record(contest_id, participant_email)
        if record.get("payment_status") != PAID:
            raise NotFoundError("Participant has not paid for this contest")

        user = await self.user_service.find_user_by_email(participant_email) or {}
        winner = ContestWinner(
            email=participant_email,
            name=user.get("name") or record.get("participant_name"),
            photo_url=user.get("photo_url")
        ).model_dump()

        if not await self.contest_service.set_winner(contest_id, creator_email, winner):
            # Lost a race with another declaration
            current = await self.contest_service.get_contest(contest_id)
            return await self._already_declared(contest_id, current.get("winner"))

        await self.participation_service.mark_winner(contest_id, participant_email)

        await self.contest_service.audit_service.log_action(
            contest_id=contest_id,
            action=AuditAction.WINNER_DECLARED,
            actor_email=creator_email,
            metadata={"winner_email": participant_email}
        )

        return {
            "declared": True,
            "message": "Winner declared successfully",
            "winner": winner
        }

    async def _already_declared(self, contest_id: str, winner: Dict) -> Dict:
        if winner and winner.get("email"):
            await self.participation_service.mark_winner(contest_id, winner["email"])

        return {
            "declared": False,
            "message": "Winner already declared",
            "winner": winner
        }
