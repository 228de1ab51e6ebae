"""
Participation Routes
Task submission and the caller's participation history
"""
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from contesthub.models.contest.participation import SubmissionCreate
from contesthub.routes.auth.dependencies import get_current_user, get_database
from contesthub.services.contest.participation import ParticipationService
from contesthub.utils.response import success_response

contest_router = APIRouter(prefix="/contests", tags=["Submissions"])
router = APIRouter(prefix="/participations", tags=["Participations"])


@contest_router.post("/{contest_id}/submission")
async def submit_task(
    contest_id: str,
    submission: SubmissionCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Submit (or resubmit) the task for a contest.

    Requires a completed payment for the contest.
    """
    participation_service = ParticipationService(db)
    record = await participation_service.submit_task(contest_id, current_user["email"], submission)

    return success_response(
        message="Task submitted successfully",
        data={"participation": record}
    )


@router.get("/me")
async def list_my_participations(
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contests the caller has paid for"""
    participation_service = ParticipationService(db)
    records = await participation_service.list_by_participant(current_user["email"])

    return success_response(
        message="Participations retrieved successfully",
        data={"participations": records, "total": len(records)}
    )


@router.get("/me/wins")
async def list_my_wins(
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contests the caller has won"""
    participation_service = ParticipationService(db)
    wins = await participation_service.list_wins(current_user["email"])

    return success_response(
        message="Winning contests retrieved successfully",
        data={"wins": wins, "total": len(wins)}
    )
