from fastapi import APIRouter, Depends, Query
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from contesthub.models.contest.contest import (
    ContestCreate,
    ContestUpdate,
    ContestStatus,
    ContestStatusUpdate,
)
from contesthub.models.contest.participation import WinnerDeclare
from contesthub.routes.auth.dependencies import get_database, require_admin, require_creator
from contesthub.services.contest.audit import AuditService
from contesthub.services.contest.contest import ContestService, public_view, to_object_id
from contesthub.services.contest.participation import ParticipationService
from contesthub.services.contest.winner import WinnerService
from contesthub.utils.response import success_response

router = APIRouter(prefix="/contests", tags=["Contests"])
creator_router = APIRouter(prefix="/creator/contests", tags=["Creator Contests"])
admin_router = APIRouter(prefix="/admin/contests", tags=["Admin Contests"])


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

@router.get("")
async def list_contests(
    type: Optional[str] = Query(None, description="Filter by contest type"),
    page: int = Query(1, ge=1),
    sort: Optional[str] = Query(None, pattern="^participants$", description="Sort by participant count"),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    List approved contests, 10 per page.

    - type: exact contest type (case-insensitive)
    - sort=participants: most participants first
    """
    contest_service = ContestService(db)
    result = await contest_service.list_public(
        contest_type=type,
        page=page,
        sort_by_participants=sort == "participants"
    )

    return success_response(
        message="Contests retrieved successfully",
        data=result
    )


@router.get("/popular")
async def list_popular_contests(
    limit: int = Query(6, ge=1, le=50),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Approved contests with the most participants"""
    contest_service = ContestService(db)
    contests = await contest_service.list_popular(limit)

    return success_response(
        message="Popular contests retrieved successfully",
        data={"contests": contests}
    )


@router.get("/types")
async def list_contest_types(db: AsyncIOMotorDatabase = Depends(get_database)):
    """Distinct contest types among approved contests"""
    contest_service = ContestService(db)
    types = await contest_service.list_contest_types()

    return success_response(
        message="Contest types retrieved successfully",
        data={"types": types}
    )


@router.get("/search")
async def search_contests(
    type: str = Query(..., min_length=1, max_length=50),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Search approved contests by contest type substring"""
    contest_service = ContestService(db)
    contests = await contest_service.search_by_type(type)

    return success_response(
        message="Search completed",
        data={"contests": contests, "total": len(contests), "query": type}
    )


@router.get("/{contest_id}")
async def get_contest(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contest detail"""
    contest_service = ContestService(db)
    contest = await contest_service.get_contest(contest_id)

    return success_response(
        message="Contest retrieved successfully",
        data={"contest": public_view(contest)}
    )


# ---------------------------------------------------------------------------
# Creator
# ---------------------------------------------------------------------------

@creator_router.post("")
async def create_contest(
    contest_data: ContestCreate,
    creator: dict = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Create a contest.

    Starts as `pending` with no participants and no winner, whatever the
    request body says about those fields.
    """
    contest_service = ContestService(db)
    contest = await contest_service.create_contest(contest_data, creator)

    return success_response(
        message="Contest created successfully",
        data={"contest_id": str(contest["_id"]), "contest": contest},
        status_code=201
    )


@creator_router.get("")
async def list_my_contests(
    creator: dict = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contests created by the signed-in creator"""
    contest_service = ContestService(db)
    contests = await contest_service.list_by_creator(creator["email"])

    return success_response(
        message="Contests retrieved successfully",
        data={"contests": contests, "total": len(contests)}
    )


@creator_router.get("/{contest_id}")
async def get_my_contest(
    contest_id: str,
    creator: dict = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Edit view of one of the creator's own contests"""
    contest_service = ContestService(db)
    contest = await contest_service.get_creator_contest(contest_id, creator["email"])

    return success_response(
        message="Contest retrieved successfully",
        data={"contest": contest}
    )


@creator_router.patch("/{contest_id}")
async def update_contest(
    contest_id: str,
    update_data: ContestUpdate,
    creator: dict = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Edit a contest (not allowed once approved)"""
    contest_service = ContestService(db)
    contest = await contest_service.update_contest(contest_id, creator["email"], update_data)

    return success_response(
        message="Contest updated successfully",
        data={"contest": contest}
    )


@creator_router.delete("/{contest_id}")
async def delete_my_contest(
    contest_id: str,
    creator: dict = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Delete one of the creator's own contests"""
    contest_service = ContestService(db)
    await contest_service.delete_contest(contest_id, creator["email"], creator_email=creator["email"])

    return success_response(message="Contest deleted successfully")


@creator_router.get("/{contest_id}/submissions")
async def list_contest_submissions(
    contest_id: str,
    creator: dict = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Submitted tasks for one of the creator's contests"""
    participation_service = ParticipationService(db)
    submissions = await participation_service.list_submissions(contest_id, creator["email"])

    return success_response(
        message="Submissions retrieved successfully",
        data={"submissions": submissions, "total": len(submissions)}
    )


@creator_router.post("/{contest_id}/winner")
async def declare_winner(
    contest_id: str,
    body: WinnerDeclare,
    creator: dict = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Declare the contest winner.

    Write-once: if a winner is already set the response says so and the
    stored winner is kept.
    """
    winner_service = WinnerService(db)
    result = await winner_service.declare_winner(contest_id, creator["email"], body.participant_email)

    return success_response(
        message=result["message"],
        data=result
    )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

@admin_router.get("")
async def list_all_contests(
    status: Optional[ContestStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Every contest for moderation, optionally filtered by status"""
    contest_service = ContestService(db)
    result = await contest_service.list_all(status=status, page=page, limit=limit)

    return success_response(
        message="Contests retrieved successfully",
        data=result
    )


@admin_router.patch("/{contest_id}/status")
async def change_contest_status(
    contest_id: str,
    status_update: ContestStatusUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Approve or reject a contest. Approved contests cannot change status."""
    contest_service = ContestService(db)
    contest = await contest_service.set_status(contest_id, status_update.status, admin["email"])

    return success_response(
        message=f"Contest {status_update.status.value}",
        data={"contest": contest}
    )


@admin_router.delete("/{contest_id}")
async def delete_any_contest(
    contest_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Delete any contest (admin only)"""
    contest_service = ContestService(db)
    await contest_service.delete_contest(contest_id, admin["email"])

    return success_response(message="Contest deleted successfully")


@admin_router.get("/{contest_id}/history")
async def get_contest_history(
    contest_id: str,
    limit: int = Query(100, ge=1, le=500),
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Audit trail of a contest, newest first.

    Entries outlive the contest, so a deleted contest still has a history.
    """
    to_object_id(contest_id)
    audit_service = AuditService(db)
    history = await audit_service.get_contest_history(contest_id, limit=limit)

    return success_response(
        message="Contest history retrieved successfully",
        data={"history": history, "total": len(history)}
    )
