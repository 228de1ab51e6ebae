from fastapi import APIRouter, Query, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from contesthub.routes.auth.dependencies import get_database
from contesthub.services.contest.leaderboard import LeaderboardService
from contesthub.utils.response import success_response

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


@router.get("")
async def get_leaderboard(
    limit: int = Query(20, ge=1, le=100, description="Number of top winners to return"),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Winners leaderboard.

    Counts declared wins per participant across all contests, most wins first.
    """
    leaderboard_service = LeaderboardService(db)
    leaderboard = await leaderboard_service.get_top_winners(limit=limit)

    return success_response(
        message="Leaderboard retrieved successfully",
        data={
            "leaderboard": leaderboard,
            "total_users": len(leaderboard)
        }
    )
