from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import List, Dict, Optional


class LeaderboardService:
    """Service for the winners leaderboard - aggregated from the participation ledger"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.participations = db.participations
        self.users = db.users

    async def get_top_winners(self, limit: Optional[int] = None) -> List[Dict]:
        """
        Count contest wins per participant, most wins first.

        Ties are ordered by email so the ranking is stable between calls.
        """
        pipeline = [
            {"$match": {"winner": True}},
            {"$group": {
                "_id": "$participant_email",
                "wins": {"$sum": 1},
                "name": {"$first": "$participant_name"}
            }},
            {"$sort": {"wins": -1, "_id": 1}}
        ]
        if limit:
            pipeline.append({"$limit": limit})

        rows = await self.participations.aggregate(pipeline).to_list(length=None)

        leaderboard = []
        for rank, row in enumerate(rows, start=1):
            leaderboard.append({
                "rank": rank,
                "email": row["_id"],
                "name": row.get("name"),
                "wins": row["wins"]
            })

        await self._attach_profiles(leaderboard)
        return leaderboard

    async def _attach_profiles(self, leaderboard: List[Dict]) -> None:
        """Fill in current display name and photo from the users collection"""
        if not leaderboard:
            return

        emails = [entry["email"] for entry in leaderboard]
        users = await self.users.find(
            {"email": {"$in": emails}},
            {"email": 1, "name": 1, "photo_url": 1}
        ).to_list(length=None)
        profiles = {user["email"]: user for user in users}

        for entry in leaderboard:
            profile = profiles.get(entry["email"])
            if profile:
                entry["name"] = profile.get("name") or entry["name"]
                entry["photo_url"] = profile.get("photo_url")
