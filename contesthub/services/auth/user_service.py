from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, Dict, List, Tuple
from datetime import datetime
from pymongo import ReturnDocument

from contesthub.core.exceptions import NotFoundError
from contesthub.models.auth.user import UserCreate, UserInDB, UserRole


class UserService:
    """Service for user records and roles"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.users = db.users

    async def register_user(self, user_data: UserCreate) -> Tuple[Dict, bool]:
        """
        Register a user on first sign-in.

        Always assigns role=user. Registering an email that already exists
        returns the stored record untouched.

        Returns:
            (user, created)
        """
        user = UserInDB(
            email=user_data.email,
            name=user_data.name,
            photo_url=user_data.photo_url,
        ).model_dump()

        result = await self.users.update_one(
            {"email": user["email"]},
            {"$setOnInsert": user},
            upsert=True
        )

        stored = await self.users.find_one({"email": user["email"]})
        return stored, result.upserted_id is not None

    async def find_user_by_email(self, email: str) -> Optional[Dict]:
        """Get user by email, None if absent"""
        return await self.users.find_one({"email": email})

    async def get_user_by_email(self, email: str) -> Dict:
        """Get user by email"""
        user = await self.find_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_role(self, email: str) -> str:
        user = await self.get_user_by_email(email)
        return user.get("role", UserRole.USER.value)

    async def list_users(self, role: Optional[UserRole] = None) -> List[Dict]:
        """All users, newest first"""
        query = {"role": role.value} if role else {}
        return await self.users.find(query).sort("created_at", -1).to_list(length=None)

    async def set_role(self, email: str, role: UserRole) -> Dict:
        """Change a user's role (admin operation)"""
        user = await self.users.find_one_and_update(
            {"email": email},
            {"$set": {"role": role.value, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER
        )
        if user is None:
            raise NotFoundError("User not found")
        return user
