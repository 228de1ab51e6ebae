from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError


class Database:
    """
    MongoDB connection owned by the application.

    Constructed once at startup and handed to services; nothing here is
    module-level state.
    """

    def __init__(self, mongodb_url: str, database_name: str, client: Optional[AsyncIOMotorClient] = None):
        self.mongodb_url = mongodb_url
        self.database_name = database_name
        self.client = client

    async def connect(self):
        """Connect to MongoDB"""
        if self.client is None:
            self.client = AsyncIOMotorClient(self.mongodb_url)
        print("[OK] Connected to MongoDB")

        # Create indexes
        await self.create_indexes()

    async def create_indexes(self):
        """Create database indexes"""
        db = self.get_db()

        # Users collection indexes
        try:
            await db.users.create_index([("email", ASCENDING)], unique=True)
            print("[OK] Created unique index on users.email")
        except PyMongoError as e:
            print(f"[WARN] Index on users.email may already exist: {e}")

        # Contest indexes
        try:
            await db.contests.create_index([("creator_email", ASCENDING), ("created_at", DESCENDING)])
            await db.contests.create_index([("status", ASCENDING), ("contest_type", ASCENDING)])
            await db.contests.create_index([("status", ASCENDING), ("participants_count", DESCENDING)])
            print("[OK] Created indexes on contests")
        except PyMongoError as e:
            print(f"[WARN] Indexes on contests may already exist: {e}")

        # Participation ledger indexes
        # (contest_id, participant_email) is the identity of a participation record
        try:
            await db.participations.create_index(
                [("contest_id", ASCENDING), ("participant_email", ASCENDING)],
                unique=True
            )
            await db.participations.create_index([("transaction_id", ASCENDING)], unique=True)
            await db.participations.create_index([("winner", ASCENDING), ("participant_email", ASCENDING)])
            print("[OK] Created indexes on participations")
        except PyMongoError as e:
            print(f"[WARN] Indexes on participations may already exist: {e}")

        # Audit log indexes
        try:
            await db.contest_audit_log.create_index([("contest_id", ASCENDING), ("timestamp", DESCENDING)])
            print("[OK] Created index on contest_audit_log")
        except PyMongoError as e:
            print(f"[WARN] Index on contest_audit_log may already exist: {e}")

    async def close(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            self.client = None
            print("[OK] Disconnected from MongoDB")

    def get_db(self) -> AsyncIOMotorDatabase:
        """Get database instance"""
        if self.client is None:
            raise RuntimeError("Database is not connected")
        return self.client[self.database_name]
