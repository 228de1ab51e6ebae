from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum


PUBLIC_PAGE_SIZE = 10


class ContestStatus(str, Enum):
    """
    Contest status types - State Machine

    State Transitions (admin only):
    - PENDING -> APPROVED
    - PENDING -> REJECTED
    - REJECTED -> APPROVED
    - REJECTED -> REJECTED
    APPROVED is terminal: no further status change and no creator edits.
    """
    PENDING = "pending"  # Created, waiting for moderation
    APPROVED = "approved"  # Visible to public, accepting participants
    REJECTED = "rejected"  # Declined by an admin, may still be approved later


def _to_naive_utc(value: datetime) -> datetime:
    """Store all datetimes as naive UTC, the way the driver returns them"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ContestCreate(BaseModel):
    """
    Schema for creating a contest.

    Lifecycle fields (status, participants_count, participants, winner) and
    creator identity are not part of the schema; anything the client sends
    for them is ignored.
    """
    name: str = Field(..., min_length=3, max_length=200)
    image: Optional[str] = None
    description: str = Field(..., min_length=10)
    task_instruction: str = Field(..., min_length=5)
    contest_type: str = Field(..., min_length=2, max_length=50)
    entry_price: float = Field(..., gt=0)
    prize_money: float = Field(..., ge=0)
    deadline: datetime

    @field_validator("contest_type")
    @classmethod
    def strip_contest_type(cls, value: str) -> str:
        return value.strip()

    @field_validator("deadline")
    @classmethod
    def deadline_in_future(cls, value: datetime) -> datetime:
        value = _to_naive_utc(value)
        if value <= datetime.utcnow():
            raise ValueError("Deadline must be in the future")
        return value


class ContestUpdate(BaseModel):
    """Schema for a creator editing a contest (not allowed once approved)"""
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    image: Optional[str] = None
    description: Optional[str] = Field(None, min_length=10)
    task_instruction: Optional[str] = Field(None, min_length=5)
    contest_type: Optional[str] = Field(None, min_length=2, max_length=50)
    entry_price: Optional[float] = Field(None, gt=0)
    prize_money: Optional[float] = Field(None, ge=0)
    deadline: Optional[datetime] = None

    @field_validator("contest_type")
    @classmethod
    def strip_contest_type(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value

    @field_validator("deadline")
    @classmethod
    def deadline_in_future(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        value = _to_naive_utc(value)
        if value <= datetime.utcnow():
            raise ValueError("Deadline must be in the future")
        return value


class ContestStatusUpdate(BaseModel):
    """Schema for an admin moderating a contest"""
    status: ContestStatus


class ContestParticipant(BaseModel):
    """Entry in a contest's participants list"""
    email: str
    payment_status: str
    transaction_id: Optional[str] = None
    joined_at: datetime


class ContestWinner(BaseModel):
    """Reference to the declared winner"""
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None


class ContestInDB(BaseModel):
    """Schema for contest stored in database"""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    name: str
    image: Optional[str] = None
    description: str
    task_instruction: str
    contest_type: str
    entry_price: float
    prize_money: float
    deadline: datetime
    creator_email: str
    creator_name: Optional[str] = None

    # Lifecycle
    status: ContestStatus = ContestStatus.PENDING
    participants_count: int = 0
    participants: List[ContestParticipant] = []
    winner: Optional[ContestWinner] = None
    winner_declared_at: Optional[datetime] = None

    # Timestamps
    created_at: datetime
    updated_at: datetime
