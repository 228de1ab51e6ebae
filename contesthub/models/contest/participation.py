from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime


PAID = "paid"


class SubmissionCreate(BaseModel):
    """Schema for a participant submitting their task"""
    info: str = Field(..., min_length=1, max_length=5000)
    link: Optional[str] = Field(None, max_length=2000)

    @field_validator("link")
    @classmethod
    def link_is_url(cls, value: Optional[str]) -> Optional[str]:
        if value and not value.startswith(("http://", "https://")):
            raise ValueError("Link must be an http(s) URL")
        return value


class Submission(BaseModel):
    """Submission stored on a participation record"""
    info: str
    link: Optional[str] = None


class WinnerDeclare(BaseModel):
    """Schema for a creator declaring a contest winner"""
    participant_email: EmailStr


class ParticipationInDB(BaseModel):
    """
    One participant's payment and submission record for one contest.
    (contest_id, participant_email) identifies the record.
    """
    contest_id: str
    contest_name: Optional[str] = None
    creator_email: Optional[str] = None
    participant_email: str
    participant_name: Optional[str] = None

    # Payment (values come from the payment processor, never the client)
    session_id: str
    transaction_id: str
    amount: float
    currency: str
    payment_status: str

    # Task submission
    submission: Optional[Submission] = None
    submitted_at: Optional[datetime] = None

    # Winner
    winner: bool = False
    winner_set_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
