"""
Checkout Models
Request schemas for the paid-participation flow
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CheckoutSessionCreate(BaseModel):
    """
    Request to open a checkout session for a contest.
    The amount is always the contest's stored entry price.
    """
    contest_id: str = Field(..., min_length=1)
    created_at: Optional[datetime] = Field(None, description="Client-side timestamp recorded in session metadata")


class PaymentComplete(BaseModel):
    """Posted back by the client after the processor redirects"""
    session_id: str = Field(..., min_length=1)
