"""
Payment Routes
API endpoints for paid contest entry
"""
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from contesthub.config import Settings
from contesthub.models.payment.checkout import CheckoutSessionCreate, PaymentComplete
from contesthub.routes.auth.dependencies import (
    get_current_user,
    get_database,
    get_payment_gateway,
    get_settings,
)
from contesthub.services.contest.participation import ParticipationService
from contesthub.services.payment.gateways.base import BasePaymentGateway
from contesthub.services.payment.payment_service import PaymentService
from contesthub.utils.response import success_response

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(
    db: AsyncIOMotorDatabase = Depends(get_database),
    gateway: BasePaymentGateway = Depends(get_payment_gateway),
    settings: Settings = Depends(get_settings)
) -> PaymentService:
    return PaymentService(db, gateway, settings)


@router.post("/checkout-session")
async def create_checkout_session(
    body: CheckoutSessionCreate,
    current_user: dict = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """
    Open a hosted checkout session for a contest's entry fee.

    Returns the processor URL to redirect the user to. Nothing is recorded
    until the payment is completed.
    """
    session = await payment_service.create_checkout_session(
        contest_id=body.contest_id,
        participant=current_user,
        created_at=body.created_at
    )

    return success_response(
        message="Checkout session created successfully",
        data=session,
        status_code=201
    )


@router.post("/complete")
async def complete_payment(
    body: PaymentComplete,
    current_user: dict = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """
    Record a finished payment.

    SECURITY:
    - Amount and status are read back from the processor
    - Safe to call repeatedly with the same session
    """
    result = await payment_service.complete_payment(body.session_id, current_user)

    return success_response(
        message="Payment already recorded" if result["already_recorded"] else "Payment recorded successfully",
        data=result
    )


@router.get("/status/{contest_id}")
async def get_payment_status(
    contest_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Whether the caller has paid for a contest"""
    participation_service = ParticipationService(db)
    status = await participation_service.get_payment_status(contest_id, current_user["email"])

    return success_response(
        message="Payment status retrieved successfully",
        data=status
    )
