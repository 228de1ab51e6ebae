"""
Payment Service
Opens checkout sessions for contest entry and reconciles completed payments
"""
from datetime import datetime
from typing import Optional, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase

from contesthub.config import Settings
from contesthub.core.exceptions import ConflictError, ForbiddenError, ValidationError
from contesthub.models.contest.audit import AuditAction
from contesthub.models.contest.contest import ContestStatus
from contesthub.models.contest.participation import PAID, ParticipationInDB
from contesthub.services.contest.contest import ContestService
from contesthub.services.contest.participation import ParticipationService
from contesthub.services.payment.gateways.base import BasePaymentGateway


class PaymentService:
    """
    Service for paid participation.

    Session creation is pure delegation to the gateway. Completion writes the
    ledger record and the contest's participant entry; both writes are
    insert-if-absent keyed on the processor's transaction, so replaying a
    completion is safe and also repairs a half-applied one.
    """

    def __init__(self, db: AsyncIOMotorDatabase, gateway: BasePaymentGateway, settings: Settings):
        self.db = db
        self.gateway = gateway
        self.settings = settings
        self.contest_service = ContestService(db)
        self.participation_service = ParticipationService(db)

    async def create_checkout_session(
        self,
        contest_id: str,
        participant: Dict,
        created_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Open a checkout session for a contest's entry fee.

        The charged amount is the contest's stored entry price. No documents
        are written.
        """
        contest = await self.contest_service.get_contest(contest_id)

        if contest["status"] != ContestStatus.APPROVED.value:
            raise ConflictError("Contest is not open for registration")
        if contest.get("deadline") and contest["deadline"] < datetime.utcnow():
            raise ConflictError("Contest deadline has passed")
        if await self.contest_service.is_participant(contest_id, participant["email"]):
            raise ConflictError("Already registered for this contest")

        created_at = created_at or datetime.utcnow()
        metadata = {
            "contest_id": contest_id,
            "creator_email": contest["creator_email"],
            "participant_email": participant["email"],
            "created_at": created_at.isoformat(),
        }

        client_url = self.settings.client_url
        result = await self.gateway.create_checkout_session(
            amount=contest["entry_price"],
            currency=self.settings.payment_currency,
            product_name=contest["name"],
            product_description=contest.get("description"),
            product_image=contest.get("image"),
            customer_email=participant["email"],
            success_url=f"{client_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{client_url}/contests/{contest_id}",
            metadata=metadata
        )

        return {
            "session_id": result.session_id,
            "url": result.url,
            "amount": contest["entry_price"],
            "currency": self.settings.payment_currency,
            "expires_at": result.expires_at
        }

    async def complete_payment(self, session_id: str, participant: Dict) -> Dict[str, Any]:
        """
        Reconcile a finished checkout session into the ledger and the contest.

        Amount, status and contest come from the processor's session, never
        from the client.
        """
        session = await self.gateway.retrieve_checkout_session(session_id)
        metadata = session.metadata or {}

        contest_id = metadata.get("contest_id")
        participant_email = metadata.get("participant_email")
        if not contest_id or not participant_email:
            raise ValidationError("Checkout session is missing contest metadata")

        if participant_email != participant["email"]:
            raise ForbiddenError("Checkout session belongs to another user")
        # Payer email reported by the processor must agree with the metadata
        if session.customer_email and session.customer_email.lower() != participant_email.lower():
            raise ForbiddenError("Checkout session belongs to another user")

        if session.payment_status != PAID:
            raise ConflictError(f"Payment not completed (status: {session.payment_status})")

        contest = await self.contest_service.get_contest(contest_id)
        transaction_id = session.transaction_id or session.session_id

        record, created = await self.participation_service.record_payment(
            ParticipationInDB(
                contest_id=contest_id,
                contest_name=contest.get("name"),
                creator_email=contest.get("creator_email"),
                participant_email=participant_email,
                participant_name=participant.get("name"),
                session_id=session.session_id,
                transaction_id=transaction_id,
                amount=session.amount,
                currency=session.currency,
                payment_status=session.payment_status
            )
        )

        enrolled = await self.contest_service.enroll_participant(
            contest_id=contest_id,
            participant_email=participant_email,
            payment_status=record.get("payment_status", session.payment_status),
            transaction_id=record.get("transaction_id", transaction_id)
        )

        if created or enrolled:
            await self.contest_service.audit_service.log_action(
                contest_id=contest_id,
                action=AuditAction.PARTICIPANT_ENROLLED,
                actor_email=participant_email,
                metadata={
                    "transaction_id": transaction_id,
                    "amount": session.amount,
                    "ledger_created": created,
                    "contest_enrolled": enrolled
                }
            )
        else:
            print(f"[INFO] Duplicate payment completion for {session.session_id}, nothing to apply")

        return {
            "contest_id": contest_id,
            "participant_email": participant_email,
            "transaction_id": record.get("transaction_id"),
            "amount": record.get("amount"),
            "payment_status": record.get("payment_status"),
            "enrolled": enrolled,
            "already_recorded": not created
        }
