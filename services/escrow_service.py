# Escrow Settlement Engine
# Owns the financial sub-state of a request: initialization, custody, release and failure.

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from config.app_config import MIN_BUDGET
from core.paystack_service import PaymentGateway
from database.models import User
from database.collaboration_models import CollaborationRequest, EscrowRecord, EscrowStatusDB
from services.clock import Clock
from services.errors import (
    IntegrityError, InvalidTransitionError, NotFoundError, ValidationError,
)
from services.tier_service import TierProvider

logger = logging.getLogger(__name__)


def calculate_platform_fee(amount: int, fee_percent: float) -> int:
    """Fee in the smallest currency unit, rounded half up."""
    fee = (Decimal(amount) * Decimal(str(fee_percent)) / Decimal(100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(fee)


class EscrowService:
    """
    Every mutation is a compare-and-set on the record's status followed by a
    balance check. Callers own the transaction; nothing here commits.
    """

    def __init__(self, db: Session, gateway: PaymentGateway, tier_provider: TierProvider, clock: Clock):
        self.db = db
        self.gateway = gateway
        self.tier_provider = tier_provider
        self.clock = clock

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_by_reference(self, reference: str) -> EscrowRecord:
        record = self.db.query(EscrowRecord).filter(EscrowRecord.reference == reference).first()
        if not record:
            raise NotFoundError("Payment not found", {"reference": reference})
        return record

    def get_for_request(self, request_id: str) -> Optional[EscrowRecord]:
        return self.db.query(EscrowRecord).filter(EscrowRecord.request_id == request_id).first()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def initialize(self, request: CollaborationRequest) -> EscrowRecord:
        """
        Price the charge from the creator's current tier and open it with the gateway.

        A failed record is re-opened in place with a new reference so a request
        never owns more than one escrow record.
        """
        amount = request.final_budget
        if amount is None:
            raise InvalidTransitionError("The budget has not been agreed yet", {"request_id": request.id})
        if amount < MIN_BUDGET:
            raise ValidationError(f"Amount must be at least {MIN_BUDGET}", {"amount": amount, "minimum": MIN_BUDGET})

        existing = self.get_for_request(request.id)
        if existing and existing.status != EscrowStatusDB.FAILED:
            raise InvalidTransitionError(
                "Payment has already been initialized for this request",
                {"reference": existing.reference, "escrow_status": existing.status.value},
            )

        quote = self.tier_provider.get_fee(request.creator_id)
        platform_fee = calculate_platform_fee(amount, quote.fee_percent)
        creator_payout = amount - platform_fee

        brand = self.db.query(User).filter(User.id == request.brand_id).first()
        reference = self.gateway.initialize_charge(amount, {
            "email": brand.email if brand else None,
            "request_id": request.id,
            "reference_number": request.reference_number,
            "platform_fee": platform_fee,
            "creator_payout": creator_payout,
        })

        now = self.clock.now()
        values = dict(
            reference=reference,
            amount=amount,
            platform_fee=platform_fee,
            creator_payout=creator_payout,
            fee_percent=quote.fee_percent,
            tier=quote.tier,
            currency=request.currency,
            status=EscrowStatusDB.PENDING,
        )

        if existing:
            if not self._compare_and_set(existing, EscrowStatusDB.FAILED, values):
                raise InvalidTransitionError(
                    "Payment state changed during re-initialization", {"reference": existing.reference}
                )
            record = existing
        else:
            record = EscrowRecord(request_id=request.id, created_at=now, **values)
            self.db.add(record)
            self.db.flush()

        self._assert_balanced(record)
        logger.info(
            f"Escrow initialized for {request.reference_number}: amount={amount} "
            f"fee={platform_fee} ({quote.fee_percent}% {quote.tier}) payout={creator_payout}"
        )
        return record

    def confirm(self, reference: str, amount_captured: Optional[int] = None) -> EscrowRecord:
        """Move pending -> escrow. Repeated confirmations are no-ops."""
        record = self.get_by_reference(reference)
        self._assert_balanced(record)

        if record.status in (EscrowStatusDB.ESCROW, EscrowStatusDB.RELEASED):
            return record
        if record.status == EscrowStatusDB.FAILED:
            raise InvalidTransitionError("This payment has already failed", {"reference": reference})

        if amount_captured is not None and amount_captured != record.amount:
            self._integrity_violation(
                f"Captured amount {amount_captured} does not match escrow amount {record.amount}",
                record,
            )

        if not self._compare_and_set(record, EscrowStatusDB.PENDING, {
            "status": EscrowStatusDB.ESCROW,
            "escrow_at": self.clock.now(),
        }):
            # Lost a race with another confirmation
            self.db.refresh(record)
            if record.status != EscrowStatusDB.ESCROW:
                raise InvalidTransitionError("Payment state changed during confirmation", {"reference": reference})

        self._assert_balanced(record)
        return record

    def release(self, request_id: str) -> EscrowRecord:
        """Move escrow -> released. Anything else is a double-release or release-before-funding."""
        record = self.get_for_request(request_id)
        if record is None:
            self._integrity_violation("Release attempted with no escrow record", None, request_id=request_id)
        self._assert_balanced(record)

        if record.status != EscrowStatusDB.ESCROW:
            self._integrity_violation(
                f"Release attempted while escrow is {record.status.value}", record
            )

        if not self._compare_and_set(record, EscrowStatusDB.ESCROW, {
            "status": EscrowStatusDB.RELEASED,
            "escrow_released_at": self.clock.now(),
        }):
            self._integrity_violation("Concurrent release detected", record)

        self._assert_balanced(record)
        logger.info(f"Escrow {record.reference} released: payout={record.creator_payout}")
        return record

    def mark_failed(self, reference: str, reason: str) -> EscrowRecord:
        record = self.get_by_reference(reference)
        self._assert_balanced(record)

        if record.status == EscrowStatusDB.FAILED:
            return record
        if record.status != EscrowStatusDB.PENDING:
            raise InvalidTransitionError(
                f"Cannot fail a payment that is {record.status.value}", {"reference": reference}
            )

        if not self._compare_and_set(record, EscrowStatusDB.PENDING, {
            "status": EscrowStatusDB.FAILED,
            "failed_at": self.clock.now(),
            "failure_reason": reason,
        }):
            raise InvalidTransitionError("Payment state changed during failure handling", {"reference": reference})

        self._assert_balanced(record)
        logger.warning(f"Escrow {reference} failed: {reason}")
        return record

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def transactions(self, user_id: str, creator_id: Optional[str] = None) -> List[Tuple[EscrowRecord, CollaborationRequest]]:
        """Escrow records where the caller paid (as brand) or is paid (as creator), newest first."""
        party = CollaborationRequest.brand_id == user_id
        if creator_id:
            party = or_(party, CollaborationRequest.creator_id == creator_id)
        return self.db.query(EscrowRecord, CollaborationRequest).join(
            CollaborationRequest, CollaborationRequest.id == EscrowRecord.request_id
        ).filter(party).order_by(EscrowRecord.created_at.desc(), EscrowRecord.id).all()

    def earnings_summary(self, creator_id: str) -> dict:
        rows = self.db.query(
            EscrowRecord.status,
            func.coalesce(func.sum(EscrowRecord.creator_payout), 0),
            func.coalesce(func.sum(EscrowRecord.platform_fee), 0),
            func.count(EscrowRecord.id),
        ).join(CollaborationRequest, CollaborationRequest.id == EscrowRecord.request_id).filter(
            CollaborationRequest.creator_id == creator_id,
            EscrowRecord.status.in_([EscrowStatusDB.ESCROW, EscrowStatusDB.RELEASED]),
        ).group_by(EscrowRecord.status).all()

        totals = {status: (int(payout), int(fee), count) for status, payout, fee, count in rows}
        pending = totals.get(EscrowStatusDB.ESCROW, (0, 0, 0))
        released = totals.get(EscrowStatusDB.RELEASED, (0, 0, 0))
        return {
            "pending_earnings": pending[0],
            "released_earnings": released[0],
            "total_platform_fees": pending[1] + released[1],
            "collaborations_in_escrow": pending[2],
            "collaborations_paid": released[2],
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _compare_and_set(self, record: EscrowRecord, expected: EscrowStatusDB, values: dict) -> bool:
        updated = self.db.query(EscrowRecord).filter(
            EscrowRecord.id == record.id,
            EscrowRecord.status == expected,
        ).update(values, synchronize_session=False)
        if updated == 0:
            return False
        self.db.refresh(record)
        return True

    def _assert_balanced(self, record: EscrowRecord) -> None:
        if record.amount != record.creator_payout + record.platform_fee:
            self._integrity_violation(
                f"amount {record.amount} != payout {record.creator_payout} + fee {record.platform_fee}",
                record,
            )

    def _integrity_violation(self, message: str, record: Optional[EscrowRecord], **extra) -> None:
        detail = dict(extra)
        if record is not None:
            detail.update({
                "escrow_id": record.id,
                "reference": record.reference,
                "escrow_status": record.status.value if record.status else None,
            })
        logger.critical(f"ESCROW INTEGRITY VIOLATION: {message} {detail}")
        raise IntegrityError(message, detail)
