# Collaboration Request Orchestrator
# Applies the transition table to persisted requests. Each public operation is one
# database transaction: the compare-and-set, its side effects and the timeline event
# commit together, and notifications go out only after the commit.

import logging
from contextlib import contextmanager
from datetime import date
from typing import Callable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from config.app_config import DEFAULT_CURRENCY, DEFAULT_MAX_REVISIONS, MIN_BUDGET, MIN_NOTE_LENGTH
from core.paystack_service import PaymentGateway
from database.models import AvailabilitySlot, CreatorProfile, RateCard, SlotType, User, UserType
from database.collaboration_models import (
    CollaborationRequest, DeclineCategoryDB, EscrowRecord, NegotiationEntry,
    PartyRoleDB as Role, RequestEvent, RequestStatusDB as Status,
)
from services import negotiation
from services.availability import ensure_no_conflict
from services.clock import Clock
from services.errors import (
    InvalidTransitionError, NotFoundError, PermissionDeniedError,
    RevisionLimitError, ValidationError,
)
from services.escrow_service import EscrowService
from services.expiry_policy import compute_expires_at, expire_if_due, seconds_remaining, sweep_expired
from services.messaging_service import ConversationService
from services.notification_service import NotificationService
from services.request_state_machine import (
    Action, CONTRACT_STATUSES, RESPONDABLE_STATUSES, allowed_actions, next_status,
)
from services.request_store import compare_and_set, generate_reference_number, record_event
from services.tier_service import TierProvider
from services.trust_policy import (
    CREATOR_DECLINE_CATEGORIES, TrustOutcome, TrustPolicyConfig,
    ensure_not_suspended, record_decline,
)

logger = logging.getLogger(__name__)


def _require_note(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if len(text) < MIN_NOTE_LENGTH:
        raise ValidationError(
            f"{field.replace('_', ' ').capitalize()} must be at least {MIN_NOTE_LENGTH} characters",
            {"field": field, "min_length": MIN_NOTE_LENGTH},
        )
    return text


def _require_amount(amount: int, field: str) -> int:
    if amount is None or amount < MIN_BUDGET:
        raise ValidationError(
            f"{field.replace('_', ' ').capitalize()} must be at least {MIN_BUDGET}",
            {"field": field, "minimum": MIN_BUDGET},
        )
    return amount


def _dedupe(values: Optional[List[str]]) -> List[str]:
    seen = []
    for value in values or []:
        tag = value.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class CollaborationService:
    """Request lifecycle for one database session."""

    def __init__(
        self,
        db: Session,
        clock: Clock,
        gateway: Optional[PaymentGateway] = None,
        tier_provider: Optional[TierProvider] = None,
        notifier: Optional[NotificationService] = None,
        trust_config: Optional[TrustPolicyConfig] = None,
    ):
        self.db = db
        self.clock = clock
        self.gateway = gateway
        self.notifier = notifier or NotificationService(db)
        self.trust_config = trust_config or TrustPolicyConfig()
        self.conversations = ConversationService(db)
        self.escrow = EscrowService(db, gateway, tier_provider or TierProvider(db), clock)
        self._outbox: List[Callable[[NotificationService], object]] = []

    # =========================================================================
    # TRANSACTION & NOTIFICATION PLUMBING
    # =========================================================================

    @contextmanager
    def _unit_of_work(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._outbox.clear()
            raise
        self._dispatch_notifications()

    def _notify(self, send: Callable[[NotificationService], object]) -> None:
        self._outbox.append(send)

    def _dispatch_notifications(self) -> None:
        pending, self._outbox = self._outbox, []
        for send in pending:
            try:
                send(self.notifier)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.warning(f"Notification delivery failed: {e}")

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def _creator_profile_for(self, user: User) -> Optional[CreatorProfile]:
        return self.db.query(CreatorProfile).filter(CreatorProfile.user_id == user.id).first()

    def _get_creator(self, creator_id: str) -> CreatorProfile:
        creator = self.db.query(CreatorProfile).filter(CreatorProfile.id == creator_id).first()
        if not creator:
            raise NotFoundError("Creator not found", {"creator_id": creator_id})
        return creator

    def _role_for(self, user: User, request: CollaborationRequest) -> Role:
        if user.id == request.brand_id:
            return Role.BRAND
        profile = self._creator_profile_for(user)
        if profile and profile.id == request.creator_id:
            return Role.CREATOR
        raise PermissionDeniedError("You are not a party to this request", {"request_id": request.id})

    def _party_filter(self, user: User):
        """Requests ``user`` takes part in, as brand or as creator."""
        profile = self._creator_profile_for(user)
        if profile is None:
            return CollaborationRequest.brand_id == user.id
        return or_(CollaborationRequest.brand_id == user.id, CollaborationRequest.creator_id == profile.id)

    def _load(self, request_id: str) -> CollaborationRequest:
        """Fetch a request, expiring it first if its response window has lapsed."""
        request = self.db.query(CollaborationRequest).filter(CollaborationRequest.id == request_id).first()
        if not request:
            raise NotFoundError("Collaboration request not found", {"request_id": request_id})
        self._expire_lazily(request)
        return request

    def _expire_lazily(self, request: CollaborationRequest) -> None:
        with self._unit_of_work():
            if expire_if_due(self.db, request, self.clock.now()):
                self._queue_expired(request)

    def _queue_expired(self, request: CollaborationRequest) -> None:
        creator_user_id = request.creator.user_id
        self._notify(lambda n: n.notify_request_expired(
            request.brand_id, creator_user_id, request.id, request.reference_number
        ))

    def _party_names(self, request: CollaborationRequest) -> Tuple[str, str]:
        brand_name = (request.brand.name or request.brand.email) if request.brand else "A brand"
        creator_name = request.creator.display_name if request.creator else "The creator"
        return brand_name, creator_name

    # =========================================================================
    # TRANSITION
    # =========================================================================

    def _transition(
        self,
        request: CollaborationRequest,
        action: Action,
        role: Role,
        actor_id: Optional[str],
        values: Optional[dict] = None,
        note: Optional[str] = None,
    ) -> Status:
        from_status = request.status
        to_status = next_status(from_status, action, role)

        changes = dict(values or {})
        if from_status in RESPONDABLE_STATUSES and to_status not in RESPONDABLE_STATUSES:
            changes["expires_at"] = None

        if not compare_and_set(self.db, request, from_status, to_status, changes):
            raise InvalidTransitionError(
                "This request was changed by someone else. Reload and try again.",
                {"request_id": request.id, "expected_status": from_status.value},
            )

        record_event(self.db, request, action.value, from_status, to_status, role, actor_id, self.clock.now(), note)
        logger.info(
            f"Request {request.reference_number}: {from_status.value} -> {to_status.value} "
            f"({action.value} by {role.value})"
        )
        return to_status

    # =========================================================================
    # CREATION & READS
    # =========================================================================

    def create_request(
        self,
        brand: User,
        creator_id: str,
        title: str,
        proposed_budget: int,
        proposed_start_date: date,
        proposed_end_date: date,
        description: Optional[str] = None,
        content_requirements: Optional[str] = None,
        target_platforms: Optional[List[str]] = None,
        deliverables: Optional[List[str]] = None,
        service_ids: Optional[List[str]] = None,
        max_revisions: Optional[int] = None,
        currency: Optional[str] = None,
    ) -> CollaborationRequest:
        if brand.user_type != UserType.BRAND:
            raise PermissionDeniedError("Only brands can send collaboration requests")
        if not (title or "").strip():
            raise ValidationError("Title is required", {"field": "title"})
        _require_amount(proposed_budget, "proposed_budget")
        if max_revisions is None:
            max_revisions = DEFAULT_MAX_REVISIONS
        if max_revisions < 0:
            raise ValidationError("Max revisions cannot be negative", {"field": "max_revisions"})

        creator = self._get_creator(creator_id)
        if creator.user_id == brand.id:
            raise ValidationError("You cannot send a request to yourself")

        now = self.clock.now()
        ensure_not_suspended(creator, now)
        ensure_no_conflict(creator, proposed_start_date, proposed_end_date, now.date())

        services = []
        if service_ids:
            cards = self.db.query(RateCard).filter(
                RateCard.id.in_(service_ids),
                RateCard.creator_id == creator.id,
                RateCard.is_active == True,
            ).all()
            by_id = {card.id: card for card in cards}
            missing = [service_id for service_id in service_ids if service_id not in by_id]
            if missing:
                raise ValidationError("Some selected services are not offered by this creator", {"service_ids": missing})
            services = [by_id[service_id].snapshot() for service_id in service_ids]

        with self._unit_of_work():
            request = CollaborationRequest(
                reference_number=generate_reference_number(self.db, now),
                brand_id=brand.id,
                creator_id=creator.id,
                title=title.strip(),
                description=description,
                content_requirements=content_requirements,
                target_platforms=_dedupe(target_platforms),
                deliverables=list(deliverables or []),
                selected_services=services,
                proposed_budget=proposed_budget,
                currency=currency or DEFAULT_CURRENCY,
                proposed_start_date=proposed_start_date,
                proposed_end_date=proposed_end_date,
                status=Status.PENDING,
                version=1,
                expires_at=compute_expires_at(now),
                revision_count=0,
                max_revisions=max_revisions,
                created_at=now,
            )
            self.db.add(request)
            self.db.flush()
            record_event(self.db, request, "create", None, Status.PENDING, Role.BRAND, brand.id, now)

            brand_name = brand.name or brand.email
            self._notify(lambda n: n.notify_request_received(
                creator.user_id, brand_name, request.id, request.title,
                request.proposed_budget, request.currency, request.expires_at,
            ))

        logger.info(f"Request {request.reference_number} created by brand {brand.id} for creator {creator.id}")
        return request

    def get_request_for_user(self, user: User, request_id: str) -> CollaborationRequest:
        """Detail read. The creator opening a pending request marks it viewed."""
        request = self._load(request_id)
        role = self._role_for(user, request)
        if role == Role.CREATOR and request.status == Status.PENDING:
            with self._unit_of_work():
                self._transition(request, Action.VIEW, role, user.id)
        return request

    def list_requests(self, user: User, as_role: Role, status: Optional[Status] = None) -> List[CollaborationRequest]:
        query = self.db.query(CollaborationRequest)
        if as_role == Role.BRAND:
            query = query.filter(CollaborationRequest.brand_id == user.id)
        else:
            profile = self._creator_profile_for(user)
            if not profile:
                raise NotFoundError("Creator profile not found")
            query = query.filter(CollaborationRequest.creator_id == profile.id)

        requests = query.order_by(CollaborationRequest.created_at.desc()).all()
        for request in requests:
            self._expire_lazily(request)
        if status is not None:
            requests = [r for r in requests if r.status == status]
        return requests

    def allowed_actions_for(self, user: User, request: CollaborationRequest) -> List[str]:
        """Actions the caller can take right now, with the revision cap and signatures applied."""
        role = self._role_for(user, request)
        actions = []
        for action in allowed_actions(request.status, role):
            if action == Action.REQUEST_REVISION and request.revision_count >= request.max_revisions:
                continue
            if action == Action.SIGN_CONTRACT:
                signed_at = request.brand_signed_at if role == Role.BRAND else request.creator_signed_at
                if signed_at is not None:
                    continue
            actions.append(action.value)
        return actions

    def countdown(self, user: User, request_id: str) -> dict:
        request = self._load(request_id)
        self._role_for(user, request)
        return {
            "request_id": request.id,
            "status": request.status.value,
            "expires_at": request.expires_at.isoformat() if request.expires_at else None,
            "seconds_remaining": seconds_remaining(request, self.clock.now()),
        }

    def timeline(self, user: User, request_id: str) -> List[RequestEvent]:
        request = self._load(request_id)
        self._role_for(user, request)
        return self.db.query(RequestEvent).filter(
            RequestEvent.request_id == request.id
        ).order_by(RequestEvent.created_at, RequestEvent.id).all()

    def negotiations(self, user: User, request_id: str) -> List[NegotiationEntry]:
        request = self._load(request_id)
        self._role_for(user, request)
        return negotiation.history(self.db, request)

    # =========================================================================
    # CREATOR RESPONSE
    # =========================================================================

    def counter_offer(self, user: User, request_id: str, amount: int, message: Optional[str] = None) -> NegotiationEntry:
        _require_amount(amount, "amount")
        request = self._load(request_id)
        role = self._role_for(user, request)

        with self._unit_of_work():
            self._transition(request, Action.COUNTER_OFFER, role, user.id, {"proposed_budget": amount})
            entry = negotiation.append_offer(self.db, request, role, user.id, amount, message, self.clock.now())

            brand_name, creator_name = self._party_names(request)
            if role == Role.CREATOR:
                recipient, sender = request.brand_id, creator_name
            else:
                recipient, sender = request.creator.user_id, brand_name
            self._notify(lambda n: n.notify_counter_offer(recipient, sender, request.id, amount, request.currency))

        return entry

    def accept(self, user: User, request_id: str) -> CollaborationRequest:
        """Lock the offer on the table as final_budget and book the creator's calendar."""
        request = self._load(request_id)
        role = self._role_for(user, request)
        now = self.clock.now()

        with self._unit_of_work():
            final_budget = negotiation.current_offer(self.db, request)
            self._transition(request, Action.ACCEPT, role, user.id, {
                "final_budget": final_budget,
                "proposed_budget": final_budget,
                "responded_at": now,
            })

            self.db.add(AvailabilitySlot(
                creator_id=request.creator_id,
                start_date=request.proposed_start_date,
                end_date=request.proposed_end_date,
                reason=f"Booked: {request.reference_number}",
                slot_type=SlotType.BOOKED,
                request_id=request.id,
            ))
            conversation = self.conversations.get_or_create(request.brand_id, request.creator_id, request.id)
            request.conversation_id = conversation.id

            _, creator_name = self._party_names(request)
            self._notify(lambda n: n.notify_request_accepted(
                request.brand_id, creator_name, request.id, final_budget, request.currency
            ))

        return request

    def decline(self, user: User, request_id: str, category: str, reason: str) -> Tuple[CollaborationRequest, TrustOutcome]:
        try:
            category = DeclineCategoryDB(category)
        except ValueError:
            category = None
        if category not in CREATOR_DECLINE_CATEGORIES:
            raise ValidationError(
                "Choose a decline category",
                {"field": "category", "allowed": sorted(c.value for c in CREATOR_DECLINE_CATEGORIES)},
            )
        reason = _require_note(reason, "reason")

        request = self._load(request_id)
        role = self._role_for(user, request)
        now = self.clock.now()

        with self._unit_of_work():
            self._transition(request, Action.DECLINE, role, user.id, {
                "decline_category": category,
                "decline_reason": reason,
                "responded_at": now,
            }, note=reason)
            creator = self._get_creator(request.creator_id)
            outcome = record_decline(self.db, creator, request.id, category, reason, now, self.trust_config)

            _, creator_name = self._party_names(request)
            creator_user_id = creator.user_id
            self._notify(lambda n: n.notify_request_declined(
                request.brand_id, creator_name, request.id, category.value, reason
            ))
            if outcome.suspended:
                self._notify(lambda n: n.notify_suspension_applied(creator_user_id, outcome.suspended_until))
            elif outcome.warning:
                self._notify(lambda n: n.notify_decline_warning(
                    creator_user_id, outcome.warning, outcome.qualifying_declines
                ))

        return request, outcome

    def cancel(self, user: User, request_id: str, reason: Optional[str] = None) -> CollaborationRequest:
        request = self._load(request_id)
        role = self._role_for(user, request)

        with self._unit_of_work():
            self._transition(request, Action.CANCEL, role, user.id, note=reason)
            brand_name, _ = self._party_names(request)
            creator_user_id = request.creator.user_id
            self._notify(lambda n: n.notify_request_cancelled(creator_user_id, brand_name, request.id))

        return request

    # =========================================================================
    # CONTRACT
    # =========================================================================

    def sign_contract(self, user: User, request_id: str) -> CollaborationRequest:
        request = self._load(request_id)
        role = self._role_for(user, request)
        field = "brand_signed_at" if role == Role.BRAND else "creator_signed_at"
        if getattr(request, field) is not None:
            raise InvalidTransitionError(
                "You have already signed this contract",
                {"status": request.status.value, "action": Action.SIGN_CONTRACT.value, "role": role.value},
            )

        with self._unit_of_work():
            to_status = self._transition(request, Action.SIGN_CONTRACT, role, user.id, {field: self.clock.now()})
            user_ids = [request.brand_id, request.creator.user_id]
            fully_signed = to_status == Status.CONTRACT_SIGNED
            if fully_signed:
                recipients = user_ids
            else:
                recipients = [uid for uid in user_ids if uid != user.id]
            self._notify(lambda n: n.notify_contract_signed(recipients, request.id, fully_signed))

        return request

    def contract(self, user: User, request_id: str) -> dict:
        """Terms both parties sign. Available from acceptance onwards."""
        request = self._load(request_id)
        self._role_for(user, request)
        if request.final_budget is None:
            raise InvalidTransitionError(
                "The contract is available once the creator accepts",
                {"status": request.status.value},
            )
        return self._contract_terms(request)

    def list_contracts(self, user: User) -> List[dict]:
        """Every request the caller is party to that has reached acceptance."""
        query = self.db.query(CollaborationRequest).filter(
            self._party_filter(user),
            CollaborationRequest.status.in_(CONTRACT_STATUSES),
        )
        requests = query.order_by(CollaborationRequest.created_at.desc(), CollaborationRequest.id).all()
        return [self._contract_terms(request) for request in requests]

    def _contract_terms(self, request: CollaborationRequest) -> dict:
        brand_name, creator_name = self._party_names(request)
        return {
            "request_id": request.id,
            "reference_number": request.reference_number,
            "status": request.status.value,
            "brand_name": brand_name,
            "creator_name": creator_name,
            "title": request.title,
            "deliverables": request.deliverables or [],
            "target_platforms": request.target_platforms or [],
            "selected_services": request.selected_services or [],
            "final_budget": request.final_budget,
            "currency": request.currency,
            "proposed_start_date": request.proposed_start_date,
            "proposed_end_date": request.proposed_end_date,
            "max_revisions": request.max_revisions,
            "brand_signed_at": request.brand_signed_at,
            "creator_signed_at": request.creator_signed_at,
        }

    # =========================================================================
    # PAYMENT
    # =========================================================================

    def initialize_payment(self, user: User, request_id: str) -> Tuple[CollaborationRequest, EscrowRecord]:
        request = self._load(request_id)
        role = self._role_for(user, request)

        with self._unit_of_work():
            self._transition(request, Action.INITIALIZE_PAYMENT, role, user.id)
            record = self.escrow.initialize(request)

        return request, record

    def verify_payment(self, user: User, reference: str) -> Tuple[CollaborationRequest, EscrowRecord]:
        """Ask the gateway for the charge result and apply it."""
        record = self.escrow.get_by_reference(reference)
        request = self._load(record.request_id)
        self._role_for(user, request)

        verification = self.gateway.verify_charge(reference)
        if not verification.settled:
            # Not a failure signal; the webhook or a later verify settles it
            logger.info(f"Charge {reference} still {verification.gateway_status or 'pending'} at gateway")
            return request, record

        reason = None if verification.success else f"Gateway reported {verification.gateway_status or 'failure'}"
        return self._apply_charge_result(request, reference, verification.success, verification.amount_captured, reason)

    def handle_webhook_event(self, event: dict) -> Optional[Tuple[CollaborationRequest, EscrowRecord]]:
        """Apply a normalized gateway event (see PaystackWebhookHandler.parse)."""
        record = self.escrow.get_by_reference(event["reference"])
        request = self._load(record.request_id)
        return self._apply_charge_result(
            request, event["reference"], event["success"], event.get("amount"), event.get("reason"),
        )

    def _apply_charge_result(
        self,
        request: CollaborationRequest,
        reference: str,
        success: bool,
        amount_captured: Optional[int],
        reason: Optional[str],
    ) -> Tuple[CollaborationRequest, EscrowRecord]:
        with self._unit_of_work():
            if success:
                record = self.escrow.confirm(reference, amount_captured)
                self.db.refresh(request)
                if request.status == Status.PAYMENT_PENDING:
                    self._transition(request, Action.CONFIRM_PAYMENT, Role.SYSTEM, None, note=reference)
                    brand_name, _ = self._party_names(request)
                    creator_user_id = request.creator.user_id
                    self._notify(lambda n: n.notify_payment_confirmed(
                        creator_user_id, brand_name, request.id, record.amount, record.currency
                    ))
            else:
                reason = reason or "Payment failed"
                record = self.escrow.mark_failed(reference, reason)
                self.db.refresh(request)
                if request.status == Status.PAYMENT_PENDING:
                    self._transition(request, Action.FAIL_PAYMENT, Role.SYSTEM, None, note=reason)
                    self._notify(lambda n: n.notify_payment_failed(request.brand_id, request.id, reason))

        return request, record

    def escrow_status(self, user: User, request_id: str) -> Optional[EscrowRecord]:
        request = self._load(request_id)
        self._role_for(user, request)
        return self.escrow.get_for_request(request.id)

    def transactions(self, user: User) -> List[Tuple[EscrowRecord, CollaborationRequest]]:
        profile = self._creator_profile_for(user)
        return self.escrow.transactions(user.id, profile.id if profile else None)

    def earnings_summary(self, user: User) -> dict:
        profile = self._creator_profile_for(user)
        if not profile:
            raise NotFoundError("Creator profile not found")
        return self.escrow.earnings_summary(profile.id)

    # =========================================================================
    # DELIVERY & REVIEW
    # =========================================================================

    def submit_content(self, user: User, request_id: str, content_urls: List[str], notes: Optional[str] = None) -> CollaborationRequest:
        urls = [url.strip() for url in content_urls or [] if url and url.strip()]
        if not urls:
            raise ValidationError("Submit at least one content link", {"field": "content_urls"})

        request = self._load(request_id)
        role = self._role_for(user, request)

        with self._unit_of_work():
            self._transition(request, Action.SUBMIT_CONTENT, role, user.id, {
                "submitted_content_urls": urls,
                "content_submitted_at": self.clock.now(),
            }, note=notes)
            _, creator_name = self._party_names(request)
            self._notify(lambda n: n.notify_content_submitted(request.brand_id, creator_name, request.id))

        return request

    def request_revision(self, user: User, request_id: str, notes: str) -> CollaborationRequest:
        notes = _require_note(notes, "notes")
        request = self._load(request_id)
        role = self._role_for(user, request)

        # Status and role first, so a stray call is reported as an invalid transition
        next_status(request.status, Action.REQUEST_REVISION, role)
        if request.revision_count >= request.max_revisions:
            raise RevisionLimitError(
                f"The revision limit of {request.max_revisions} has been reached. Approve the content to continue.",
                {"revision_count": request.revision_count, "max_revisions": request.max_revisions},
            )

        with self._unit_of_work():
            self._transition(request, Action.REQUEST_REVISION, role, user.id, {
                "revision_count": request.revision_count + 1,
                "revision_notes": notes,
            }, note=notes)
            brand_name, _ = self._party_names(request)
            creator_user_id = request.creator.user_id
            remaining = request.max_revisions - request.revision_count
            self._notify(lambda n: n.notify_revision_requested(creator_user_id, brand_name, request.id, notes, remaining))

        return request

    def resume_work(self, user: User, request_id: str) -> CollaborationRequest:
        request = self._load(request_id)
        role = self._role_for(user, request)
        with self._unit_of_work():
            self._transition(request, Action.RESUME_WORK, role, user.id)
        return request

    def approve_content(self, user: User, request_id: str) -> Tuple[CollaborationRequest, EscrowRecord]:
        """Approval and escrow release commit together or not at all."""
        request = self._load(request_id)
        role = self._role_for(user, request)

        with self._unit_of_work():
            self._transition(request, Action.APPROVE, role, user.id, {"approved_at": self.clock.now()})
            record = self.escrow.release(request.id)

            brand_name, _ = self._party_names(request)
            creator_user_id = request.creator.user_id
            self._notify(lambda n: n.notify_content_approved(
                creator_user_id, brand_name, request.id, record.creator_payout, record.currency
            ))

        return request, record

    def complete(self, user: User, request_id: str) -> CollaborationRequest:
        request = self._load(request_id)
        role = self._role_for(user, request)

        with self._unit_of_work():
            self._transition(request, Action.COMPLETE, role, user.id, {"completed_at": self.clock.now()})
            user_ids = [request.brand_id, request.creator.user_id]
            self._notify(lambda n: n.notify_collaboration_completed(user_ids, request.id, request.reference_number))

        return request

    # =========================================================================
    # EXPIRY SWEEP
    # =========================================================================

    def expire_due(self, limit: int = 500) -> int:
        """Periodic counterpart to the lazy check in ``_load``."""
        def notify(request):
            self._queue_expired(request)
            self._dispatch_notifications()

        return sweep_expired(self.db, self.clock.now(), on_expired=notify, limit=limit)
