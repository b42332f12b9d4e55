# Notification Service for collaboration requests
# Provides centralized notification creation and management

from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import datetime
from enum import Enum

from database.collaboration_models import Notification


class NotificationType(str, Enum):
    REQUEST_RECEIVED = "request_received"
    REQUEST_ACCEPTED = "request_accepted"
    REQUEST_DECLINED = "request_declined"
    REQUEST_CANCELLED = "request_cancelled"
    REQUEST_EXPIRED = "request_expired"
    COUNTER_OFFER = "counter_offer"
    CONTRACT_SIGNED = "contract_signed"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_FAILED = "payment_failed"
    CONTENT_SUBMITTED = "content_submitted"
    REVISION_REQUESTED = "revision_requested"
    CONTENT_APPROVED = "content_approved"
    ESCROW_RELEASED = "escrow_released"
    COLLABORATION_COMPLETED = "collaboration_completed"
    DECLINE_WARNING = "decline_warning"
    SUSPENSION_APPLIED = "suspension_applied"
    SYSTEM = "system"


def _format_money(amount: Optional[int], currency: str) -> str:
    return f"{currency} {amount or 0:,}"


class NotificationService:
    """
    Service for creating and managing user notifications.

    The collaboration service calls the helpers below only after its own
    transaction has committed, so a failed notification never undoes a transition.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: str,
        type: NotificationType | str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        data: Optional[dict] = None,
    ) -> Notification:
        """
        Create a new notification for a user.

        Args:
            user_id: The user to notify
            type: Notification type (use NotificationType enum)
            title: Short notification title
            message: Full notification message
            action_url: Optional URL for the notification action
            data: Optional additional data as JSON
        """
        try:
            type_value = NotificationType(type).value
        except ValueError:
            type_value = NotificationType.SYSTEM.value

        notification = Notification(
            user_id=user_id,
            type=type_value,
            title=title,
            message=message,
            action_url=action_url,
            data=data or {},
        )
        self.db.add(notification)
        self.db.flush()  # Get the ID without committing
        return notification

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).first()

        if notification:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
            return True
        return False

    def get_unread_count(self, user_id: str) -> int:
        return self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).count()

    def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)
        return query.order_by(Notification.created_at.desc()).limit(limit).all()

    # =========================================================================
    # REQUEST RESPONSE HELPERS
    # =========================================================================

    def notify_request_received(self, creator_user_id: str, brand_name: str, request_id: str,
                                title: str, budget: int, currency: str, expires_at: Optional[datetime]):
        """Notify creator of a new collaboration request."""
        return self.create(
            user_id=creator_user_id,
            type=NotificationType.REQUEST_RECEIVED,
            title="New Collaboration Request! 🎯",
            message=f"{brand_name} wants to work with you on \"{title}\" for {_format_money(budget, currency)}",
            action_url=f"/requests/{request_id}",
            data={
                "request_id": request_id,
                "brand_name": brand_name,
                "budget": budget,
                "expires_at": expires_at.isoformat() if expires_at else None,
            }
        )

    def notify_request_accepted(self, brand_user_id: str, creator_name: str, request_id: str, final_budget: int, currency: str):
        """Notify brand that the creator accepted."""
        return self.create(
            user_id=brand_user_id,
            type=NotificationType.REQUEST_ACCEPTED,
            title="Request Accepted! ✅",
            message=f"{creator_name} accepted your request at {_format_money(final_budget, currency)}. Sign the contract to continue.",
            action_url=f"/requests/{request_id}",
            data={"request_id": request_id, "final_budget": final_budget}
        )

    def notify_request_declined(self, brand_user_id: str, creator_name: str, request_id: str,
                                category: str, reason: Optional[str] = None):
        return self.create(
            user_id=brand_user_id,
            type=NotificationType.REQUEST_DECLINED,
            title="Request Declined",
            message=f"{creator_name} declined your collaboration request.",
            action_url=f"/requests/{request_id}",
            data={"request_id": request_id, "category": category, "reason": reason}
        )

    def notify_request_cancelled(self, creator_user_id: str, brand_name: str, request_id: str):
        return self.create(
            user_id=creator_user_id,
            type=NotificationType.REQUEST_CANCELLED,
            title="Request Cancelled",
            message=f"{brand_name} cancelled their collaboration request.",
            action_url=f"/requests/{request_id}",
            data={"request_id": request_id}
        )

    def notify_request_expired(self, brand_user_id: str, creator_user_id: str, request_id: str, reference_number: str):
        """Both parties learn that the response window lapsed."""
        data = {"request_id": request_id, "reference_number": reference_number}
        return [
            self.create(
                user_id=brand_user_id,
                type=NotificationType.REQUEST_EXPIRED,
                title="Request Expired ⏰",
                message=f"Request {reference_number} expired without a response from the creator.",
                action_url=f"/requests/{request_id}",
                data=data,
            ),
            self.create(
                user_id=creator_user_id,
                type=NotificationType.REQUEST_EXPIRED,
                title="Request Expired ⏰",
                message=f"You did not respond to request {reference_number} in time.",
                action_url=f"/requests/{request_id}",
                data=data,
            ),
        ]

    def notify_counter_offer(self, recipient_user_id: str, sender_name: str, request_id: str, amount: int, currency: str):
        return self.create(
            user_id=recipient_user_id,
            type=NotificationType.COUNTER_OFFER,
            title="New Counter-Offer 💬",
            message=f"{sender_name} proposed {_format_money(amount, currency)}",
            action_url=f"/requests/{request_id}",
            data={"request_id": request_id, "amount": amount}
        )

    # =========================================================================
    # CONTRACT & PAYMENT HELPERS
    # =========================================================================

    def notify_contract_signed(self, user_ids: List[str], request_id: str, fully_signed: bool):
        if fully_signed:
            message = "Both parties have signed. The brand can now fund escrow."
        else:
            message = "The other party signed the contract and is waiting for your signature."
        return [
            self.create(
                user_id=user_id,
                type=NotificationType.CONTRACT_SIGNED,
                title="Contract Signed ✍️",
                message=message,
                action_url=f"/requests/{request_id}/contract",
                data={"request_id": request_id, "fully_signed": fully_signed}
            )
            for user_id in user_ids
        ]

    def notify_payment_confirmed(self, creator_user_id: str, brand_name: str, request_id: str, amount: int, currency: str):
        """Notify creator that funds are held in escrow."""
        return self.create(
            user_id=creator_user_id,
            type=NotificationType.PAYMENT_CONFIRMED,
            title="Funds Secured 🔒",
            message=f"{brand_name} has placed {_format_money(amount, currency)} in escrow. You can start working.",
            action_url=f"/requests/{request_id}",
            data={"request_id": request_id, "amount": amount}
        )

    def notify_payment_failed(self, brand_user_id: str, request_id: str, reason: str):
        return self.create(
            user_id=brand_user_id,
            type=NotificationType.PAYMENT_FAILED,
            title="Payment Failed",
            message=f"Your payment could not be completed: {reason}. You can try again.",
            action_url=f"/requests/{request_id}/payment",
            data={"request_id": request_id, "reason": reason}
        )

    # =========================================================================
    # DELIVERY HELPERS
    # =========================================================================

    def notify_content_submitted(self, brand_user_id: str, creator_name: str, request_id: str):
        return self.create(
            user_id=brand_user_id,
            type=NotificationType.CONTENT_SUBMITTED,
            title="Content Submitted! 📤",
            message=f"{creator_name} submitted content for your review.",
            action_url=f"/requests/{request_id}",
            data={"request_id": request_id}
        )

    def notify_revision_requested(self, creator_user_id: str, brand_name: str, request_id: str,
                                  notes: str, revisions_remaining: int):
        return self.create(
            user_id=creator_user_id,
            type=NotificationType.REVISION_REQUESTED,
            title="Revision Requested 🔄",
            message=f"{brand_name} requested changes. {revisions_remaining} revision(s) remaining.",
            action_url=f"/requests/{request_id}",
            data={"request_id": request_id, "notes": notes, "revisions_remaining": revisions_remaining}
        )

    def notify_content_approved(self, creator_user_id: str, brand_name: str, request_id: str,
                                payout: int, currency: str):
        """Approval releases escrow, so the creator hears about both at once."""
        self.create(
            user_id=creator_user_id,
            type=NotificationType.CONTENT_APPROVED,
            title="Content Approved! 🎉",
            message=f"{brand_name} approved your content.",
            action_url=f"/requests/{request_id}",
            data={"request_id": request_id}
        )
        return self.create(
            user_id=creator_user_id,
            type=NotificationType.ESCROW_RELEASED,
            title="Payment Released 💰",
            message=f"{_format_money(payout, currency)} has been released to you.",
            action_url="/earnings",
            data={"request_id": request_id, "payout": payout}
        )

    def notify_collaboration_completed(self, user_ids: List[str], request_id: str, reference_number: str):
        return [
            self.create(
                user_id=user_id,
                type=NotificationType.COLLABORATION_COMPLETED,
                title="Collaboration Completed! 🏁",
                message=f"Collaboration {reference_number} is complete.",
                action_url=f"/requests/{request_id}",
                data={"request_id": request_id}
            )
            for user_id in user_ids
        ]

    # =========================================================================
    # TRUST HELPERS
    # =========================================================================

    def notify_decline_warning(self, creator_user_id: str, message: str, qualifying_declines: int):
        return self.create(
            user_id=creator_user_id,
            type=NotificationType.DECLINE_WARNING,
            title="Decline Rate Warning ⚠️",
            message=message,
            action_url="/creator/settings",
            data={"qualifying_declines": qualifying_declines}
        )

    def notify_suspension_applied(self, creator_user_id: str, suspended_until: datetime):
        return self.create(
            user_id=creator_user_id,
            type=NotificationType.SUSPENSION_APPLIED,
            title="Profile Temporarily Hidden",
            message=f"Your profile is hidden from brands until {suspended_until:%Y-%m-%d %H:%M} UTC due to frequent declines.",
            action_url="/creator/settings",
            data={"suspended_until": suspended_until.isoformat()}
        )


# Convenience function to get service
def get_notification_service(db: Session) -> NotificationService:
    """Get NotificationService instance."""
    return NotificationService(db)
