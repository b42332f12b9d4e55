# Request State Machine
# The single authoritative transition table for collaboration requests.

import enum
from typing import Dict, FrozenSet, List, NamedTuple, Tuple

from database.collaboration_models import RequestStatusDB as Status, PartyRoleDB as Role
from services.errors import InvalidTransitionError


class Action(str, enum.Enum):
    VIEW = "view"
    COUNTER_OFFER = "counter_offer"
    ACCEPT = "accept"
    DECLINE = "decline"
    EXPIRE = "expire"
    CANCEL = "cancel"
    SIGN_CONTRACT = "sign_contract"
    INITIALIZE_PAYMENT = "initialize_payment"
    CONFIRM_PAYMENT = "confirm_payment"
    FAIL_PAYMENT = "fail_payment"
    SUBMIT_CONTENT = "submit_content"
    APPROVE = "approve"
    REQUEST_REVISION = "request_revision"
    RESUME_WORK = "resume_work"
    COMPLETE = "complete"


class Transition(NamedTuple):
    roles: FrozenSet[Role]
    to: Status


BRAND = frozenset({Role.BRAND})
CREATOR = frozenset({Role.CREATOR})
EITHER = frozenset({Role.BRAND, Role.CREATOR})
SYSTEM = frozenset({Role.SYSTEM})


TRANSITIONS: Dict[Tuple[Status, Action], Transition] = {
    # Creator response
    (Status.PENDING, Action.VIEW): Transition(CREATOR, Status.VIEWED),
    (Status.VIEWED, Action.COUNTER_OFFER): Transition(CREATOR, Status.NEGOTIATING),
    (Status.NEGOTIATING, Action.COUNTER_OFFER): Transition(EITHER, Status.NEGOTIATING),
    (Status.PENDING, Action.ACCEPT): Transition(CREATOR, Status.ACCEPTED),
    (Status.VIEWED, Action.ACCEPT): Transition(CREATOR, Status.ACCEPTED),
    (Status.NEGOTIATING, Action.ACCEPT): Transition(CREATOR, Status.ACCEPTED),
    (Status.PENDING, Action.DECLINE): Transition(CREATOR, Status.DECLINED),
    (Status.VIEWED, Action.DECLINE): Transition(CREATOR, Status.DECLINED),
    (Status.NEGOTIATING, Action.DECLINE): Transition(CREATOR, Status.DECLINED),
    (Status.PENDING, Action.EXPIRE): Transition(SYSTEM, Status.DECLINED),
    (Status.VIEWED, Action.EXPIRE): Transition(SYSTEM, Status.DECLINED),
    (Status.PENDING, Action.CANCEL): Transition(BRAND, Status.CANCELLED),
    (Status.VIEWED, Action.CANCEL): Transition(BRAND, Status.CANCELLED),
    (Status.NEGOTIATING, Action.CANCEL): Transition(BRAND, Status.CANCELLED),

    # Contract (two-sided acknowledgement)
    (Status.ACCEPTED, Action.SIGN_CONTRACT): Transition(EITHER, Status.CONTRACT_PENDING),
    (Status.CONTRACT_PENDING, Action.SIGN_CONTRACT): Transition(EITHER, Status.CONTRACT_SIGNED),

    # Payment
    (Status.CONTRACT_SIGNED, Action.INITIALIZE_PAYMENT): Transition(BRAND, Status.PAYMENT_PENDING),
    (Status.PAYMENT_PENDING, Action.CONFIRM_PAYMENT): Transition(SYSTEM, Status.IN_PROGRESS),
    (Status.PAYMENT_PENDING, Action.FAIL_PAYMENT): Transition(SYSTEM, Status.CONTRACT_SIGNED),

    # Delivery & review
    (Status.IN_PROGRESS, Action.SUBMIT_CONTENT): Transition(CREATOR, Status.CONTENT_SUBMITTED),
    (Status.CONTENT_SUBMITTED, Action.APPROVE): Transition(BRAND, Status.CONTENT_APPROVED),
    (Status.CONTENT_SUBMITTED, Action.REQUEST_REVISION): Transition(BRAND, Status.REVISION_REQUESTED),
    (Status.REVISION_REQUESTED, Action.RESUME_WORK): Transition(CREATOR, Status.IN_PROGRESS),
    (Status.CONTENT_APPROVED, Action.COMPLETE): Transition(BRAND, Status.COMPLETED),
}

TERMINAL_STATUSES = frozenset({Status.COMPLETED, Status.DECLINED, Status.CANCELLED})

# Statuses in which the creator still owes a response and expires_at is set
RESPONDABLE_STATUSES = frozenset({Status.PENDING, Status.VIEWED})

# Statuses from acceptance onwards, where the agreed terms form a contract
CONTRACT_STATUSES = frozenset({
    Status.ACCEPTED, Status.CONTRACT_PENDING, Status.CONTRACT_SIGNED, Status.PAYMENT_PENDING,
    Status.IN_PROGRESS, Status.CONTENT_SUBMITTED, Status.REVISION_REQUESTED,
    Status.CONTENT_APPROVED, Status.COMPLETED,
})


def next_status(current: Status, action: Action, role: Role) -> Status:
    """
    Resolve a transition or raise.

    Raises:
        InvalidTransitionError: the action is not legal for ``current``
            or not permitted for ``role``
    """
    transition = TRANSITIONS.get((Status(current), Action(action)))
    if transition is None:
        raise InvalidTransitionError(
            f"Cannot {Action(action).value.replace('_', ' ')} a request that is {Status(current).value}",
            {"status": Status(current).value, "action": Action(action).value},
        )
    if Role(role) not in transition.roles:
        raise InvalidTransitionError(
            f"The {Role(role).value} cannot {Action(action).value.replace('_', ' ')} this request",
            {"status": Status(current).value, "action": Action(action).value, "role": Role(role).value},
        )
    return transition.to


def allowed_actions(current: Status, role: Role) -> List[Action]:
    """Actions ``role`` may attempt from ``current`` (ignores data guards such as the revision cap)."""
    return [
        action for (status, action), transition in TRANSITIONS.items()
        if status == Status(current) and Role(role) in transition.roles
    ]


def is_terminal(status: Status) -> bool:
    return Status(status) in TERMINAL_STATUSES
