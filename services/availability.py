# Availability Validator
# Pure check of a proposed date range against a creator's calendar.

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Optional, Union

from services.errors import ConflictError, ConflictType, ValidationError


@dataclass(frozen=True)
class Allowed:
    allowed: bool = True


@dataclass(frozen=True)
class Conflict:
    type: ConflictType
    message: str
    detail: Dict[str, Any] = field(default_factory=dict)
    allowed: bool = False

    def to_error(self) -> ConflictError:
        return ConflictError(self.type, self.message, self.detail)


AvailabilityResult = Union[Allowed, Conflict]


def check_conflict(
    profile: Any,
    proposed_start: date,
    proposed_end: date,
    today: date,
    slots: Optional[Iterable[Any]] = None,
) -> AvailabilityResult:
    """
    Check a proposed collaboration range against a creator's availability.

    Args:
        profile: object with ``is_available``, ``lead_time_days`` and ``slots``
        proposed_start: first day of the collaboration (inclusive)
        proposed_end: last day of the collaboration (inclusive)
        today: caller-supplied current date; never read from the wall clock
        slots: optional override for ``profile.slots``

    Returns:
        ``Allowed()`` or a ``Conflict`` naming the first violated rule
    """
    if proposed_end < proposed_start:
        raise ValidationError(
            "Proposed end date must be on or after the start date",
            {"proposed_start_date": proposed_start.isoformat(), "proposed_end_date": proposed_end.isoformat()},
        )

    if not profile.is_available:
        return Conflict(
            type=ConflictType.UNAVAILABLE,
            message="This creator is not accepting new requests right now",
        )

    lead_time_days = profile.lead_time_days or 0
    min_start = today + timedelta(days=lead_time_days)
    if proposed_start < min_start:
        return Conflict(
            type=ConflictType.LEAD_TIME,
            message=(
                f"This creator needs at least {lead_time_days} days notice. "
                f"The earliest possible start date is {min_start.isoformat()}"
            ),
            detail={"lead_time_days": lead_time_days, "min_start_date": min_start.isoformat()},
        )

    candidates = profile.slots if slots is None else slots
    for slot in sorted(candidates, key=lambda s: (s.start_date, s.end_date)):
        # Calendar days, inclusive at both ends
        if proposed_start <= slot.end_date and proposed_end >= slot.start_date:
            slot_type = getattr(slot.slot_type, "value", slot.slot_type)
            return Conflict(
                type=ConflictType.BLOCKED_RANGE,
                message=(
                    f"The creator is unavailable from {slot.start_date.isoformat()} "
                    f"to {slot.end_date.isoformat()}"
                    + (f" ({slot.reason})" if slot.reason else "")
                ),
                detail={
                    "slot_start_date": slot.start_date.isoformat(),
                    "slot_end_date": slot.end_date.isoformat(),
                    "reason": slot.reason,
                    "slot_type": slot_type,
                },
            )

    return Allowed()


def ensure_no_conflict(profile: Any, proposed_start: date, proposed_end: date, today: date) -> None:
    """Raise ``ConflictError`` if the range is not allowed."""
    result = check_conflict(profile, proposed_start, proposed_end, today)
    if isinstance(result, Conflict):
        raise result.to_error()
