# Domain errors for the collaboration engine
# Every error is raised before commit, so the request and escrow rows are left as they were.

import enum
from typing import Optional


class ConflictType(str, enum.Enum):
    LEAD_TIME = "LEAD_TIME"
    BLOCKED_RANGE = "BLOCKED_RANGE"
    UNAVAILABLE = "UNAVAILABLE"
    SUSPENDED = "SUSPENDED"


class CollaborationError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "COLLABORATION_ERROR"
    status_code = 400

    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        return {
            "success": False,
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }


class ValidationError(CollaborationError):
    """Malformed input. Recoverable by the caller."""
    code = "VALIDATION_ERROR"
    status_code = 422


class RevisionLimitError(ValidationError):
    code = "REVISION_LIMIT_REACHED"


class ConflictError(CollaborationError):
    """Availability or suspension conflict with enough detail to render a remediation."""
    code = "CONFLICT"
    status_code = 409

    def __init__(self, conflict_type: ConflictType, message: str, detail: Optional[dict] = None):
        super().__init__(message, detail)
        self.conflict_type = conflict_type
        self.code = conflict_type.value

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["conflict_type"] = self.conflict_type.value
        return body


class InvalidTransitionError(CollaborationError):
    code = "INVALID_TRANSITION"
    status_code = 409


class NotFoundError(CollaborationError):
    code = "NOT_FOUND"
    status_code = 404


class PermissionDeniedError(CollaborationError):
    code = "FORBIDDEN"
    status_code = 403


class PaymentGatewayError(CollaborationError):
    code = "PAYMENT_GATEWAY_ERROR"
    status_code = 502


class IntegrityError(CollaborationError):
    """Ledger invariant violated. Fatal: the operation is aborted, data is never patched up."""
    code = "INTEGRITY_ERROR"
    status_code = 500
