# Services Module
# Business logic for the collaboration lifecycle and escrow settlement.
# Only leaf modules are re-exported here; the orchestrator imports the
# payment gateway, which itself depends on services.errors.

from services.errors import (
    CollaborationError,
    ConflictError,
    ConflictType,
    IntegrityError,
    InvalidTransitionError,
    NotFoundError,
    PaymentGatewayError,
    PermissionDeniedError,
    RevisionLimitError,
    ValidationError,
)
from services.clock import Clock, FixedClock, get_clock
from services.notification_service import NotificationService, NotificationType, get_notification_service

__all__ = [
    'CollaborationError',
    'ConflictError',
    'ConflictType',
    'IntegrityError',
    'InvalidTransitionError',
    'NotFoundError',
    'PaymentGatewayError',
    'PermissionDeniedError',
    'RevisionLimitError',
    'ValidationError',
    'Clock',
    'FixedClock',
    'get_clock',
    'NotificationService',
    'NotificationType',
    'get_notification_service',
]
