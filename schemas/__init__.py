# Schemas module
# Pydantic request/response models for the collaboration API

from schemas.collaboration import (
    # Enums
    RequestStatus,
    DeclineCategory,
    EscrowStatus,

    # Request lifecycle
    CollaborationRequestCreate,
    CollaborationRequestResponse,
    CounterOfferRequest,
    NegotiationEntryResponse,
    DeclineRequest,
    DeclineResponse,
    CancelRequest,
    CountdownResponse,
    RequestEventResponse,

    # Delivery
    ContentSubmission,
    RevisionRequest,

    # Contract & escrow
    ContractResponse,
    EscrowResponse,
    TransactionResponse,
    RequestWithEscrowResponse,
    PaymentVerifyRequest,
    EarningsSummary,

    # Availability
    AvailabilitySlotCreate,
    AvailabilitySlotResponse,
    AvailabilitySettingsUpdate,
    AvailabilityResponse,
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,

    # Creators
    RateCardResponse,
    CreatorPublicProfile,
    CreatorSearchResponse,
    SuspensionStatusResponse,

    # Notifications
    NotificationResponse,
)
