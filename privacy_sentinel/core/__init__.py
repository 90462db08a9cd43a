"""Core record types, errors and time helpers."""

from .interfaces import (
    ConsentStatus,
    ProcessingBasis,
    ProcessingActivityStatus,
    RightsType,
    RequestStatus,
    AuditType,
    AuditResult,
    RegulatoryFramework,
    TopicType,
    ConsentRecord,
    ProcessingRecord,
    SharingRecord,
    DeletionRecord,
    RightsRequest,
    AuditReport,
    RetentionReport,
    MessageSink,
    SubmitAck,
)
from .validation import (
    PrivacyComplianceError,
    ValidationError,
    NotFoundError,
    StateTransitionError,
    ManagerNotInitializedError,
    MessageSinkError,
)

__all__ = [
    "ConsentStatus",
    "ProcessingBasis",
    "ProcessingActivityStatus",
    "RightsType",
    "RequestStatus",
    "AuditType",
    "AuditResult",
    "RegulatoryFramework",
    "TopicType",
    "ConsentRecord",
    "ProcessingRecord",
    "SharingRecord",
    "DeletionRecord",
    "RightsRequest",
    "AuditReport",
    "RetentionReport",
    "MessageSink",
    "SubmitAck",
    "PrivacyComplianceError",
    "ValidationError",
    "NotFoundError",
    "StateTransitionError",
    "ManagerNotInitializedError",
    "MessageSinkError",
]
