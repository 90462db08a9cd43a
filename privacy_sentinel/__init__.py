"""
Privacy Sentinel - Privacy and Regulatory Compliance Engine

Tracks user consent, records data-processing activities, handles
data-subject rights requests and runs automated compliance audits across
GDPR, CCPA and a DPDP baseline. Every state change is written to an
append-only ledger topic as an hcs-19 message.
"""

__version__ = "0.1.0"
__author__ = "Privacy Sentinel Team"

from .core.interfaces import (
    ConsentStatus,
    ProcessingBasis,
    ProcessingActivityStatus,
    RightsType,
    RequestStatus,
    AuditResult,
    RegulatoryFramework,
)
from .core.validation import (
    PrivacyComplianceError,
    ValidationError,
    NotFoundError,
    StateTransitionError,
    ManagerNotInitializedError,
    MessageSinkError,
)
from .models.config import EngineConfiguration
from .ledger.sink import InMemoryTopicSink, MessageSink, SubmitAck
from .privacy import (
    ConsentManager,
    DataProcessingRegistry,
    PrivacyRightsHandler,
    ComplianceAuditor,
    PrivacyComplianceEngine,
    framework_for_jurisdiction,
    compliance_deadline_days,
    legal_citation,
)

__all__ = [
    "__version__",
    "ConsentStatus",
    "ProcessingBasis",
    "ProcessingActivityStatus",
    "RightsType",
    "RequestStatus",
    "AuditResult",
    "RegulatoryFramework",
    "PrivacyComplianceError",
    "ValidationError",
    "NotFoundError",
    "StateTransitionError",
    "ManagerNotInitializedError",
    "MessageSinkError",
    "EngineConfiguration",
    "InMemoryTopicSink",
    "MessageSink",
    "SubmitAck",
    "ConsentManager",
    "DataProcessingRegistry",
    "PrivacyRightsHandler",
    "ComplianceAuditor",
    "PrivacyComplianceEngine",
    "framework_for_jurisdiction",
    "compliance_deadline_days",
    "legal_citation",
]
