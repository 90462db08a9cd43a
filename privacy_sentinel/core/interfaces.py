"""
Core record types, enums and abstract interfaces for the Privacy Sentinel system.

This module defines the entities owned by the privacy managers and the
contract of the ledger sink they write to, so components can be wired
together through dependency injection.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field, asdict
from enum import Enum, IntEnum
from datetime import datetime

from privacy_sentinel.core.timeutils import to_iso


PROTOCOL_TAG = "hcs-19"


class ConsentStatus(Enum):
    """Consent lifecycle status."""
    ACTIVE = "active"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"


class ProcessingBasis(Enum):
    """Lawful basis for processing (GDPR Article 6)."""
    CONSENT = "consent"  # Article 6(1)(a)
    CONTRACT = "contract"  # Article 6(1)(b)
    LEGAL_OBLIGATION = "legal_obligation"  # Article 6(1)(c)
    VITAL_INTEREST = "vital_interest"  # Article 6(1)(d)
    PUBLIC_TASK = "public_task"  # Article 6(1)(e)
    LEGITIMATE_INTEREST = "legitimate_interest"  # Article 6(1)(f)


class ProcessingActivityStatus(Enum):
    """Status of a registered processing activity."""
    ACTIVE = "active"
    COMPLETED = "completed"
    SUSPENDED = "suspended"
    DATA_DELETED = "data_deleted"


class RightsType(Enum):
    """Types of data subject rights."""
    ACCESS = "access"  # GDPR Art 15
    RECTIFICATION = "rectification"  # GDPR Art 16
    ERASURE = "erasure"  # GDPR Art 17
    RESTRICT_PROCESSING = "restrict_processing"  # GDPR Art 18
    DATA_PORTABILITY = "data_portability"  # GDPR Art 20
    OBJECT = "object"  # GDPR Art 21
    DO_NOT_SELL = "do_not_sell"  # CCPA


class RequestStatus(Enum):
    """Status of a data subject rights request."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.COMPLETED, RequestStatus.REJECTED)


class AuditType(Enum):
    """Audit classification."""
    INTERNAL = "internal"
    EXTERNAL = "external"
    REGULATORY = "regulatory"


class AuditResult(Enum):
    """Audit outcome."""
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    PARTIALLY_COMPLIANT = "partially_compliant"
    NEEDS_REVIEW = "needs_review"


class RegulatoryFramework(Enum):
    """Supported regulatory frameworks."""
    GDPR = "gdpr"
    CCPA = "ccpa"
    DPDP = "dpdp"


class TopicType(IntEnum):
    """Ledger topic types, encoded in the topic memo."""
    CONSENT_MANAGEMENT = 0
    DATA_PROCESSING = 1
    PRIVACY_RIGHTS = 2
    COMPLIANCE_AUDIT = 3


class ConsentOperation(Enum):
    CONSENT_GRANTED = "consent_granted"
    CONSENT_WITHDRAWN = "consent_withdrawn"
    CONSENT_UPDATED = "consent_updated"
    CONSENT_VERIFIED = "consent_verified"


class ProcessingOperation(Enum):
    PROCESSING_STARTED = "processing_started"
    PROCESSING_COMPLETED = "processing_completed"
    DATA_SHARED = "data_shared"
    DATA_DELETED = "data_deleted"


class RightsOperation(Enum):
    RIGHTS_REQUEST = "rights_request"
    RIGHTS_FULFILLED = "rights_fulfilled"
    ACCESS_PROVIDED = "access_provided"
    RECTIFICATION_COMPLETED = "rectification_completed"
    ERASURE_COMPLETED = "erasure_completed"


class AuditOperation(Enum):
    COMPLIANCE_CHECK = "compliance_check"
    VIOLATION_DETECTED = "violation_detected"
    AUDIT_INITIATED = "audit_initiated"
    AUDIT_COMPLETED = "audit_completed"
    RETENTION_CHECK = "retention_check"


# Regulatory overlays


@dataclass
class GDPRFields:
    """GDPR-specific consent metadata."""
    gdpr_lawful_basis: str
    data_controller: str
    dpo_contact: str
    retention_justification: str
    automated_decision_making: bool = False
    special_category_basis: Optional[str] = None
    transfer_mechanism: Optional[str] = None
    data_processor: Optional[str] = None
    profiling_activities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CCPAFields:
    """CCPA-specific consent metadata."""
    business_purpose: str
    commercial_purpose: str
    sale_opt_out: bool
    categories_disclosed: List[str] = field(default_factory=list)
    third_party_recipients: List[str] = field(default_factory=list)
    retention_justification: str = ""
    consumer_rights_provided: List[str] = field(default_factory=list)
    categories_sold: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DPDPFields:
    """Baseline data-protection metadata."""
    collection_method: str
    notification_provided: bool
    purpose_limitation: bool = True
    data_minimization: bool = True
    accuracy_measures: List[str] = field(default_factory=list)
    storage_limitation: str = ""
    security_measures: List[str] = field(default_factory=list)
    accountability_measures: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Consent


@dataclass
class GrantConsentRequest:
    """Input to ConsentManager.grant_consent."""
    user_id: str
    purposes: List[str]
    data_types: List[str]
    jurisdiction: Optional[str] = None
    legal_basis: ProcessingBasis = ProcessingBasis.CONSENT
    consent_method: str = "explicit"
    retention_period: Optional[str] = None
    withdrawal_method: str = "self_service"
    notice_reference: str = ""
    granular_permissions: Optional[Dict[str, bool]] = None
    gdpr: Optional[GDPRFields] = None
    ccpa: Optional[CCPAFields] = None
    dpdp: Optional[DPDPFields] = None


@dataclass
class ConsentRecord:
    """Auditable grant of permission by a user for purposes and data types."""

    consent_id: str
    user_id: str
    agent_id: str
    jurisdiction: str
    legal_basis: ProcessingBasis
    purposes: List[str]
    data_types: List[str]
    granted_at: datetime

    # Consent mechanism
    consent_method: str = "explicit"
    retention_period: str = ""
    withdrawal_method: str = "self_service"
    notice_reference: str = ""

    # Lifecycle
    status: ConsentStatus = ConsentStatus.ACTIVE
    expires_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    revocation_reason: Optional[str] = None
    revocation_timestamp: Optional[datetime] = None

    # Overlays
    granular_permissions: Optional[Dict[str, bool]] = None
    gdpr: Optional[GDPRFields] = None
    ccpa: Optional[CCPAFields] = None
    dpdp: Optional[DPDPFields] = None

    # Ledger metadata
    topic_id: Optional[str] = None
    sequence_number: Optional[int] = None

    def is_expired(self, now: datetime) -> bool:
        """Check whether the retention period has run out."""
        return self.expires_at is not None and self.expires_at <= now

    def is_valid(self, now: datetime) -> bool:
        """Check if consent is currently usable."""
        return self.status == ConsentStatus.ACTIVE and not self.is_expired(now)

    def effective_status(self, now: datetime) -> ConsentStatus:
        """Stored status with expiry applied; expiry is never stored."""
        if self.status == ConsentStatus.ACTIVE and self.is_expired(now):
            return ConsentStatus.EXPIRED
        return self.status

    def to_dict(self) -> Dict[str, Any]:
        """Convert consent to dictionary."""
        return {
            'consent_id': self.consent_id,
            'user_id': self.user_id,
            'agent_id': self.agent_id,
            'jurisdiction': self.jurisdiction,
            'legal_basis': self.legal_basis.value,
            'purposes': list(self.purposes),
            'data_types': list(self.data_types),
            'consent_method': self.consent_method,
            'granted_at': to_iso(self.granted_at),
            'retention_period': self.retention_period,
            'withdrawal_method': self.withdrawal_method,
            'notice_reference': self.notice_reference,
            'status': self.status.value,
            'expires_at': to_iso(self.expires_at) if self.expires_at else None,
            'withdrawn_at': to_iso(self.withdrawn_at) if self.withdrawn_at else None,
            'revocation_reason': self.revocation_reason,
            'revocation_timestamp': to_iso(self.revocation_timestamp) if self.revocation_timestamp else None,
            'granular_permissions': dict(self.granular_permissions) if self.granular_permissions else None,
            'gdpr': self.gdpr.to_dict() if self.gdpr else None,
            'ccpa': self.ccpa.to_dict() if self.ccpa else None,
            'dpdp': self.dpdp.to_dict() if self.dpdp else None,
            'topic_id': self.topic_id,
            'sequence_number': self.sequence_number
        }


@dataclass
class ConsentQueryFilters:
    """Filters for querying a user's consents; all supplied filters are ANDed."""
    purpose: Optional[str] = None
    status: Optional[ConsentStatus] = None
    jurisdiction: Optional[str] = None
    legal_basis: Optional[ProcessingBasis] = None
    data_type: Optional[str] = None
    active_only: bool = False

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = ConsentStatus(self.status)
        if isinstance(self.legal_basis, str):
            self.legal_basis = ProcessingBasis(self.legal_basis)


@dataclass
class ConsentReceipt:
    """Receipt handed back to the user after a consent operation."""
    receipt_id: str
    consent_id: str
    operation: ConsentOperation
    topic_id: str
    timestamp: datetime
    human_readable: str
    transaction_id: Optional[str] = None
    sequence_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'receipt_id': self.receipt_id,
            'consent_id': self.consent_id,
            'operation': self.operation.value,
            'transaction_id': self.transaction_id,
            'topic_id': self.topic_id,
            'sequence_number': self.sequence_number,
            'timestamp': to_iso(self.timestamp),
            'human_readable': self.human_readable
        }


# Data processing


@dataclass
class RegisterProcessingActivityRequest:
    """Input to DataProcessingRegistry.register_processing_activity."""
    controller_id: str
    user_id: str
    purpose: str
    data_categories: List[str]
    legal_basis: ProcessingBasis = ProcessingBasis.CONSENT
    processing_method: str = "automated"
    retention_period: str = ""
    security_measures: List[str] = field(default_factory=list)
    consent_id: Optional[str] = None
    processor_id: Optional[str] = None


@dataclass
class ProcessingRecord:
    """Record of a processing activity (GDPR Article 30)."""

    processing_id: str
    user_id: str
    agent_id: str
    purpose: str
    legal_basis: ProcessingBasis
    data_types: List[str]
    start_timestamp: datetime

    processing_method: str = "automated"
    duration: str = ""
    security_measures: List[str] = field(default_factory=list)
    consent_id: Optional[str] = None
    processor_id: Optional[str] = None

    # Lifecycle
    end_timestamp: Optional[datetime] = None
    compliance_status: ProcessingActivityStatus = ProcessingActivityStatus.ACTIVE
    third_parties: List[str] = field(default_factory=list)

    # Ledger metadata
    topic_id: Optional[str] = None
    sequence_number: Optional[int] = None

    @property
    def is_deleted(self) -> bool:
        return self.compliance_status == ProcessingActivityStatus.DATA_DELETED

    def to_dict(self) -> Dict[str, Any]:
        """Convert processing record to dictionary."""
        return {
            'processing_id': self.processing_id,
            'user_id': self.user_id,
            'agent_id': self.agent_id,
            'processor_id': self.processor_id,
            'purpose': self.purpose,
            'legal_basis': self.legal_basis.value,
            'data_types': list(self.data_types),
            'processing_method': self.processing_method,
            'duration': self.duration,
            'security_measures': list(self.security_measures),
            'consent_id': self.consent_id,
            'start_timestamp': to_iso(self.start_timestamp),
            'end_timestamp': to_iso(self.end_timestamp),
            'compliance_status': self.compliance_status.value,
            'third_parties': list(self.third_parties),
            'topic_id': self.topic_id,
            'sequence_number': self.sequence_number
        }


@dataclass
class ProcessingActivityFilters:
    """Filters for querying processing activities; all supplied filters are ANDed."""
    controller_id: Optional[str] = None
    processor_id: Optional[str] = None
    status: Optional[ProcessingActivityStatus] = None
    data_category: Optional[str] = None
    legal_basis: Optional[ProcessingBasis] = None
    user_id: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = ProcessingActivityStatus(self.status)
        if isinstance(self.legal_basis, str):
            self.legal_basis = ProcessingBasis(self.legal_basis)


@dataclass
class SharingRecord:
    """Data shared with a third party under a processing activity."""
    sharing_id: str
    processing_id: str
    recipient: str
    purpose: str
    safeguards: List[str]
    data_categories: List[str]
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sharing_id': self.sharing_id,
            'processing_id': self.processing_id,
            'recipient': self.recipient,
            'purpose': self.purpose,
            'safeguards': list(self.safeguards),
            'data_categories': list(self.data_categories),
            'timestamp': to_iso(self.timestamp)
        }


@dataclass
class DeletionRecord:
    """Verified deletion of the data held under a processing activity."""
    deletion_id: str
    processing_id: str
    reason: str
    verified_by: str
    data_categories: List[str]
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'deletion_id': self.deletion_id,
            'processing_id': self.processing_id,
            'reason': self.reason,
            'verified_by': self.verified_by,
            'data_categories': list(self.data_categories),
            'timestamp': to_iso(self.timestamp)
        }


# Rights requests


@dataclass
class RightsRequest:
    """A data subject rights request and its lifecycle."""

    request_id: str
    user_id: str
    agent_id: str
    request_type: RightsType
    jurisdiction: str
    framework: RegulatoryFramework
    legal_basis: str
    request_timestamp: datetime
    expected_completion: datetime

    verification_method: str = "email_verification"
    fulfillment_method: str = "secure_download"
    response_method: str = "email"

    # Status tracking
    status: RequestStatus = RequestStatus.PENDING
    actual_completion: Optional[datetime] = None
    resolution_note: Optional[str] = None

    # Ledger metadata
    topic_id: Optional[str] = None
    sequence_number: Optional[int] = None

    def is_overdue(self, now: datetime) -> bool:
        """Open request whose deadline lies strictly in the past."""
        return not self.status.is_terminal and self.expected_completion < now

    def to_dict(self) -> Dict[str, Any]:
        """Convert request to dictionary."""
        return {
            'request_id': self.request_id,
            'user_id': self.user_id,
            'agent_id': self.agent_id,
            'request_type': self.request_type.value,
            'jurisdiction': self.jurisdiction,
            'framework': self.framework.value,
            'legal_basis': self.legal_basis,
            'verification_method': self.verification_method,
            'fulfillment_method': self.fulfillment_method,
            'response_method': self.response_method,
            'request_timestamp': to_iso(self.request_timestamp),
            'expected_completion': to_iso(self.expected_completion),
            'status': self.status.value,
            'actual_completion': to_iso(self.actual_completion) if self.actual_completion else None,
            'resolution_note': self.resolution_note,
            'topic_id': self.topic_id,
            'sequence_number': self.sequence_number
        }


# Audits


@dataclass
class AuditReport:
    """Compliance audit record."""

    audit_id: str
    agent_id: str
    audit_type: AuditType
    auditor_id: str
    audit_scope: List[str]
    period_start: datetime
    period_end: datetime
    timestamp: datetime

    findings: List[str] = field(default_factory=list)
    compliance_score: int = 100
    violations: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    follow_up_required: bool = False
    follow_up_date: Optional[datetime] = None
    result: Optional[AuditResult] = None
    records_reviewed: Dict[str, int] = field(default_factory=dict)

    # Ledger metadata
    topic_id: Optional[str] = None
    sequence_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert audit to dictionary."""
        return {
            'audit_id': self.audit_id,
            'agent_id': self.agent_id,
            'audit_type': self.audit_type.value,
            'auditor_id': self.auditor_id,
            'audit_scope': list(self.audit_scope),
            'audit_period': {
                'start_date': to_iso(self.period_start),
                'end_date': to_iso(self.period_end)
            },
            'findings': list(self.findings),
            'compliance_score': self.compliance_score,
            'violations': list(self.violations),
            'recommendations': list(self.recommendations),
            'follow_up_required': self.follow_up_required,
            'follow_up_date': to_iso(self.follow_up_date) if self.follow_up_date else None,
            'result': self.result.value if self.result else None,
            'records_reviewed': dict(self.records_reviewed),
            'timestamp': to_iso(self.timestamp),
            'topic_id': self.topic_id,
            'sequence_number': self.sequence_number
        }


@dataclass
class RetentionReport:
    """Result of a consent retention review."""
    records_reviewed: int
    compliance_status: str
    operator_id: str
    timestamp: datetime
    next_review_date: datetime
    records_archived: int = 0
    records_deleted: int = 0
    retention_policies_applied: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    protocol: str = PROTOCOL_TAG
    operation: AuditOperation = AuditOperation.RETENTION_CHECK

    @property
    def is_compliant(self) -> bool:
        return self.compliance_status == "compliant"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'p': self.protocol,
            'op': self.operation.value,
            'operator_id': self.operator_id,
            'timestamp': to_iso(self.timestamp),
            'records_reviewed': self.records_reviewed,
            'records_archived': self.records_archived,
            'records_deleted': self.records_deleted,
            'retention_policies_applied': list(self.retention_policies_applied),
            'compliance_status': self.compliance_status,
            'next_review_date': to_iso(self.next_review_date),
            'issues': list(self.issues)
        }


# Ledger


@dataclass
class SubmitAck:
    """Acknowledgement returned by a ledger sink."""
    topic_id: str
    sequence_number: int
    consensus_timestamp: datetime

    @property
    def transaction_id(self) -> str:
        return f"{self.topic_id}@{self.sequence_number}"


class MessageSink(ABC):
    """Append-only ledger that accepts serialized protocol messages."""

    @abstractmethod
    def submit_message(self, topic_id: str, message: str) -> SubmitAck:
        """Append a message to a topic and acknowledge it."""
        pass

    @abstractmethod
    def create_topic(self, memo: str) -> str:
        """Create a topic carrying the given memo and return its id."""
        pass
