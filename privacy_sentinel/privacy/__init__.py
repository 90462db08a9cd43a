"""Privacy compliance managers for GDPR, CCPA and the DPDP baseline."""

from .frameworks import (
    RegulatoryFrameworkMapper,
    framework_for_jurisdiction,
    compliance_deadline_days,
    legal_citation,
)
from .consent import ConsentManager
from .processing import DataProcessingRegistry
from .rights import PrivacyRightsHandler
from .audit import ComplianceAuditor
from .engine import PrivacyComplianceEngine

__all__ = [
    "RegulatoryFrameworkMapper",
    "framework_for_jurisdiction",
    "compliance_deadline_days",
    "legal_citation",
    "ConsentManager",
    "DataProcessingRegistry",
    "PrivacyRightsHandler",
    "ComplianceAuditor",
    "PrivacyComplianceEngine",
]
