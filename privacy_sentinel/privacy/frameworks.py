"""Regulatory framework mapping: jurisdictions, response deadlines and legal citations."""

from typing import Optional

from privacy_sentinel.core.interfaces import RegulatoryFramework, RightsType


# Response deadlines in days (GDPR Art 12(3), CCPA §1798.130). Flat per framework.
DEADLINE_DAYS = {
    RegulatoryFramework.GDPR: 30,
    RegulatoryFramework.CCPA: 45,
    RegulatoryFramework.DPDP: 30,
}

DEFAULT_DEADLINE_DAYS = 30

GDPR_ARTICLES = {
    RightsType.ACCESS: "GDPR Article 15",
    RightsType.RECTIFICATION: "GDPR Article 16",
    RightsType.ERASURE: "GDPR Article 17",
    RightsType.RESTRICT_PROCESSING: "GDPR Article 18",
    RightsType.DATA_PORTABILITY: "GDPR Article 20",
    RightsType.OBJECT: "GDPR Article 21",
}

CCPA_SECTIONS = {
    RightsType.ACCESS: "CCPA §1798.100",
    RightsType.ERASURE: "CCPA §1798.105",
    RightsType.DO_NOT_SELL: "CCPA §1798.120",
}


def framework_for_jurisdiction(jurisdiction: Optional[str]) -> RegulatoryFramework:
    """EU and EU-* map to GDPR, US-CA to CCPA, everything else to the DPDP baseline."""
    code = (jurisdiction or "").strip().upper()
    if code == "EU" or code.startswith("EU-"):
        return RegulatoryFramework.GDPR
    if code == "US-CA":
        return RegulatoryFramework.CCPA
    return RegulatoryFramework.DPDP


def compliance_deadline_days(framework: RegulatoryFramework,
                             right_type: Optional[RightsType] = None) -> int:
    """Days a controller has to answer a rights request under a framework.

    ``right_type`` is accepted for call-site symmetry but does not change the result.
    """
    return DEADLINE_DAYS.get(framework, DEFAULT_DEADLINE_DAYS)


def legal_citation(right: RightsType, framework: RegulatoryFramework) -> str:
    """Citation text for a right, or the bare framework name when none is mapped."""
    if framework == RegulatoryFramework.GDPR:
        return GDPR_ARTICLES.get(right, "GDPR")
    if framework == RegulatoryFramework.CCPA:
        return CCPA_SECTIONS.get(right, "CCPA")
    return framework.value.upper()


class RegulatoryFrameworkMapper:
    """Stateless facade over the framework mapping functions."""

    framework_for_jurisdiction = staticmethod(framework_for_jurisdiction)
    compliance_deadline_days = staticmethod(compliance_deadline_days)
    legal_citation = staticmethod(legal_citation)

    @staticmethod
    def deadline_for_jurisdiction(jurisdiction: str, right_type: Optional[RightsType] = None) -> int:
        return compliance_deadline_days(framework_for_jurisdiction(jurisdiction), right_type)
