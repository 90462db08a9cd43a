"""Compliance audits: manual audit records, automated compliance scoring and retention review."""

import uuid
from datetime import datetime
from typing import List, Optional, Union

from privacy_sentinel.core.interfaces import (
    AuditOperation,
    AuditReport,
    AuditResult,
    AuditType,
    ConsentStatus,
    RetentionReport,
)
from privacy_sentinel.core.timeutils import add_days
from privacy_sentinel.core.validation import NotFoundError, ValidationError, require_text
from privacy_sentinel.privacy.base import LedgerBackedManager
from privacy_sentinel.privacy.consent import ConsentManager
from privacy_sentinel.privacy.processing import DataProcessingRegistry
from privacy_sentinel.privacy.rights import PrivacyRightsHandler


AUTOMATED_AUDIT_SCOPE = ["consent_management", "rights_requests", "data_processing"]

RETENTION_POLICY_CONSENT_EXPIRY = "consent_expiry_check"


class ComplianceAuditor(LedgerBackedManager):
    """Scores compliance across the other managers without ever mutating them.

    Non-compliance is returned as data (score, violations, result); it is
    never raised.
    """

    manager_name = "ComplianceAuditor"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._audits = {}

    def start_audit(self,
                    audit_type: Union[AuditType, str],
                    auditor_id: str,
                    audit_scope: List[str],
                    period_start: datetime,
                    period_end: datetime) -> AuditReport:
        """Open a manual audit."""
        if isinstance(audit_type, str):
            audit_type = AuditType(audit_type)
        auditor_id = require_text(auditor_id, "auditor_id")
        if period_end < period_start:
            raise ValidationError("must not be before period_start", field="period_end", value=period_end)

        with self._lock:
            self._require_initialized()

            now = self._now()
            audit = AuditReport(
                audit_id=f"audit_{uuid.uuid4()}",
                agent_id=self.operator_id,
                audit_type=audit_type,
                auditor_id=auditor_id,
                audit_scope=list(audit_scope),
                period_start=period_start,
                period_end=period_end,
                timestamp=now,
                topic_id=self.topic_id,
            )

            message = self.formatter.build_audit_message(
                AuditOperation.AUDIT_INITIATED,
                timestamp=now,
                audit_id=audit.audit_id,
                audit_type=audit_type,
                auditor_id=auditor_id,
                audit_scope=audit.audit_scope,
                m=f"Audit initiated by {auditor_id}, scope: {', '.join(audit.audit_scope)}",
            )
            ack = self._emit(message)

            if ack:
                audit.sequence_number = ack.sequence_number
            self._audits[audit.audit_id] = audit

        self.logger.info(f"Started {audit_type.value} audit {audit.audit_id} by {auditor_id}")
        return audit

    def record_violation(self, audit_id: str, violations: List[str],
                         findings: Optional[List[str]] = None) -> AuditReport:
        """Append violations and findings to an open audit."""
        findings = list(findings or [])

        with self._lock:
            self._require_initialized()
            audit = self._get_audit(audit_id)

            message = self.formatter.build_audit_message(
                AuditOperation.VIOLATION_DETECTED,
                timestamp=self._now(),
                audit_id=audit_id,
                violations=list(violations),
                findings=findings,
                m=f"Violations detected: {'; '.join(violations)}",
            )
            self._emit(message)

            audit.violations.extend(violations)
            audit.findings.extend(findings)
            audit.follow_up_required = len(audit.violations) > 0

        self.logger.warning(f"Recorded {len(violations)} violation(s) on audit {audit_id}")
        return audit

    def complete_audit(self,
                       audit_id: str,
                       compliance_score: int,
                       findings: List[str],
                       violations: List[str],
                       recommendations: List[str],
                       follow_up_required: Optional[bool] = None,
                       follow_up_date: Optional[datetime] = None) -> AuditReport:
        """Close an audit with its final results."""
        if not 0 <= compliance_score <= 100:
            raise ValidationError("must be between 0 and 100", field="compliance_score", value=compliance_score)

        with self._lock:
            self._require_initialized()
            audit = self._get_audit(audit_id)

            message = self.formatter.build_audit_message(
                AuditOperation.AUDIT_COMPLETED,
                timestamp=self._now(),
                audit_id=audit_id,
                compliance_score=compliance_score,
                violations=list(violations),
                findings=list(findings),
                m=f"Audit completed, score: {compliance_score}/100, violations: {len(violations)}",
            )
            ack = self._emit(message)

            audit.compliance_score = compliance_score
            audit.findings = list(findings)
            audit.violations = list(violations)
            audit.recommendations = list(recommendations)
            audit.follow_up_required = bool(violations) if follow_up_required is None else follow_up_required
            audit.follow_up_date = follow_up_date
            audit.result = AuditResult.COMPLIANT if not violations else AuditResult.NON_COMPLIANT
            if ack:
                audit.sequence_number = ack.sequence_number

        self.logger.info(f"Completed audit {audit_id} with score {compliance_score}")
        return audit

    def run_compliance_check(self,
                             consent_manager: Optional[ConsentManager] = None,
                             processing_registry: Optional[DataProcessingRegistry] = None,
                             rights_registry: Optional[PrivacyRightsHandler] = None) -> AuditReport:
        """Score current compliance from 100, deducting a fixed penalty per violation."""
        with self._lock:
            self._require_initialized()

            now = self._now()
            findings: List[str] = []
            violations: List[str] = []
            score = 100

            all_consents = consent_manager.all_consents() if consent_manager else []
            active_consents = consent_manager.list_active_consents() if consent_manager else []
            for consent in active_consents:
                if consent.is_expired(now):
                    violations.append(f"Expired consent still active: {consent.consent_id}")
                    score -= self.config.expired_consent_penalty

            if active_consents:
                findings.append(f"{len(active_consents)} active consent(s) found")
            if len(all_consents) > len(active_consents):
                findings.append(f"{len(all_consents) - len(active_consents)} inactive consent(s) found")

            processing_records = processing_registry.all_records() if processing_registry else []
            if processing_records:
                findings.append(f"{len(processing_records)} processing activity record(s) reviewed")

            all_requests = rights_registry.all_requests() if rights_registry else []
            pending_requests = [r for r in all_requests if not r.status.is_terminal]
            for request in pending_requests:
                if request.is_overdue(now):
                    violations.append(f"Overdue rights request: {request.request_id}")
                    score -= self.config.overdue_request_penalty
            if pending_requests:
                findings.append(f"{len(pending_requests)} pending rights request(s)")

            score = max(score, 0)

            if violations:
                recommendations = ["Address identified violations immediately"]
            else:
                findings.append("No compliance violations detected")
                recommendations = ["Continue current practices"]

            audit = AuditReport(
                audit_id=f"audit_{uuid.uuid4()}",
                agent_id=self.operator_id,
                audit_type=AuditType.INTERNAL,
                auditor_id=self.operator_id,
                audit_scope=list(AUTOMATED_AUDIT_SCOPE),
                period_start=now,
                period_end=now,
                timestamp=now,
                findings=findings,
                compliance_score=score,
                violations=violations,
                recommendations=recommendations,
                follow_up_required=len(violations) > 0,
                result=AuditResult.COMPLIANT if not violations else AuditResult.NON_COMPLIANT,
                records_reviewed={
                    'consents': len(all_consents),
                    'processing_activities': len(processing_records),
                    'rights_requests': len(all_requests),
                },
                topic_id=self.topic_id,
            )

            message = self.formatter.build_audit_message(
                AuditOperation.COMPLIANCE_CHECK,
                timestamp=now,
                audit_id=audit.audit_id,
                audit_type=AuditType.INTERNAL,
                compliance_score=score,
                violation_count=len(violations),
                violations=violations,
                findings=findings,
                result=audit.result,
                m=f"Automated compliance check, score: {score}/100",
            )
            ack = self._emit(message)

            if ack:
                audit.sequence_number = ack.sequence_number
            self._audits[audit.audit_id] = audit

        if violations:
            self.logger.warning(f"Compliance check {audit.audit_id} found {len(violations)} violation(s), score {score}")
        else:
            self.logger.info(f"Compliance check {audit.audit_id} passed with score {score}")
        return audit

    def run_retention_check(self, consent_manager: ConsentManager) -> RetentionReport:
        """Review consent expiry and withdrawal bookkeeping."""
        with self._lock:
            self._require_initialized()

            now = self._now()
            consents = consent_manager.all_consents()
            archived = 0
            deleted = 0
            issues: List[str] = []

            for consent in consents:
                if consent.is_expired(now):
                    if consent.status == ConsentStatus.ACTIVE:
                        archived += 1
                        issues.append(f"Active consent past expiry: {consent.consent_id}")
                    else:
                        deleted += 1
                if consent.status == ConsentStatus.WITHDRAWN and consent.withdrawn_at is None:
                    issues.append(f"Withdrawn consent without withdrawal timestamp: {consent.consent_id}")

            report = RetentionReport(
                records_reviewed=len(consents),
                compliance_status="compliant" if not issues else "non_compliant",
                operator_id=self.operator_id,
                timestamp=now,
                next_review_date=add_days(now, self.config.retention_review_days),
                records_archived=archived,
                records_deleted=deleted,
                retention_policies_applied=[RETENTION_POLICY_CONSENT_EXPIRY] if consents else [],
                issues=issues,
            )

            message = self.formatter.build_retention_message(
                timestamp=now,
                records_reviewed=report.records_reviewed,
                records_archived=archived,
                records_deleted=deleted,
                retention_policies_applied=report.retention_policies_applied,
                compliance_status=report.compliance_status,
                next_review_date=report.next_review_date,
                issues=issues or None,
                m=f"Retention check: {len(consents)} reviewed, {archived} archived, {deleted} deleted",
            )
            self._emit(message)

        self.logger.info(f"Retention check reviewed {report.records_reviewed} consent(s): {report.compliance_status}")
        return report

    def get_audit(self, audit_id: str) -> Optional[AuditReport]:
        with self._lock:
            return self._audits.get(audit_id)

    def list_audits(self) -> List[AuditReport]:
        with self._lock:
            return list(self._audits.values())

    def _get_audit(self, audit_id: str) -> AuditReport:
        audit = self._audits.get(audit_id)
        if audit is None:
            raise NotFoundError("Audit", audit_id)
        return audit
