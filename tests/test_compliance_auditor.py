"""Tests for the compliance auditor."""

from datetime import timedelta

import pytest

from privacy_sentinel.core.interfaces import AuditResult, AuditType, ConsentStatus, RightsType
from privacy_sentinel.core.validation import (
    ManagerNotInitializedError,
    NotFoundError,
    ValidationError,
)
from privacy_sentinel.models.config import EngineConfiguration
from privacy_sentinel.privacy.audit import ComplianceAuditor


class TestComplianceCheck:
    """Automated compliance scoring."""

    def test_clean_state_scores_100(self, auditor, consent_manager, processing_registry, rights_handler,
                                    grant_request, processing_request):
        consent_manager.grant_consent(grant_request)
        processing_registry.register_processing_activity(processing_request)
        rights_handler.submit_request("u1", RightsType.ACCESS, "EU")

        report = auditor.run_compliance_check(consent_manager, processing_registry, rights_handler)

        assert report.compliance_score == 100
        assert report.result == AuditResult.COMPLIANT
        assert report.violations == []
        assert report.follow_up_required is False
        assert report.recommendations == ["Continue current practices"]
        assert "No compliance violations detected" in report.findings
        assert "1 processing activity record(s) reviewed" in report.findings
        assert report.records_reviewed == {'consents': 1, 'processing_activities': 1, 'rights_requests': 1}

    def test_without_managers(self, auditor):
        report = auditor.run_compliance_check()

        assert report.compliance_score == 100
        assert report.findings == ["No compliance violations detected"]
        assert report.audit_type == AuditType.INTERNAL
        assert report.audit_scope == ["consent_management", "rights_requests", "data_processing"]

    def test_overdue_request_costs_15(self, auditor, rights_handler, clock):
        request = rights_handler.submit_request("u1", RightsType.ERASURE, "EU", expected_completion_days=0)
        clock.advance(days=1)

        report = auditor.run_compliance_check(rights_registry=rights_handler)

        assert report.compliance_score == 85
        assert report.result == AuditResult.NON_COMPLIANT
        assert report.violations == [f"Overdue rights request: {request.request_id}"]
        assert report.follow_up_required is True
        assert report.recommendations == ["Address identified violations immediately"]

    def test_processing_request_still_counts_as_overdue(self, auditor, rights_handler, clock):
        request = rights_handler.submit_request("u1", RightsType.ACCESS, "US-CA")
        rights_handler.process_request(request.request_id)
        clock.advance(days=46)

        report = auditor.run_compliance_check(rights_registry=rights_handler)

        assert report.compliance_score == 85
        assert "1 pending rights request(s)" in report.findings

    def test_request_due_now_is_not_overdue(self, auditor, rights_handler):
        rights_handler.submit_request("u1", RightsType.ACCESS, "EU", expected_completion_days=0)

        assert auditor.run_compliance_check(rights_registry=rights_handler).compliance_score == 100

    def test_expired_active_consent_costs_10(self, auditor, consent_manager, grant_request, clock):
        grant_request.retention_period = "30_days"
        consent = consent_manager.grant_consent(grant_request)
        clock.advance(days=31)

        report = auditor.run_compliance_check(consent_manager=consent_manager)

        assert report.compliance_score == 90
        assert report.violations == [f"Expired consent still active: {consent.consent_id}"]
        assert "1 active consent(s) found" in report.findings

    def test_withdrawn_consents_are_inactive(self, auditor, consent_manager, grant_request):
        first = consent_manager.grant_consent(grant_request)
        consent_manager.grant_consent(grant_request)
        consent_manager.withdraw_consent(first.consent_id)

        report = auditor.run_compliance_check(consent_manager=consent_manager)

        assert "1 active consent(s) found" in report.findings
        assert "1 inactive consent(s) found" in report.findings

    def test_score_floors_at_zero(self, auditor, rights_handler, clock):
        for _ in range(8):
            rights_handler.submit_request("u1", RightsType.ACCESS, "EU", expected_completion_days=0)
        clock.advance(days=1)

        report = auditor.run_compliance_check(rights_registry=rights_handler)

        assert report.compliance_score == 0
        assert len(report.violations) == 8

    def test_penalties_come_from_config(self, sink, clock, rights_handler):
        auditor = ComplianceAuditor(EngineConfiguration(operator_id="0.0.1", overdue_request_penalty=40), sink, clock)
        auditor.init(sink.create_topic("audit"))
        rights_handler.submit_request("u1", RightsType.ACCESS, "EU", expected_completion_days=0)
        clock.advance(days=1)

        assert auditor.run_compliance_check(rights_registry=rights_handler).compliance_score == 60

    def test_check_does_not_mutate_managers(self, auditor, consent_manager, rights_handler, grant_request, clock):
        grant_request.retention_period = "1_day"
        consent = consent_manager.grant_consent(grant_request)
        request = rights_handler.submit_request("u1", RightsType.ACCESS, "EU", expected_completion_days=0)
        clock.advance(days=2)

        auditor.run_compliance_check(consent_manager, None, rights_handler)

        assert consent.status == ConsentStatus.ACTIVE
        assert request.status.value == "pending"
        assert len(consent_manager.get_message_log()) == 1
        assert len(rights_handler.get_message_log()) == 1

    def test_compliance_check_message(self, auditor, rights_handler, clock, decoded_log):
        rights_handler.submit_request("u1", RightsType.ACCESS, "EU", expected_completion_days=0)
        clock.advance(days=1)

        report = auditor.run_compliance_check(rights_registry=rights_handler)

        message = decoded_log(auditor)[-1]
        assert message['op'] == "compliance_check"
        assert message['audit_id'] == report.audit_id
        assert message['compliance_score'] == 85
        assert message['violation_count'] == 1
        assert message['result'] == "non_compliant"
        assert auditor.get_audit(report.audit_id) is report

    def test_requires_init(self, config, sink, clock):
        with pytest.raises(ManagerNotInitializedError):
            ComplianceAuditor(config, sink, clock).run_compliance_check()


class TestRetentionCheck:
    """Consent retention review."""

    def test_empty_review(self, auditor, consent_manager, clock):
        report = auditor.run_retention_check(consent_manager)

        assert report.records_reviewed == 0
        assert report.is_compliant
        assert report.retention_policies_applied == []
        assert report.next_review_date == clock.now + timedelta(days=90)

    def test_withdrawn_consent_is_compliant(self, auditor, consent_manager, grant_request):
        consent = consent_manager.grant_consent(grant_request)
        consent_manager.withdraw_consent(consent.consent_id)

        report = auditor.run_retention_check(consent_manager)

        assert report.records_reviewed == 1
        assert report.compliance_status == "compliant"

    def test_counts_expired_consents(self, auditor, consent_manager, grant_request, clock):
        grant_request.retention_period = "10_days"
        expired = consent_manager.grant_consent(grant_request)
        withdrawn = consent_manager.grant_consent(grant_request)
        consent_manager.withdraw_consent(withdrawn.consent_id)
        grant_request.retention_period = "1_year"
        consent_manager.grant_consent(grant_request)
        clock.advance(days=11)

        report = auditor.run_retention_check(consent_manager)

        assert report.records_reviewed == 3
        assert report.records_archived == 1
        assert report.records_deleted == 1
        assert report.retention_policies_applied == ["consent_expiry_check"]
        assert report.issues == [f"Active consent past expiry: {expired.consent_id}"]

    def test_active_consent_past_expiry_is_non_compliant(self, auditor, consent_manager, grant_request, clock,
                                                         decoded_log):
        grant_request.retention_period = "1_day"
        consent = consent_manager.grant_consent(grant_request)
        clock.advance(days=2)

        report = auditor.run_retention_check(consent_manager)

        assert report.records_archived == 1
        assert report.compliance_status == "non_compliant"
        assert report.issues == [f"Active consent past expiry: {consent.consent_id}"]
        assert decoded_log(auditor)[-1]['compliance_status'] == "non_compliant"

    def test_consents_expired_after_withdrawal_stay_compliant(self, auditor, consent_manager, grant_request,
                                                              clock):
        grant_request.retention_period = "1_day"
        consent = consent_manager.grant_consent(grant_request)
        consent_manager.withdraw_consent(consent.consent_id)
        clock.advance(days=2)

        report = auditor.run_retention_check(consent_manager)

        assert report.records_deleted == 1
        assert report.compliance_status == "compliant"

    def test_withdrawn_without_timestamp_is_non_compliant(self, auditor, consent_manager, grant_request,
                                                          decoded_log):
        consent = consent_manager.grant_consent(grant_request)
        consent.status = ConsentStatus.WITHDRAWN

        report = auditor.run_retention_check(consent_manager)

        assert report.compliance_status == "non_compliant"
        assert report.issues == [f"Withdrawn consent without withdrawal timestamp: {consent.consent_id}"]
        assert decoded_log(auditor)[-1]['issues'] == report.issues

    def test_retention_message_has_no_audit_id(self, auditor, consent_manager, grant_request, decoded_log):
        consent_manager.grant_consent(grant_request)

        report = auditor.run_retention_check(consent_manager)

        message = decoded_log(auditor)[-1]
        assert message['op'] == "retention_check"
        assert 'audit_id' not in message
        assert 'issues' not in message
        assert message['records_reviewed'] == 1
        assert report.to_dict()['p'] == "hcs-19"
        assert report.to_dict()['operator_id'] == "0.0.4242"


class TestManualAudits:
    """Start, record violations and complete an audit."""

    @pytest.fixture
    def audit(self, auditor, clock):
        return auditor.start_audit(
            AuditType.EXTERNAL, "auditor-7", ["consent_management"],
            clock.now - timedelta(days=30), clock.now,
        )

    def test_start_audit(self, auditor, audit, decoded_log):
        assert audit.audit_id.startswith("audit_")
        assert audit.result is None
        message = decoded_log(auditor)[-1]
        assert message['op'] == "audit_initiated"
        assert message['auditor_id'] == "auditor-7"
        assert message['audit_type'] == "external"

    def test_start_rejects_inverted_period(self, auditor, clock):
        with pytest.raises(ValidationError, match="period_end"):
            auditor.start_audit("regulatory", "auditor-7", [], clock.now, clock.now - timedelta(days=1))

    def test_record_violation(self, auditor, audit, decoded_log):
        updated = auditor.record_violation(audit.audit_id, ["Missing DPIA"], ["Reviewed 12 records"])

        assert updated.violations == ["Missing DPIA"]
        assert updated.findings == ["Reviewed 12 records"]
        assert updated.follow_up_required is True
        assert decoded_log(auditor)[-1]['op'] == "violation_detected"

    def test_complete_audit(self, auditor, audit, clock):
        follow_up = clock.now + timedelta(days=14)

        completed = auditor.complete_audit(
            audit.audit_id, 70, ["Reviewed consents"], ["Missing DPIA"], ["Run a DPIA"],
            follow_up_date=follow_up,
        )

        assert completed.compliance_score == 70
        assert completed.result == AuditResult.NON_COMPLIANT
        assert completed.follow_up_required is True
        assert completed.to_dict()['follow_up_date'] == "2024-03-15T12:00:00.000Z"
        assert completed.to_dict()['audit_period']['end_date'] == "2024-03-01T12:00:00.000Z"

    def test_complete_clean_audit(self, auditor, audit):
        completed = auditor.complete_audit(audit.audit_id, 100, [], [], [])

        assert completed.result == AuditResult.COMPLIANT
        assert completed.follow_up_required is False

    @pytest.mark.parametrize("score", [-1, 101])
    def test_complete_rejects_out_of_range_score(self, auditor, audit, score):
        with pytest.raises(ValidationError, match="compliance_score"):
            auditor.complete_audit(audit.audit_id, score, [], [], [])

    def test_unknown_audit(self, auditor):
        with pytest.raises(NotFoundError, match="Audit not found"):
            auditor.record_violation("audit_missing", ["x"])

    def test_list_audits(self, auditor, audit):
        auditor.run_compliance_check()

        assert len(auditor.list_audits()) == 2
