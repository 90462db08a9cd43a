"""Consent lifecycle management: grant, verify, update, withdraw and revoke."""

import uuid
from typing import Any, Dict, List, Optional, Tuple, Union

from privacy_sentinel.core.interfaces import (
    ConsentOperation,
    ConsentQueryFilters,
    ConsentReceipt,
    ConsentRecord,
    ConsentStatus,
    GrantConsentRequest,
    SubmitAck,
)
from privacy_sentinel.core.timeutils import add_days
from privacy_sentinel.core.validation import (
    NotFoundError,
    RequestValidator,
    StateTransitionError,
    require_legal_basis,
    require_non_empty_list,
    require_retention_days,
    require_text,
)
from privacy_sentinel.privacy.base import LedgerBackedManager


class ConsentManager(LedgerBackedManager):
    """Owns consent records for one operator.

    Records are never removed. Withdrawal is a status change, and expiry
    is derived from ``expires_at`` at read time rather than stored.
    """

    manager_name = "ConsentManager"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.default_jurisdiction = self.config.default_jurisdiction
        self._consents: Dict[str, ConsentRecord] = {}
        self._last_acks: Dict[str, Tuple[ConsentOperation, Optional[SubmitAck]]] = {}

    def init(self, topic_id: Optional[str] = None, default_jurisdiction: Optional[str] = None) -> None:
        """Bind the consent topic and, optionally, this instance's default jurisdiction."""
        with self._lock:
            if default_jurisdiction:
                self.default_jurisdiction = default_jurisdiction
            super().init(topic_id)

    def grant_consent(self, request: Union[GrantConsentRequest, Dict[str, Any]]) -> ConsentRecord:
        """Create an active consent record and announce it on the consent topic."""
        if isinstance(request, dict):
            request = GrantConsentRequest(**request)
        request.legal_basis = require_legal_basis(request.legal_basis)

        with self._lock:
            self._require_initialized()

            error = RequestValidator.first_error(RequestValidator.validate_grant_request(request))
            if error:
                self.logger.warning(f"Rejected consent grant for user {request.user_id!r}: {error}")
                raise error

            retention_period = request.retention_period or self.config.default_retention_period
            retention_days = require_retention_days(retention_period)

            now = self._now()
            consent_id = f"consent_{uuid.uuid4()}"
            jurisdiction = request.jurisdiction or self.default_jurisdiction

            consent = ConsentRecord(
                consent_id=consent_id,
                user_id=request.user_id,
                agent_id=self.operator_id,
                jurisdiction=jurisdiction,
                legal_basis=request.legal_basis,
                purposes=list(request.purposes),
                data_types=list(request.data_types),
                granted_at=now,
                consent_method=request.consent_method,
                retention_period=retention_period,
                withdrawal_method=request.withdrawal_method,
                notice_reference=request.notice_reference,
                status=ConsentStatus.ACTIVE,
                expires_at=add_days(now, retention_days),
                granular_permissions=dict(request.granular_permissions) if request.granular_permissions else None,
                gdpr=request.gdpr,
                ccpa=request.ccpa,
                dpdp=request.dpdp,
                topic_id=self.topic_id,
            )

            message = self.formatter.build_consent_message(
                ConsentOperation.CONSENT_GRANTED,
                timestamp=now,
                consent_id=consent_id,
                user_id=consent.user_id,
                purposes=consent.purposes,
                legal_basis=consent.legal_basis,
                jurisdiction=jurisdiction,
                consent_method=consent.consent_method,
                data_types=consent.data_types,
                retention_period=retention_period,
                withdrawal_method=consent.withdrawal_method,
                notice_reference=consent.notice_reference,
                status=ConsentStatus.ACTIVE,
                expires_at=consent.expires_at,
                gdpr_lawful_basis=consent.gdpr.gdpr_lawful_basis if consent.gdpr else None,
                m=f"Consent granted for user {consent.user_id}, purposes: {', '.join(consent.purposes)}",
            )
            ack = self._emit(message)

            self._record_ack(consent, ConsentOperation.CONSENT_GRANTED, ack)
            self._consents[consent_id] = consent

        self.logger.info(f"Granted consent {consent_id} for user {consent.user_id}")
        return consent

    def withdraw_consent(self, consent_id: str) -> ConsentRecord:
        """Withdraw an active consent."""
        with self._lock:
            self._require_initialized()
            consent = self._get_withdrawable(consent_id)

            now = self._now()
            message = self.formatter.build_consent_message(
                ConsentOperation.CONSENT_WITHDRAWN,
                timestamp=now,
                consent_id=consent_id,
                user_id=consent.user_id,
                status=ConsentStatus.WITHDRAWN,
                m=f"Consent withdrawn for user {consent.user_id}",
            )
            ack = self._emit(message)

            consent.status = ConsentStatus.WITHDRAWN
            consent.withdrawn_at = now
            self._record_ack(consent, ConsentOperation.CONSENT_WITHDRAWN, ack)

        self.logger.info(f"Withdrew consent {consent_id} for user {consent.user_id}")
        return consent

    def revoke_consent(self, consent_id: str, reason: str) -> ConsentRecord:
        """Withdraw consent with a mandatory, recorded reason."""
        reason = require_text(reason, "reason", "Revocation reason is required").strip()

        with self._lock:
            self._require_initialized()
            consent = self._get_withdrawable(consent_id)

            now = self._now()
            message = self.formatter.build_consent_message(
                ConsentOperation.CONSENT_WITHDRAWN,
                timestamp=now,
                consent_id=consent_id,
                user_id=consent.user_id,
                status=ConsentStatus.WITHDRAWN,
                revocation_reason=reason,
                m=f"Consent revoked for user {consent.user_id}, reason: {reason}",
            )
            ack = self._emit(message)

            consent.status = ConsentStatus.WITHDRAWN
            consent.withdrawn_at = now
            consent.revocation_reason = reason
            consent.revocation_timestamp = now
            self._record_ack(consent, ConsentOperation.CONSENT_WITHDRAWN, ack)

        self.logger.info(f"Revoked consent {consent_id} for user {consent.user_id}: {reason}")
        return consent

    def update_consent(self,
                       consent_id: str,
                       purposes: Optional[List[str]] = None,
                       data_types: Optional[List[str]] = None,
                       retention_period: Optional[str] = None,
                       granular_permissions: Optional[Dict[str, bool]] = None) -> ConsentRecord:
        """Change the preferences of an active, unexpired consent."""
        if purposes is not None:
            purposes = require_non_empty_list(purposes, "purposes")
        if data_types is not None:
            data_types = require_non_empty_list(data_types, "data_types")
        retention_days = require_retention_days(retention_period) if retention_period is not None else None

        with self._lock:
            self._require_initialized()
            consent = self._get_existing(consent_id)

            now = self._now()
            if not consent.is_valid(now):
                raise StateTransitionError(
                    f"Cannot update non-active consent: {consent_id}",
                    identifier=consent_id,
                    state=consent.effective_status(now).value,
                )

            new_purposes = purposes if purposes is not None else consent.purposes
            message = self.formatter.build_consent_message(
                ConsentOperation.CONSENT_UPDATED,
                timestamp=now,
                consent_id=consent_id,
                user_id=consent.user_id,
                purposes=new_purposes,
                data_types=data_types,
                retention_period=retention_period,
                status=consent.status,
                m=f"Consent updated for user {consent.user_id}",
            )
            ack = self._emit(message)

            consent.purposes = list(new_purposes)
            if data_types is not None:
                consent.data_types = data_types
            if retention_days is not None:
                consent.retention_period = retention_period
                consent.expires_at = add_days(now, retention_days)
            if granular_permissions is not None:
                consent.granular_permissions = dict(granular_permissions)
            self._record_ack(consent, ConsentOperation.CONSENT_UPDATED, ack)

        self.logger.info(f"Updated consent {consent_id} for user {consent.user_id}")
        return consent

    def verify_consent(self, user_id: str, purpose: str) -> Dict[str, Any]:
        """Look up a usable consent for user and purpose. Read-only."""
        with self._lock:
            now = self._now()
            for consent in self._consents.values():
                if consent.user_id == user_id and purpose in consent.purposes and consent.is_valid(now):
                    return {'consented': True, 'consent': consent}

        return {'consented': False}

    def query_consent(self, user_id: str,
                      filters: Optional[Union[ConsentQueryFilters, Dict[str, Any]]] = None) -> List[ConsentRecord]:
        """A user's consents narrowed by optional filters."""
        if isinstance(filters, dict):
            filters = ConsentQueryFilters(**filters)

        with self._lock:
            now = self._now()
            results = [c for c in self._consents.values() if c.user_id == user_id]

            if filters is None:
                return results

            if filters.status:
                results = [c for c in results if c.effective_status(now) == filters.status]
            if filters.active_only:
                results = [c for c in results if c.is_valid(now)]
            if filters.purpose:
                results = [c for c in results if filters.purpose in c.purposes]
            if filters.jurisdiction:
                results = [c for c in results if c.jurisdiction == filters.jurisdiction]
            if filters.legal_basis:
                results = [c for c in results if c.legal_basis == filters.legal_basis]
            if filters.data_type:
                results = [c for c in results if filters.data_type in c.data_types]

            return results

    def get_consent(self, consent_id: str) -> Optional[ConsentRecord]:
        with self._lock:
            return self._consents.get(consent_id)

    def list_consents(self, user_id: str) -> List[ConsentRecord]:
        with self._lock:
            return [c for c in self._consents.values() if c.user_id == user_id]

    def list_active_consents(self, agent_id: Optional[str] = None) -> List[ConsentRecord]:
        """Consents whose stored status is active, expired or not."""
        with self._lock:
            return [
                c for c in self._consents.values()
                if c.status == ConsentStatus.ACTIVE and (agent_id is None or c.agent_id == agent_id)
            ]

    def all_consents(self) -> List[ConsentRecord]:
        with self._lock:
            return list(self._consents.values())

    def is_expired(self, consent: ConsentRecord) -> bool:
        return consent.is_expired(self._now())

    def issue_receipt(self, consent_id: str, operation: Optional[ConsentOperation] = None) -> ConsentReceipt:
        """Human-readable receipt for the latest (or given) operation on a consent."""
        with self._lock:
            consent = self._get_existing(consent_id)
            last_operation, ack = self._last_acks.get(consent_id, (ConsentOperation.CONSENT_GRANTED, None))
            if operation is not None and operation != last_operation:
                ack = None
            operation = operation or last_operation

            return ConsentReceipt(
                receipt_id=f"rcpt_{uuid.uuid4()}",
                consent_id=consent_id,
                operation=operation,
                transaction_id=ack.transaction_id if ack else None,
                topic_id=consent.topic_id or self.topic_id or "",
                sequence_number=ack.sequence_number if ack else consent.sequence_number,
                timestamp=self._now(),
                human_readable=f"Consent {operation.value} for user {consent.user_id}",
            )

    def _get_existing(self, consent_id: str) -> ConsentRecord:
        consent = self._consents.get(consent_id)
        if consent is None:
            raise NotFoundError("Consent record", consent_id)
        return consent

    def _get_withdrawable(self, consent_id: str) -> ConsentRecord:
        consent = self._get_existing(consent_id)
        if consent.status == ConsentStatus.WITHDRAWN:
            raise StateTransitionError(
                f"Consent already withdrawn: {consent_id}",
                identifier=consent_id,
                state=consent.status.value,
            )
        return consent

    def _record_ack(self, consent: ConsentRecord, operation: ConsentOperation, ack: Optional[SubmitAck]) -> None:
        self._last_acks[consent.consent_id] = (operation, ack)
        if ack:
            consent.sequence_number = ack.sequence_number
