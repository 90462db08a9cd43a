"""Records of processing activities (GDPR Article 30), third-party sharing and deletions."""

import uuid
from typing import Any, Dict, List, Optional, Union

from privacy_sentinel.core.interfaces import (
    DeletionRecord,
    ProcessingActivityFilters,
    ProcessingActivityStatus,
    ProcessingOperation,
    ProcessingRecord,
    RegisterProcessingActivityRequest,
    SharingRecord,
)
from privacy_sentinel.core.validation import (
    NotFoundError,
    RequestValidator,
    StateTransitionError,
    ValidationError,
    require_legal_basis,
    require_text,
)
from privacy_sentinel.privacy.base import LedgerBackedManager


class DataProcessingRegistry(LedgerBackedManager):
    """Owns processing records and the sharing/deletion records hanging off them."""

    manager_name = "DataProcessingRegistry"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._records: Dict[str, ProcessingRecord] = {}
        self._sharing_records: Dict[str, List[SharingRecord]] = {}
        self._deletion_records: Dict[str, List[DeletionRecord]] = {}

    def register_processing_activity(
            self, request: Union[RegisterProcessingActivityRequest, Dict[str, Any]]) -> ProcessingRecord:
        """Register a processing activity and announce it on the processing topic."""
        if isinstance(request, dict):
            request = RegisterProcessingActivityRequest(**request)
        request.legal_basis = require_legal_basis(request.legal_basis)

        with self._lock:
            self._require_initialized()

            error = RequestValidator.first_error(RequestValidator.validate_processing_request(request))
            if error:
                self.logger.warning(f"Rejected processing registration from {request.controller_id!r}: {error}")
                raise error

            now = self._now()
            processing_id = f"proc_{uuid.uuid4()}"

            record = ProcessingRecord(
                processing_id=processing_id,
                user_id=request.user_id,
                agent_id=request.controller_id,
                purpose=request.purpose,
                legal_basis=request.legal_basis,
                data_types=list(request.data_categories),
                start_timestamp=now,
                processing_method=request.processing_method,
                duration=request.retention_period,
                security_measures=list(request.security_measures),
                consent_id=request.consent_id,
                processor_id=request.processor_id,
                topic_id=self.topic_id,
            )

            message = self.formatter.build_processing_message(
                ProcessingOperation.PROCESSING_STARTED,
                timestamp=now,
                processing_id=processing_id,
                user_id=record.user_id,
                purpose=record.purpose,
                legal_basis=record.legal_basis,
                data_types=record.data_types,
                processing_method=record.processing_method,
                consent_id=record.consent_id,
                m=f"Processing activity registered by {request.controller_id}, purpose: {record.purpose}",
            )
            ack = self._emit(message)

            if ack:
                record.sequence_number = ack.sequence_number
            self._records[processing_id] = record
            self._sharing_records[processing_id] = []
            self._deletion_records[processing_id] = []

        self.logger.info(f"Registered processing activity {processing_id} for user {record.user_id}")
        return record

    def complete_processing(self, processing_id: str,
                            compliance_status: Union[ProcessingActivityStatus, str] = ProcessingActivityStatus.COMPLETED
                            ) -> ProcessingRecord:
        """Close an activity as completed or suspended."""
        if isinstance(compliance_status, str):
            compliance_status = ProcessingActivityStatus(compliance_status)
        if compliance_status not in (ProcessingActivityStatus.COMPLETED, ProcessingActivityStatus.SUSPENDED):
            raise ValidationError(
                "must be 'completed' or 'suspended'",
                field="compliance_status",
                value=compliance_status.value,
            )

        with self._lock:
            self._require_initialized()
            record = self._get_live_record(processing_id)

            now = self._now()
            message = self.formatter.build_processing_message(
                ProcessingOperation.PROCESSING_COMPLETED,
                timestamp=now,
                processing_id=processing_id,
                compliance_status=compliance_status,
                m=f"Processing completed: {processing_id}, status: {compliance_status.value}",
            )
            ack = self._emit(message)

            record.compliance_status = compliance_status
            record.end_timestamp = now
            if ack:
                record.sequence_number = ack.sequence_number

        self.logger.info(f"Processing activity {processing_id} marked {compliance_status.value}")
        return record

    def record_data_sharing(self, processing_id: str, recipient: str, purpose: str,
                            safeguards: Optional[List[str]] = None) -> SharingRecord:
        """Record that a processing activity's data went to a third party."""
        with self._lock:
            self._require_initialized()
            record = self._get_record(processing_id)
            recipient = require_text(recipient, "recipient", "Recipient is required").strip()
            purpose = require_text(purpose, "purpose", "Sharing purpose is required").strip()
            safeguards = list(safeguards or [])
            self._ensure_not_deleted(record)

            now = self._now()
            sharing = SharingRecord(
                sharing_id=f"share_{uuid.uuid4()}",
                processing_id=processing_id,
                recipient=recipient,
                purpose=purpose,
                safeguards=safeguards,
                data_categories=list(record.data_types),
                timestamp=now,
            )
            third_parties = record.third_parties + [recipient]

            message = self.formatter.build_processing_message(
                ProcessingOperation.DATA_SHARED,
                timestamp=now,
                processing_id=processing_id,
                sharing_id=sharing.sharing_id,
                third_parties=third_parties,
                data_types=record.data_types,
                m=f"Data shared with {recipient}, purpose: {purpose}, safeguards: {', '.join(safeguards)}",
            )
            self._emit(message)

            record.third_parties = third_parties
            self._sharing_records.setdefault(processing_id, []).append(sharing)

        self.logger.info(f"Recorded sharing of {processing_id} with {recipient}")
        return sharing

    def record_deletion(self, processing_id: str, reason: str, verified_by: str) -> DeletionRecord:
        """Record verified deletion of a processing activity's data. Terminal."""
        with self._lock:
            self._require_initialized()
            record = self._get_record(processing_id)
            reason = require_text(reason, "reason", "Deletion reason is required").strip()
            verified_by = require_text(verified_by, "verified_by", "Verified-by identity is required").strip()
            self._ensure_not_deleted(record)

            now = self._now()
            deletion = DeletionRecord(
                deletion_id=f"del_{uuid.uuid4()}",
                processing_id=processing_id,
                reason=reason,
                verified_by=verified_by,
                data_categories=list(record.data_types),
                timestamp=now,
            )

            message = self.formatter.build_processing_message(
                ProcessingOperation.DATA_DELETED,
                timestamp=now,
                processing_id=processing_id,
                deletion_id=deletion.deletion_id,
                user_id=record.user_id,
                data_types=record.data_types,
                m=f"Data deleted for processing {processing_id}, reason: {reason}, verified by: {verified_by}",
            )
            self._emit(message)

            record.compliance_status = ProcessingActivityStatus.DATA_DELETED
            record.end_timestamp = now
            self._deletion_records.setdefault(processing_id, []).append(deletion)

        self.logger.info(f"Recorded deletion for {processing_id}, verified by {verified_by}")
        return deletion

    def query_processing_activities(
            self, filters: Optional[Union[ProcessingActivityFilters, Dict[str, Any]]] = None
    ) -> List[ProcessingRecord]:
        """All records matching every supplied filter."""
        if isinstance(filters, dict):
            filters = ProcessingActivityFilters(**filters)

        with self._lock:
            results = list(self._records.values())

            if filters is None:
                return results

            if filters.controller_id:
                results = [r for r in results if r.agent_id == filters.controller_id]
            if filters.processor_id:
                results = [r for r in results if r.agent_id == filters.processor_id]
            if filters.status:
                results = [r for r in results if r.compliance_status == filters.status]
            if filters.data_category:
                results = [r for r in results if filters.data_category in r.data_types]
            if filters.legal_basis:
                results = [r for r in results if r.legal_basis == filters.legal_basis]
            if filters.user_id:
                results = [r for r in results if r.user_id == filters.user_id]

            return results

    def get_processing_record(self, processing_id: str) -> Optional[ProcessingRecord]:
        with self._lock:
            return self._records.get(processing_id)

    def get_sharing_records(self, processing_id: str) -> List[SharingRecord]:
        with self._lock:
            return list(self._sharing_records.get(processing_id, []))

    def get_deletion_records(self, processing_id: str) -> List[DeletionRecord]:
        with self._lock:
            return list(self._deletion_records.get(processing_id, []))

    def list_by_user(self, user_id: str) -> List[ProcessingRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.user_id == user_id]

    def all_records(self) -> List[ProcessingRecord]:
        with self._lock:
            return list(self._records.values())

    def _get_record(self, processing_id: str) -> ProcessingRecord:
        record = self._records.get(processing_id)
        if record is None:
            raise NotFoundError("Processing record", processing_id)
        return record

    def _get_live_record(self, processing_id: str) -> ProcessingRecord:
        record = self._get_record(processing_id)
        self._ensure_not_deleted(record)
        return record

    @staticmethod
    def _ensure_not_deleted(record: ProcessingRecord) -> None:
        if record.is_deleted:
            raise StateTransitionError(
                f"Processing record already deleted: {record.processing_id}",
                identifier=record.processing_id,
                state=record.compliance_status.value,
            )
