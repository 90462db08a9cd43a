"""Data subject rights requests: submission, processing and fulfilment within legal deadlines."""

import uuid
from datetime import timedelta
from typing import List, Optional, Union

from privacy_sentinel.core.interfaces import (
    RequestStatus,
    RightsOperation,
    RightsRequest,
    RightsType,
)
from privacy_sentinel.core.validation import (
    NotFoundError,
    StateTransitionError,
    ValidationError,
    require_text,
)
from privacy_sentinel.privacy.base import LedgerBackedManager
from privacy_sentinel.privacy.frameworks import (
    compliance_deadline_days,
    framework_for_jurisdiction,
    legal_citation,
)


# Completion tag per right; anything unlisted is a generic fulfilment.
COMPLETION_OPERATIONS = {
    RightsType.ACCESS: RightsOperation.ACCESS_PROVIDED,
    RightsType.RECTIFICATION: RightsOperation.RECTIFICATION_COMPLETED,
    RightsType.ERASURE: RightsOperation.ERASURE_COMPLETED,
}


class PrivacyRightsHandler(LedgerBackedManager):
    """Tracks rights requests through pending -> processing -> completed | rejected."""

    manager_name = "PrivacyRightsHandler"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.default_jurisdiction = self.config.default_jurisdiction
        self._requests = {}

    def init(self, topic_id: Optional[str] = None, default_jurisdiction: Optional[str] = None) -> None:
        """Bind the rights topic and, optionally, the jurisdiction used when a request names none."""
        with self._lock:
            if default_jurisdiction:
                self.default_jurisdiction = default_jurisdiction
            super().init(topic_id)

    def submit_request(self,
                       user_id: str,
                       request_type: Union[RightsType, str],
                       jurisdiction: Optional[str] = None,
                       legal_basis: Optional[str] = None,
                       verification_method: str = "email_verification",
                       fulfillment_method: str = "secure_download",
                       response_method: str = "email",
                       expected_completion_days: Optional[int] = None) -> RightsRequest:
        """File a rights request; the deadline follows the jurisdiction's framework unless overridden."""
        user_id = require_text(user_id, "user_id")
        if isinstance(request_type, str):
            try:
                request_type = RightsType(request_type)
            except ValueError:
                raise ValidationError("unknown rights type", field="request_type", value=request_type)
        if expected_completion_days is not None and expected_completion_days < 0:
            raise ValidationError("must be non-negative", field="expected_completion_days",
                                  value=expected_completion_days)

        with self._lock:
            self._require_initialized()

            jurisdiction = jurisdiction or self.default_jurisdiction
            framework = framework_for_jurisdiction(jurisdiction)
            deadline_days = expected_completion_days
            if deadline_days is None:
                deadline_days = compliance_deadline_days(framework, request_type)
            legal_basis = legal_basis or legal_citation(request_type, framework)

            now = self._now()
            request_id = f"req_{uuid.uuid4()}"

            request = RightsRequest(
                request_id=request_id,
                user_id=user_id,
                agent_id=self.operator_id,
                request_type=request_type,
                jurisdiction=jurisdiction,
                framework=framework,
                legal_basis=legal_basis,
                request_timestamp=now,
                expected_completion=now + timedelta(days=deadline_days),
                verification_method=verification_method,
                fulfillment_method=fulfillment_method,
                response_method=response_method,
                topic_id=self.topic_id,
            )

            message = self.formatter.build_rights_message(
                RightsOperation.RIGHTS_REQUEST,
                timestamp=now,
                request_id=request_id,
                user_id=user_id,
                request_type=request_type,
                jurisdiction=jurisdiction,
                legal_basis=legal_basis,
                verification_method=verification_method,
                fulfillment_method=fulfillment_method,
                expected_completion=request.expected_completion,
                m=f"Privacy rights request ({request_type.value}) from user {user_id}, {legal_basis}",
            )
            ack = self._emit(message)

            if ack:
                request.sequence_number = ack.sequence_number
            self._requests[request_id] = request

        self.logger.info(
            f"Submitted {request_type.value} request {request_id} for user {user_id}, "
            f"due in {deadline_days} days"
        )
        return request

    def process_request(self, request_id: str) -> RightsRequest:
        """Move a pending request to processing. Already processing is left as is."""
        with self._lock:
            self._require_initialized()
            request = self._requests.get(request_id)
            if request is None:
                raise NotFoundError("Rights request", request_id)
            if request.status.is_terminal:
                raise NotFoundError("Open rights request", request_id)

            if request.status == RequestStatus.PENDING:
                request.status = RequestStatus.PROCESSING
                self.logger.info(f"Processing rights request {request_id}")

            return request

    def complete_request(self, request_id: str, resolution_note: Optional[str] = None) -> RightsRequest:
        """Fulfil a request, emitting the completion tag that matches its type."""
        with self._lock:
            self._require_initialized()
            request = self._get_open_request(request_id)

            now = self._now()
            operation = COMPLETION_OPERATIONS.get(request.request_type, RightsOperation.RIGHTS_FULFILLED)
            message = self.formatter.build_rights_message(
                operation,
                timestamp=now,
                request_id=request_id,
                user_id=request.user_id,
                request_type=request.request_type,
                fulfillment_method=request.fulfillment_method,
                resolution_note=resolution_note,
                m=f"Rights request {request_id} fulfilled via {request.fulfillment_method}",
            )
            ack = self._emit(message)

            request.status = RequestStatus.COMPLETED
            request.actual_completion = now
            if resolution_note:
                request.resolution_note = resolution_note
            if ack:
                request.sequence_number = ack.sequence_number

        self.logger.info(f"Completed rights request {request_id} ({operation.value})")
        return request

    def reject_request(self, request_id: str, reason: str) -> RightsRequest:
        """Reject a request with a reason. Nothing is written to the topic."""
        reason = require_text(reason, "reason", "Rejection reason is required").strip()

        with self._lock:
            self._require_initialized()
            request = self._get_open_request(request_id)

            request.status = RequestStatus.REJECTED
            request.actual_completion = self._now()
            request.resolution_note = reason

        self.logger.warning(f"Rejected rights request {request_id}: {reason}")
        return request

    def get_request(self, request_id: str) -> Optional[RightsRequest]:
        with self._lock:
            return self._requests.get(request_id)

    def get_request_status(self, request_id: str) -> Optional[RequestStatus]:
        with self._lock:
            request = self._requests.get(request_id)
            return request.status if request else None

    def list_by_user(self, user_id: str) -> List[RightsRequest]:
        with self._lock:
            return [r for r in self._requests.values() if r.user_id == user_id]

    def list_pending(self) -> List[RightsRequest]:
        """Requests still awaiting an answer (pending or processing)."""
        with self._lock:
            return [r for r in self._requests.values() if not r.status.is_terminal]

    def all_requests(self) -> List[RightsRequest]:
        with self._lock:
            return list(self._requests.values())

    def _get_open_request(self, request_id: str) -> RightsRequest:
        request = self._requests.get(request_id)
        if request is None:
            raise NotFoundError("Rights request", request_id)
        if request.status.is_terminal:
            raise StateTransitionError(
                f"Rights request {request_id} is already {request.status.value}",
                identifier=request_id,
                state=request.status.value,
            )
        return request
