"""Error types and field validators for privacy records."""

from typing import List, Any, Optional, Tuple

from privacy_sentinel.core.interfaces import (
    GrantConsentRequest,
    RegisterProcessingActivityRequest,
    ProcessingBasis,
)
from privacy_sentinel.core.timeutils import parse_retention_period


class PrivacyComplianceError(Exception):
    """Base exception for privacy compliance errors."""
    pass


class ValidationError(PrivacyComplianceError):
    """Caller supplied a missing or malformed field."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        self.message = message
        self.field = field
        self.value = value
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the validation error message."""
        if self.field:
            return f"Validation error in field '{self.field}': {self.message}"
        return f"Validation error: {self.message}"


class NotFoundError(PrivacyComplianceError):
    """Referenced identifier does not exist in the owning manager."""

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class StateTransitionError(PrivacyComplianceError):
    """Operation is not allowed from the record's current state."""

    def __init__(self, message: str, identifier: Optional[str] = None, state: Optional[str] = None):
        self.identifier = identifier
        self.state = state
        super().__init__(message)


class ManagerNotInitializedError(PrivacyComplianceError):
    """A manager was used before init() was called."""

    def __init__(self, manager: str):
        self.manager = manager
        super().__init__(f"{manager} is not initialized; call init() first")


class MessageSinkError(PrivacyComplianceError):
    """The ledger sink rejected or failed to accept a message."""

    def __init__(self, message: str, topic_id: Optional[str] = None, cause: Optional[Exception] = None):
        self.topic_id = topic_id
        self.cause = cause
        super().__init__(message)


def require_text(value: Optional[str], field: str, message: Optional[str] = None) -> str:
    """Return the value when it is a non-blank string, else raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message or f"{field} is required", field=field, value=value)
    return value


def require_non_empty_list(value: Optional[List[str]], field: str) -> List[str]:
    """Return a copy of a non-empty list, else raise ValidationError."""
    if not isinstance(value, (list, tuple)) or len(value) == 0:
        raise ValidationError(f"{field} must be a non-empty array", field=field, value=value)
    return list(value)


def require_legal_basis(value: Any, field: str = "legal_basis") -> Any:
    """Convert a lawful-basis string to ProcessingBasis. Other values pass through unchanged."""
    if isinstance(value, str):
        try:
            return ProcessingBasis(value)
        except ValueError:
            raise ValidationError("unknown lawful basis", field=field, value=value)
    return value


def require_retention_days(period: Optional[str], field: str = "retention_period") -> int:
    """Parse a retention period into a positive number of days."""
    days = parse_retention_period(period)
    if days is None or days <= 0:
        raise ValidationError(
            "must look like '<n>_<day|week|month|year>[s]' with n > 0",
            field=field,
            value=period,
        )
    return days


class RequestValidator:
    """Validates manager input records and collects every problem found."""

    @classmethod
    def validate_grant_request(cls, request: GrantConsentRequest) -> List[Tuple[str, str]]:
        """Validate a consent grant request and return (field, message) errors."""
        errors = []

        if not request.user_id or not str(request.user_id).strip():
            errors.append(("user_id", "user_id is required"))

        if not request.purposes:
            errors.append(("purposes", "purposes must be a non-empty array"))

        if not request.data_types:
            errors.append(("data_types", "data_types must be a non-empty array"))

        if not isinstance(request.legal_basis, ProcessingBasis):
            errors.append(("legal_basis", f"legal_basis must be a ProcessingBasis, got {request.legal_basis!r}"))

        if request.retention_period is not None and not parse_retention_period(request.retention_period):
            errors.append((
                "retention_period",
                f"retention_period is not a valid period: {request.retention_period}",
            ))

        return errors

    @classmethod
    def validate_processing_request(cls, request: RegisterProcessingActivityRequest) -> List[Tuple[str, str]]:
        """Validate a processing registration request and return (field, message) errors."""
        errors = []

        if not request.purpose or not request.purpose.strip():
            errors.append(("purpose", "Processing purpose is required"))

        if not request.data_categories:
            errors.append(("data_categories", "data_categories must be a non-empty array"))

        if not request.controller_id or not request.controller_id.strip():
            errors.append(("controller_id", "controller_id is required"))

        if not request.user_id or not request.user_id.strip():
            errors.append(("user_id", "user_id is required"))

        if not isinstance(request.legal_basis, ProcessingBasis):
            errors.append(("legal_basis", f"legal_basis must be a ProcessingBasis, got {request.legal_basis!r}"))

        return errors

    @classmethod
    def first_error(cls, errors: List[Tuple[str, str]]) -> Optional[ValidationError]:
        """Turn the first collected problem into a ValidationError."""
        if not errors:
            return None
        field, message = errors[0]
        return ValidationError(message, field=field)
