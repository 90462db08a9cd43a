"""Builds, serializes and validates hcs-19 ledger messages."""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from privacy_sentinel.core.interfaces import (
    PROTOCOL_TAG,
    ConsentOperation,
    ProcessingOperation,
    RightsOperation,
    AuditOperation,
)
from privacy_sentinel.core.timeutils import Clock, utc_now, to_iso


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_iso(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class LedgerMessageFormatter:
    """Builds protocol messages stamped with the operator account id."""

    def __init__(self, operator_id: str, clock: Optional[Clock] = None):
        self.operator_id = operator_id
        self.clock = clock or utc_now

    def _envelope(self, op: Enum, id_field: str, timestamp: Optional[datetime],
                  fields: Dict[str, Any]) -> Dict[str, Any]:
        message: Dict[str, Any] = {
            'p': PROTOCOL_TAG,
            'op': op.value,
            'operator_id': self.operator_id,
            'timestamp': to_iso(timestamp or self.clock()),
            'm': '',
            id_field: '',
        }
        message.update(fields)
        return message

    def build_consent_message(self, op: ConsentOperation, timestamp: Optional[datetime] = None,
                              **fields: Any) -> Dict[str, Any]:
        """Build a consent topic message."""
        fields.setdefault('user_id', '')
        return self._envelope(op, 'consent_id', timestamp, fields)

    def build_processing_message(self, op: ProcessingOperation, timestamp: Optional[datetime] = None,
                                 **fields: Any) -> Dict[str, Any]:
        """Build a data processing topic message."""
        return self._envelope(op, 'processing_id', timestamp, fields)

    def build_rights_message(self, op: RightsOperation, timestamp: Optional[datetime] = None,
                             **fields: Any) -> Dict[str, Any]:
        """Build a privacy rights topic message."""
        return self._envelope(op, 'request_id', timestamp, fields)

    def build_audit_message(self, op: AuditOperation, timestamp: Optional[datetime] = None,
                            **fields: Any) -> Dict[str, Any]:
        """Build a compliance audit topic message."""
        return self._envelope(op, 'audit_id', timestamp, fields)

    def build_retention_message(self, timestamp: Optional[datetime] = None,
                                **fields: Any) -> Dict[str, Any]:
        """Build a retention check message; it carries no audit id."""
        message = {
            'p': PROTOCOL_TAG,
            'op': AuditOperation.RETENTION_CHECK.value,
            'operator_id': self.operator_id,
            'timestamp': to_iso(timestamp or self.clock()),
            'm': '',
        }
        message.update(fields)
        return message

    @staticmethod
    def serialize(message: Dict[str, Any]) -> str:
        """Serialize to compact JSON, dropping keys whose value is None."""
        payload = {key: value for key, value in message.items() if value is not None}
        return json.dumps(payload, separators=(',', ':'), default=_json_default, ensure_ascii=False)

    @staticmethod
    def deserialize(raw: str) -> Optional[Dict[str, Any]]:
        """Parse a topic message; None when it is malformed or not an hcs-19 message."""
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError):
            return None

        if isinstance(parsed, dict) and parsed.get('p') == PROTOCOL_TAG \
                and parsed.get('op') and parsed.get('operator_id'):
            return parsed
        return None

    @staticmethod
    def validate(message: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """Check the envelope fields every message must carry."""
        errors = []

        if message.get('p') != PROTOCOL_TAG:
            errors.append(f'Protocol must be "{PROTOCOL_TAG}"')
        if not message.get('op'):
            errors.append("Operation (op) is required")
        if not message.get('operator_id'):
            errors.append("Operator ID is required")
        if not message.get('timestamp'):
            errors.append("Timestamp is required")

        return len(errors) == 0, errors
