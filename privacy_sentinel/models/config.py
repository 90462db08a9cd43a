"""Configuration data models for the Privacy Sentinel system."""

import os
from dataclasses import dataclass, field, fields
from typing import Dict, Any

from privacy_sentinel.core.timeutils import parse_retention_period


ENV_PREFIX = "PRIVACY_SENTINEL_"

DEFAULT_TOPIC_TTL_SECONDS = 7776000  # 90 days


def _get_env_var(key: str, default: Any, var_type: type = str) -> Any:
    """Get environment variable with type conversion and default fallback."""
    env_key = f"{ENV_PREFIX}{key.upper()}"
    value = os.getenv(env_key)

    if value is None:
        return default

    try:
        if var_type == bool:
            return value.lower() in ('true', '1', 'yes', 'on')
        elif var_type == int:
            return int(value)
        else:
            return value
    except ValueError as e:
        raise ValueError(f"Invalid value for {env_key}: {value}. Error: {e}")


@dataclass
class EngineConfiguration:
    """Engine-wide settings with environment variable support."""
    operator_id: str = field(default_factory=lambda: _get_env_var("operator_id", "0.0.0"))
    default_jurisdiction: str = field(default_factory=lambda: _get_env_var("default_jurisdiction", "EU"))
    default_retention_period: str = field(default_factory=lambda: _get_env_var("default_retention_period", "1_year"))
    overdue_request_penalty: int = field(default_factory=lambda: _get_env_var("overdue_request_penalty", 15, int))
    expired_consent_penalty: int = field(default_factory=lambda: _get_env_var("expired_consent_penalty", 10, int))
    retention_review_days: int = field(default_factory=lambda: _get_env_var("retention_review_days", 90, int))
    topic_ttl_seconds: int = field(default_factory=lambda: _get_env_var("topic_ttl_seconds", DEFAULT_TOPIC_TTL_SECONDS, int))

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_configuration()

    def _validate_configuration(self) -> None:
        """Validate configuration values."""
        errors = []

        if not self.operator_id or not self.operator_id.strip():
            errors.append("operator_id must not be empty")

        if not self.default_jurisdiction or not self.default_jurisdiction.strip():
            errors.append("default_jurisdiction must not be empty")

        if not parse_retention_period(self.default_retention_period):
            errors.append(f"default_retention_period is not a valid period: {self.default_retention_period}")

        if self.overdue_request_penalty < 0:
            errors.append("overdue_request_penalty must be non-negative")

        if self.expired_consent_penalty < 0:
            errors.append("expired_consent_penalty must be non-negative")

        if self.retention_review_days < 1:
            errors.append("retention_review_days must be at least 1")

        if self.topic_ttl_seconds < 1:
            errors.append("topic_ttl_seconds must be positive")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'operator_id': self.operator_id,
            'default_jurisdiction': self.default_jurisdiction,
            'default_retention_period': self.default_retention_period,
            'overdue_request_penalty': self.overdue_request_penalty,
            'expired_consent_penalty': self.expired_consent_penalty,
            'retention_review_days': self.retention_review_days,
            'topic_ttl_seconds': self.topic_ttl_seconds
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfiguration':
        """Create configuration from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
