"""Utility modules for Privacy Sentinel."""

from .config_loader import ConfigLoader
from .logging_config import (
    LoggingConfig,
    PrivacyAuditHandler,
    PrivacySentinelFormatter,
    get_logger,
    setup_logging,
)

__all__ = [
    "ConfigLoader",
    "LoggingConfig",
    "PrivacyAuditHandler",
    "PrivacySentinelFormatter",
    "get_logger",
    "setup_logging",
]
