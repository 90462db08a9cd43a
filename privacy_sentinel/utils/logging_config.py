"""Logging configuration for Privacy Sentinel."""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional


PRIVACY_KEYWORDS = (
    'consent', 'withdraw', 'revoke', 'erasure', 'deletion', 'deleted',
    'violation', 'overdue', 'rights request', 'rejected',
)


class PrivacySentinelFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def __init__(self, include_context: bool = True):
        self.include_context = include_context
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_context and hasattr(record, 'context'):
            log_entry["context"] = record.context

        if hasattr(record, 'user_id'):
            log_entry["user_id"] = record.user_id

        if hasattr(record, 'request_id'):
            log_entry["request_id"] = record.request_id

        return json.dumps(log_entry, default=str)


class PrivacyAuditHandler(logging.Handler):
    """Copies privacy-relevant records (consent, erasure, violations...) to a rotating audit file."""

    def __init__(self, audit_file: str):
        super().__init__()
        self.audit_file = Path(audit_file)
        self.audit_file.parent.mkdir(parents=True, exist_ok=True)

        self.file_handler = logging.handlers.RotatingFileHandler(
            self.audit_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        self.file_handler.setFormatter(PrivacySentinelFormatter())

    @staticmethod
    def is_privacy_event(record: logging.LogRecord) -> bool:
        if getattr(record, 'privacy_event', False):
            return True
        message_lower = record.getMessage().lower()
        return any(keyword in message_lower for keyword in PRIVACY_KEYWORDS)

    def emit(self, record: logging.LogRecord) -> None:
        if self.is_privacy_event(record):
            self.file_handler.emit(record)

    def close(self) -> None:
        self.file_handler.close()
        super().close()


class LoggingConfig:
    """Root logger setup: console, general log file, error log and privacy audit log."""

    def __init__(self,
                 log_level: str = "INFO",
                 log_dir: Optional[str] = None,
                 enable_console: bool = True,
                 enable_file: bool = False,
                 enable_audit: bool = False,
                 structured_logging: bool = True):

        self.log_level = getattr(logging, log_level.upper())
        self.log_dir = Path(log_dir) if log_dir else Path.cwd() / "logs"
        self.enable_console = enable_console
        self.enable_file = enable_file
        self.enable_audit = enable_audit
        self.structured_logging = structured_logging

        if self.enable_file or self.enable_audit:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_logging()

    def _setup_logging(self) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        if self.enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(self.log_level)

            if self.structured_logging:
                console_handler.setFormatter(PrivacySentinelFormatter())
            else:
                console_handler.setFormatter(logging.Formatter(
                    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
                ))

            root_logger.addHandler(console_handler)

        if self.enable_file:
            file_handler = logging.handlers.RotatingFileHandler(
                self.log_dir / "privacy_sentinel.log",
                maxBytes=20 * 1024 * 1024,  # 20MB
                backupCount=10
            )
            file_handler.setLevel(self.log_level)
            file_handler.setFormatter(PrivacySentinelFormatter())
            root_logger.addHandler(file_handler)

            error_handler = logging.handlers.RotatingFileHandler(
                self.log_dir / "errors.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(PrivacySentinelFormatter())
            root_logger.addHandler(error_handler)

        if self.enable_audit:
            audit_handler = PrivacyAuditHandler(str(self.log_dir / "privacy_audit.log"))
            audit_handler.setLevel(logging.INFO)
            root_logger.addHandler(audit_handler)

    def log_privacy_event(self,
                          event_type: str,
                          description: str,
                          severity: str = "INFO",
                          user_id: Optional[str] = None,
                          request_id: Optional[str] = None,
                          context: Optional[Dict[str, Any]] = None) -> None:
        """Log an event that always reaches the privacy audit log."""
        logger = logging.getLogger("privacy_sentinel.audit")

        record = logger.makeRecord(
            name=logger.name,
            level=getattr(logging, severity.upper()),
            fn="",
            lno=0,
            msg=f"Privacy Event: {event_type} - {description}",
            args=(),
            exc_info=None
        )

        record.privacy_event = True
        record.event_type = event_type
        if user_id is not None:
            record.user_id = user_id
        if request_id is not None:
            record.request_id = request_id
        record.context = context or {}

        logger.handle(record)

    def get_log_stats(self) -> Dict[str, Any]:
        return {
            "log_level": logging.getLevelName(self.log_level),
            "log_directory": str(self.log_dir),
            "handlers_enabled": {
                "console": self.enable_console,
                "file": self.enable_file,
                "audit": self.enable_audit
            },
            "structured_logging": self.structured_logging
        }


_logging_config: Optional[LoggingConfig] = None


def setup_logging(config: Optional[Dict[str, Any]] = None) -> LoggingConfig:
    """Set up global logging configuration."""
    global _logging_config

    _logging_config = LoggingConfig(**(config or {}))
    return _logging_config


def get_logging_config() -> LoggingConfig:
    global _logging_config
    if _logging_config is None:
        _logging_config = setup_logging()
    return _logging_config


def get_logger(name: str) -> logging.Logger:
    """Get a logger, configuring logging on first use."""
    get_logging_config()
    return logging.getLogger(name)


def log_privacy_event(event_type: str, description: str, **kwargs) -> None:
    get_logging_config().log_privacy_event(event_type, description, **kwargs)
