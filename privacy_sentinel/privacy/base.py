"""Shared plumbing for managers that record their state changes on a ledger topic."""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from privacy_sentinel.core.interfaces import MessageSink, SubmitAck
from privacy_sentinel.core.timeutils import Clock, utc_now
from privacy_sentinel.core.validation import ManagerNotInitializedError, MessageSinkError
from privacy_sentinel.ledger.formatter import LedgerMessageFormatter
from privacy_sentinel.ledger.sink import as_message_sink
from privacy_sentinel.models.config import EngineConfiguration


class LedgerBackedManager:
    """Base class owning the topic binding, message log and lock of a manager.

    Messages are submitted before they are appended to the log, so a sink
    failure leaves both the log and the caller-visible records untouched.
    Without a sink or topic id the message is only logged.
    """

    manager_name = "Manager"

    def __init__(self,
                 config: Optional[EngineConfiguration] = None,
                 sink: Optional[MessageSink] = None,
                 clock: Optional[Clock] = None):
        self.config = config or EngineConfiguration()
        self.sink = as_message_sink(sink)
        self.clock = clock or utc_now
        self.formatter = LedgerMessageFormatter(self.config.operator_id, self.clock)
        self.logger = logging.getLogger(self.__class__.__module__)

        self.topic_id: Optional[str] = None
        self._initialized = False
        self._message_log: List[str] = []
        self._lock = threading.RLock()

    @property
    def operator_id(self) -> str:
        return self.config.operator_id

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self, topic_id: Optional[str] = None) -> None:
        """Bind the manager to its topic. Calling it again rebinds."""
        with self._lock:
            self.topic_id = topic_id
            self._initialized = True
        self.logger.debug(f"{self.manager_name} initialized on topic {topic_id}")

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise ManagerNotInitializedError(self.manager_name)

    def _now(self) -> datetime:
        return self.clock()

    def _emit(self, message: Dict[str, Any]) -> Optional[SubmitAck]:
        """Serialize, submit and log a message. Caller must hold the lock."""
        serialized = self.formatter.serialize(message)
        ack = None

        if self.sink is not None and self.topic_id:
            try:
                ack = self.sink.submit_message(self.topic_id, serialized)
            except Exception as e:
                self.logger.error(f"Failed to submit {message.get('op')} message to topic {self.topic_id}: {e}")
                raise MessageSinkError(
                    f"Sink rejected {message.get('op')} message: {e}",
                    topic_id=self.topic_id,
                    cause=e,
                ) from e

        self._message_log.append(serialized)
        return ack

    def get_message_log(self) -> List[str]:
        """Emitted messages as JSON strings, in emission order."""
        with self._lock:
            return list(self._message_log)
