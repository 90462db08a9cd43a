"""Ledger sinks that accept serialized hcs-19 messages."""

import logging
import threading
import uuid
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Union

from privacy_sentinel.core.interfaces import MessageSink, SubmitAck
from privacy_sentinel.core.timeutils import Clock, utc_now


logger = logging.getLogger(__name__)


class InMemoryTopicSink(MessageSink):
    """Process-local sink that numbers messages per topic starting at 1."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utc_now
        self._lock = threading.Lock()
        self._topics: Dict[str, str] = {}
        self._messages: Dict[str, List[str]] = defaultdict(list)

    def create_topic(self, memo: str) -> str:
        with self._lock:
            topic_id = f"0.0.{len(self._topics) + 1000}"
            self._topics[topic_id] = memo

        logger.debug(f"Created topic {topic_id} with memo {memo}")
        return topic_id

    def submit_message(self, topic_id: str, message: str) -> SubmitAck:
        with self._lock:
            messages = self._messages[topic_id]
            messages.append(message)
            sequence_number = len(messages)

        return SubmitAck(
            topic_id=topic_id,
            sequence_number=sequence_number,
            consensus_timestamp=self.clock()
        )

    def get_messages(self, topic_id: str) -> List[str]:
        """Messages submitted to a topic, in submission order."""
        with self._lock:
            return list(self._messages.get(topic_id, []))

    def get_memo(self, topic_id: str) -> Optional[str]:
        return self._topics.get(topic_id)

    @property
    def topics(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._topics)


class CallableSink(MessageSink):
    """Adapts a plain ``(topic_id, message) -> ack`` function into a sink."""

    def __init__(self, submit: Callable[[str, str], Union[SubmitAck, dict, None]],
                 clock: Optional[Clock] = None):
        self._submit = submit
        self.clock = clock or utc_now
        self._sequence: Dict[str, int] = defaultdict(int)

    def create_topic(self, memo: str) -> str:
        return f"0.0.{uuid.uuid4().int % 10 ** 8}"

    def submit_message(self, topic_id: str, message: str) -> SubmitAck:
        result = self._submit(topic_id, message)

        if isinstance(result, SubmitAck):
            return result

        self._sequence[topic_id] += 1
        if isinstance(result, dict):
            return SubmitAck(
                topic_id=topic_id,
                sequence_number=int(result.get('sequence_number', self._sequence[topic_id])),
                consensus_timestamp=result.get('consensus_timestamp') or self.clock()
            )

        return SubmitAck(
            topic_id=topic_id,
            sequence_number=self._sequence[topic_id],
            consensus_timestamp=self.clock()
        )


def as_message_sink(candidate: Union[MessageSink, Callable[[str, str], object], None]) -> Optional[MessageSink]:
    """Return a MessageSink for a sink instance or a submit callable."""
    if candidate is None or isinstance(candidate, MessageSink):
        return candidate
    if callable(candidate):
        return CallableSink(candidate)
    raise TypeError(f"Expected a MessageSink or callable, got {type(candidate).__name__}")


__all__ = [
    "MessageSink",
    "SubmitAck",
    "InMemoryTopicSink",
    "CallableSink",
    "as_message_sink",
]
