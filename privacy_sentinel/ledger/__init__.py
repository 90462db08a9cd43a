"""Ledger layer: message sinks, message formatting and topic setup."""

from .sink import MessageSink, SubmitAck, InMemoryTopicSink, CallableSink, as_message_sink
from .formatter import LedgerMessageFormatter
from .topics import TopicMemo, TopicSet, TopicSetup, build_topic_memo, parse_topic_memo

__all__ = [
    "MessageSink",
    "SubmitAck",
    "InMemoryTopicSink",
    "CallableSink",
    "as_message_sink",
    "LedgerMessageFormatter",
    "TopicMemo",
    "TopicSet",
    "TopicSetup",
    "build_topic_memo",
    "parse_topic_memo",
]
