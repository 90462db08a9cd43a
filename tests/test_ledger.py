"""Tests for ledger message formatting, topic memos and sinks."""

import json

import pytest

from privacy_sentinel.core.interfaces import (
    AuditOperation,
    ConsentOperation,
    ConsentStatus,
    RightsOperation,
    SubmitAck,
    TopicType,
)
from privacy_sentinel.core.validation import MessageSinkError
from privacy_sentinel.ledger.formatter import LedgerMessageFormatter
from privacy_sentinel.ledger.sink import CallableSink, as_message_sink
from privacy_sentinel.ledger.topics import TopicSetup, build_topic_memo, parse_topic_memo
from privacy_sentinel.privacy.rights import PrivacyRightsHandler


@pytest.fixture
def formatter(clock):
    return LedgerMessageFormatter("0.0.4242", clock)


class TestLedgerMessageFormatter:
    """Envelope construction and serialization."""

    def test_consent_envelope_defaults(self, formatter):
        message = formatter.build_consent_message(ConsentOperation.CONSENT_GRANTED)

        assert message == {
            'p': "hcs-19",
            'op': "consent_granted",
            'operator_id': "0.0.4242",
            'timestamp': "2024-03-01T12:00:00.000Z",
            'm': "",
            'consent_id': "",
            'user_id': "",
        }

    def test_fields_override_defaults(self, formatter):
        message = formatter.build_audit_message(
            AuditOperation.AUDIT_COMPLETED, audit_id="audit_1", m="done", compliance_score=90
        )

        assert message['audit_id'] == "audit_1"
        assert message['m'] == "done"
        assert message['compliance_score'] == 90

    def test_retention_message_has_no_id_field(self, formatter):
        message = formatter.build_retention_message(records_reviewed=3)

        assert message['op'] == "retention_check"
        assert set(message) == {'p', 'op', 'operator_id', 'timestamp', 'm', 'records_reviewed'}

    def test_serialize_is_compact_and_drops_none(self, formatter, clock):
        message = formatter.build_consent_message(
            ConsentOperation.CONSENT_WITHDRAWN,
            consent_id="consent_1",
            status=ConsentStatus.WITHDRAWN,
            expires_at=clock.now,
            revocation_reason=None,
        )

        raw = LedgerMessageFormatter.serialize(message)

        assert ", " not in raw and ": " not in raw
        parsed = json.loads(raw)
        assert parsed['status'] == "withdrawn"
        assert parsed['expires_at'] == "2024-03-01T12:00:00.000Z"
        assert 'revocation_reason' not in parsed

    def test_serialize_keeps_unicode(self):
        raw = LedgerMessageFormatter.serialize({'p': "hcs-19", 'm': "CCPA §1798.105"})

        assert "§" in raw

    def test_deserialize_round_trip(self, formatter):
        message = formatter.build_consent_message(ConsentOperation.CONSENT_GRANTED, consent_id="c1")

        assert LedgerMessageFormatter.deserialize(LedgerMessageFormatter.serialize(message)) == message

    @pytest.mark.parametrize("raw", [
        "not json",
        "[1, 2]",
        '{"p": "hcs-10", "op": "x", "operator_id": "0.0.1"}',
        '{"p": "hcs-19", "operator_id": "0.0.1"}',
    ])
    def test_deserialize_rejects_foreign_messages(self, raw):
        assert LedgerMessageFormatter.deserialize(raw) is None

    def test_validate_envelope(self, formatter):
        valid, errors = LedgerMessageFormatter.validate(
            formatter.build_rights_message(RightsOperation.RIGHTS_REQUEST)
        )
        assert valid is True
        assert errors == []

        valid, errors = LedgerMessageFormatter.validate({'p': "hcs-1"})
        assert valid is False
        assert errors == [
            'Protocol must be "hcs-19"',
            "Operation (op) is required",
            "Operator ID is required",
            "Timestamp is required",
        ]


class TestTopicMemos:
    """Topic memo encoding."""

    def test_build_memo(self):
        memo = build_topic_memo(TopicType.PRIVACY_RIGHTS, "0.0.4242", "EU", 7776000)

        assert memo == "hcs-19:0:7776000:2:0.0.4242:EU"

    def test_parse_memo(self):
        parsed = parse_topic_memo("hcs-19:0:3600:1:0.0.4242:US-CA")

        assert parsed.topic_type == TopicType.DATA_PROCESSING
        assert parsed.ttl == 3600
        assert parsed.agent_account_id == "0.0.4242"
        assert parsed.jurisdiction == "US-CA"

    @pytest.mark.parametrize("memo", [
        "hcs-19:0:3600:9:0.0.1:EU",
        "hcs-10:0:3600:1:0.0.1:EU",
        "hcs-19:0:soon:1:0.0.1:EU",
        "hcs-19:0:3600:1:0.0.1",
    ])
    def test_parse_malformed_memo(self, memo):
        assert parse_topic_memo(memo) is None


class TestTopicSetup:
    """Creation of the four topics."""

    def test_creates_topic_set_on_sink(self, sink, clock):
        topic_set = TopicSetup("0.0.4242", sink=sink, default_ttl=600, clock=clock).create_topic_set("EU")

        ids = [topic_set.consent_topic_id, topic_set.processing_topic_id,
               topic_set.rights_topic_id, topic_set.audit_topic_id]
        assert len(set(ids)) == 4
        assert sink.get_memo(topic_set.audit_topic_id) == "hcs-19:0:600:3:0.0.4242:EU"
        assert topic_set.to_dict()['created_at'] == "2024-03-01T12:00:00.000Z"

    def test_explicit_ttl_overrides_default(self, sink):
        topic_set = TopicSetup("0.0.4242", sink=sink, default_ttl=600).create_topic_set("IN", ttl=60)

        assert sink.get_memo(topic_set.consent_topic_id) == "hcs-19:0:60:0:0.0.4242:IN"

    def test_placeholders_without_sink(self):
        topic_set = TopicSetup("0.0.4242").create_topic_set("EU")

        assert topic_set.consent_topic_id == "0.0.placeholder_0"
        assert topic_set.audit_topic_id == "0.0.placeholder_3"


class TestSinks:
    """In-memory and callable sinks."""

    def test_in_memory_sequence_per_topic(self, sink):
        first = sink.create_topic("memo-a")
        second = sink.create_topic("memo-b")

        acks = [sink.submit_message(first, "a1"), sink.submit_message(first, "a2"),
                sink.submit_message(second, "b1")]

        assert [ack.sequence_number for ack in acks] == [1, 2, 1]
        assert acks[1].transaction_id == f"{first}@2"
        assert sink.get_messages(first) == ["a1", "a2"]
        assert sink.topics == {first: "memo-a", second: "memo-b"}

    def test_callable_sink_accepts_dict_ack(self, clock):
        received = []

        def submit(topic_id, message):
            received.append((topic_id, message))
            return {'sequence_number': 41}

        sink = as_message_sink(submit)

        ack = sink.submit_message("0.0.7", "payload")
        assert isinstance(sink, CallableSink)
        assert ack.sequence_number == 41
        assert received == [("0.0.7", "payload")]

    def test_callable_sink_numbers_when_nothing_returned(self):
        sink = CallableSink(lambda topic_id, message: None)

        assert [sink.submit_message("0.0.7", "m").sequence_number for _ in range(3)] == [1, 2, 3]

    def test_callable_sink_passes_ack_through(self, clock):
        expected = SubmitAck("0.0.7", 9, clock.now)

        assert CallableSink(lambda topic_id, message: expected).submit_message("0.0.7", "m") is expected

    def test_rejects_non_sink(self):
        with pytest.raises(TypeError):
            as_message_sink(42)

    def test_manager_wraps_callable_failures(self, config, clock):
        def submit(topic_id, message):
            raise TimeoutError("consensus timeout")

        handler = PrivacyRightsHandler(config, submit, clock)
        handler.init("0.0.7")

        with pytest.raises(MessageSinkError) as exc_info:
            handler.submit_request("u1", "access", "EU")

        assert exc_info.value.topic_id == "0.0.7"
        assert isinstance(exc_info.value.cause, TimeoutError)
        assert handler.all_requests() == []
