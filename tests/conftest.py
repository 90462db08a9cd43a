"""Pytest configuration and fixtures for Privacy Sentinel tests."""

import json
import os
from datetime import datetime, timedelta, timezone

import pytest

from privacy_sentinel.core.interfaces import (
    GrantConsentRequest,
    ProcessingBasis,
    RegisterProcessingActivityRequest,
)
from privacy_sentinel.ledger.sink import InMemoryTopicSink
from privacy_sentinel.models.config import EngineConfiguration
from privacy_sentinel.privacy.audit import ComplianceAuditor
from privacy_sentinel.privacy.consent import ConsentManager
from privacy_sentinel.privacy.processing import DataProcessingRegistry
from privacy_sentinel.privacy.rights import PrivacyRightsHandler


OPERATOR_ID = "0.0.4242"

START_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime = START_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def decoded_log():
    """Decode a manager's message log into dicts."""
    def decode(manager):
        return [json.loads(message) for message in manager.get_message_log()]
    return decode


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep PRIVACY_SENTINEL_* variables from leaking into configuration defaults."""
    for key in list(os.environ):
        if key.startswith("PRIVACY_SENTINEL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return EngineConfiguration(operator_id=OPERATOR_ID)


@pytest.fixture
def sink(clock):
    return InMemoryTopicSink(clock=clock)


@pytest.fixture
def consent_manager(config, sink, clock):
    manager = ConsentManager(config, sink, clock)
    manager.init(sink.create_topic("consent"), "EU")
    return manager


@pytest.fixture
def processing_registry(config, sink, clock):
    registry = DataProcessingRegistry(config, sink, clock)
    registry.init(sink.create_topic("processing"))
    return registry


@pytest.fixture
def rights_handler(config, sink, clock):
    handler = PrivacyRightsHandler(config, sink, clock)
    handler.init(sink.create_topic("rights"))
    return handler


@pytest.fixture
def auditor(config, sink, clock):
    compliance_auditor = ComplianceAuditor(config, sink, clock)
    compliance_auditor.init(sink.create_topic("audit"))
    return compliance_auditor


@pytest.fixture
def grant_request():
    """A valid consent grant for user u1."""
    return GrantConsentRequest(
        user_id="u1",
        purposes=["analytics", "marketing"],
        data_types=["email", "usage_data"],
        jurisdiction="EU",
        retention_period="1_year",
    )


@pytest.fixture
def processing_request():
    """A valid processing registration for controller ctrl-1."""
    return RegisterProcessingActivityRequest(
        controller_id="ctrl-1",
        user_id="u1",
        purpose="analytics",
        data_categories=["usage_data", "email"],
        legal_basis=ProcessingBasis.CONSENT,
        security_measures=["encryption"],
    )
