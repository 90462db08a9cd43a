"""Facade that wires the four privacy managers to one sink and one configuration."""

import logging
from typing import Dict, List, Optional

from privacy_sentinel.core.interfaces import AuditReport, MessageSink, RetentionReport
from privacy_sentinel.core.timeutils import Clock, utc_now
from privacy_sentinel.ledger.sink import as_message_sink
from privacy_sentinel.ledger.topics import TopicSet, TopicSetup
from privacy_sentinel.models.config import EngineConfiguration
from privacy_sentinel.privacy.audit import ComplianceAuditor
from privacy_sentinel.privacy.consent import ConsentManager
from privacy_sentinel.privacy.processing import DataProcessingRegistry
from privacy_sentinel.privacy.rights import PrivacyRightsHandler


class PrivacyComplianceEngine:
    """Consent, processing, rights and audit managers for one operator.

    Each manager is bound to its own topic from a freshly created topic set.
    """

    def __init__(self,
                 config: Optional[EngineConfiguration] = None,
                 sink: Optional[MessageSink] = None,
                 clock: Optional[Clock] = None):
        self.config = config or EngineConfiguration()
        self.sink = as_message_sink(sink)
        self.clock = clock or utc_now
        self.logger = logging.getLogger(__name__)

        self.consent_manager = ConsentManager(self.config, self.sink, self.clock)
        self.processing_registry = DataProcessingRegistry(self.config, self.sink, self.clock)
        self.rights_handler = PrivacyRightsHandler(self.config, self.sink, self.clock)
        self.auditor = ComplianceAuditor(self.config, self.sink, self.clock)

        self.topics: Optional[TopicSet] = None

    def init(self, jurisdiction: Optional[str] = None, ttl: Optional[int] = None) -> TopicSet:
        """Create the topic set and initialise every manager on it."""
        jurisdiction = jurisdiction or self.config.default_jurisdiction
        topic_setup = TopicSetup(
            self.config.operator_id,
            sink=self.sink,
            default_ttl=self.config.topic_ttl_seconds,
            clock=self.clock,
        )
        self.topics = topic_setup.create_topic_set(jurisdiction, ttl)

        self.consent_manager.init(self.topics.consent_topic_id, jurisdiction)
        self.processing_registry.init(self.topics.processing_topic_id)
        self.rights_handler.init(self.topics.rights_topic_id, jurisdiction)
        self.auditor.init(self.topics.audit_topic_id)

        self.logger.info(f"Privacy compliance engine ready for {self.config.operator_id} in {jurisdiction}")
        return self.topics

    def run_compliance_check(self) -> AuditReport:
        return self.auditor.run_compliance_check(
            consent_manager=self.consent_manager,
            processing_registry=self.processing_registry,
            rights_registry=self.rights_handler,
        )

    def run_retention_check(self) -> RetentionReport:
        return self.auditor.run_retention_check(self.consent_manager)

    def message_logs(self) -> Dict[str, List[str]]:
        """Emitted messages per manager."""
        return {
            'consent': self.consent_manager.get_message_log(),
            'processing': self.processing_registry.get_message_log(),
            'rights': self.rights_handler.get_message_log(),
            'audit': self.auditor.get_message_log(),
        }
