"""Topic memos and creation of the four privacy compliance topics.

Memo format: ``hcs-19:0:{ttl}:{type}:{account}:{jurisdiction}``
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional

from privacy_sentinel.core.interfaces import PROTOCOL_TAG, TopicType, MessageSink
from privacy_sentinel.core.timeutils import Clock, utc_now, to_iso
from privacy_sentinel.models.config import DEFAULT_TOPIC_TTL_SECONDS


logger = logging.getLogger(__name__)


@dataclass
class TopicMemo:
    """Parsed topic memo."""
    ttl: int
    topic_type: TopicType
    agent_account_id: str
    jurisdiction: str
    version: int = 0
    protocol: str = PROTOCOL_TAG


@dataclass
class TopicSet:
    """Topic ids for one agent and jurisdiction."""
    consent_topic_id: str
    processing_topic_id: str
    rights_topic_id: str
    audit_topic_id: str
    agent_id: str
    jurisdiction: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'consent_topic_id': self.consent_topic_id,
            'processing_topic_id': self.processing_topic_id,
            'rights_topic_id': self.rights_topic_id,
            'audit_topic_id': self.audit_topic_id,
            'agent_id': self.agent_id,
            'jurisdiction': self.jurisdiction,
            'created_at': to_iso(self.created_at)
        }


def build_topic_memo(topic_type: TopicType, agent_account_id: str, jurisdiction: str, ttl: int) -> str:
    return f"{PROTOCOL_TAG}:0:{ttl}:{int(topic_type)}:{agent_account_id}:{jurisdiction}"


def parse_topic_memo(memo: str) -> Optional[TopicMemo]:
    """Parse a memo string; None for malformed memos or unknown topic types."""
    parts = memo.split(':')
    if len(parts) != 6 or parts[0] != PROTOCOL_TAG:
        return None

    try:
        version = int(parts[1])
        ttl = int(parts[2])
        topic_type = TopicType(int(parts[3]))
    except ValueError:
        return None

    return TopicMemo(
        ttl=ttl,
        topic_type=topic_type,
        agent_account_id=parts[4],
        jurisdiction=parts[5],
        version=version,
    )


class TopicSetup:
    """Creates the consent, processing, rights and audit topics for an agent.

    Without a sink, placeholder ids of the form ``0.0.placeholder_<type>``
    are returned so managers can still be initialised.
    """

    def __init__(self, account_id: str, sink: Optional[MessageSink] = None,
                 default_ttl: int = DEFAULT_TOPIC_TTL_SECONDS, clock: Optional[Clock] = None):
        self.account_id = account_id
        self.sink = sink
        self.default_ttl = default_ttl
        self.clock = clock or utc_now

    def create_topic(self, topic_type: TopicType, jurisdiction: str, ttl: int) -> str:
        memo = build_topic_memo(topic_type, self.account_id, jurisdiction, ttl)

        if self.sink is not None:
            return self.sink.create_topic(memo)

        return f"0.0.placeholder_{int(topic_type)}"

    def create_topic_set(self, jurisdiction: str, ttl: Optional[int] = None) -> TopicSet:
        effective_ttl = ttl if ttl is not None else self.default_ttl

        topic_set = TopicSet(
            consent_topic_id=self.create_topic(TopicType.CONSENT_MANAGEMENT, jurisdiction, effective_ttl),
            processing_topic_id=self.create_topic(TopicType.DATA_PROCESSING, jurisdiction, effective_ttl),
            rights_topic_id=self.create_topic(TopicType.PRIVACY_RIGHTS, jurisdiction, effective_ttl),
            audit_topic_id=self.create_topic(TopicType.COMPLIANCE_AUDIT, jurisdiction, effective_ttl),
            agent_id=self.account_id,
            jurisdiction=jurisdiction,
            created_at=self.clock(),
        )

        logger.info(f"Created topic set for {self.account_id} in {jurisdiction}")
        return topic_set
