"""CLI commands for framework lookups and the end-to-end compliance demo."""

import json
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.table import Table

from privacy_sentinel.core.interfaces import (
    GrantConsentRequest,
    ProcessingBasis,
    RegisterProcessingActivityRequest,
    RightsType,
)
from privacy_sentinel.core.timeutils import utc_now
from privacy_sentinel.core.validation import PrivacyComplianceError
from privacy_sentinel.ledger.sink import InMemoryTopicSink
from privacy_sentinel.models.config import EngineConfiguration
from privacy_sentinel.privacy.engine import PrivacyComplianceEngine
from privacy_sentinel.privacy.frameworks import (
    compliance_deadline_days,
    framework_for_jurisdiction,
    legal_citation,
)
from privacy_sentinel.utils.config_loader import ConfigLoader


console = Console()

RIGHT_CHOICES = [right.value for right in RightsType]


class SteppingClock:
    """Clock that can be moved forward, so the demo can let deadlines pass."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or utc_now()

    def __call__(self) -> datetime:
        return self._now

    def advance(self, **delta: float) -> None:
        self._now += timedelta(**delta)


@click.command()
@click.argument('jurisdiction')
@click.option('--right', 'right', type=click.Choice(RIGHT_CHOICES), default=RightsType.ACCESS.value,
              help='Rights type to look up the citation for')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']), default='text')
def framework(jurisdiction: str, right: str, output_format: str):
    """Show the framework, response deadline and citation for a jurisdiction."""
    rights_type = RightsType(right)
    regulatory_framework = framework_for_jurisdiction(jurisdiction)
    result = {
        'jurisdiction': jurisdiction,
        'framework': regulatory_framework.value,
        'right': rights_type.value,
        'deadline_days': compliance_deadline_days(regulatory_framework, rights_type),
        'citation': legal_citation(rights_type, regulatory_framework),
    }

    if output_format == 'json':
        click.echo(json.dumps(result, indent=2))
        return

    console.print(f"Jurisdiction: {jurisdiction}")
    console.print(f"Framework: {regulatory_framework.value.upper()}")
    console.print(f"Deadline: {result['deadline_days']} days")
    console.print(f"Citation: {result['citation']}")


def run_demo(config: EngineConfiguration, jurisdiction: str, overdue: bool) -> Dict[str, Any]:
    """Grant, process, request and audit against an in-memory ledger."""
    clock = SteppingClock()
    sink = InMemoryTopicSink(clock=clock)
    engine = PrivacyComplianceEngine(config=config, sink=sink, clock=clock)
    engine.init(jurisdiction)

    consent = engine.consent_manager.grant_consent(GrantConsentRequest(
        user_id="demo-user",
        purposes=["analytics", "personalization"],
        data_types=["email", "usage_data"],
        jurisdiction=jurisdiction,
        retention_period="1_year",
    ))
    processing = engine.processing_registry.register_processing_activity(RegisterProcessingActivityRequest(
        controller_id=config.operator_id,
        user_id="demo-user",
        purpose="analytics",
        data_categories=["usage_data"],
        legal_basis=ProcessingBasis.CONSENT,
        consent_id=consent.consent_id,
        security_measures=["encryption_at_rest"],
    ))
    request = engine.rights_handler.submit_request("demo-user", RightsType.ACCESS, jurisdiction)
    engine.rights_handler.process_request(request.request_id)
    engine.rights_handler.complete_request(request.request_id, "Export delivered")

    if overdue:
        engine.rights_handler.submit_request(
            "demo-user", RightsType.ERASURE, jurisdiction, expected_completion_days=0
        )
        clock.advance(days=1)

    audit = engine.run_compliance_check()
    retention = engine.run_retention_check()

    return {
        'topics': engine.topics.to_dict(),
        'consent_id': consent.consent_id,
        'processing_id': processing.processing_id,
        'audit': audit.to_dict(),
        'retention': retention.to_dict(),
        'messages': {name: len(log) for name, log in engine.message_logs().items()},
    }


@click.command()
@click.option('--jurisdiction', '-j', default=None, help='Jurisdiction to run under (default from config)')
@click.option('--overdue', is_flag=True, help='Leave an erasure request past its deadline')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']), default='text')
@click.option('--config-dir', type=click.Path(file_okay=False), help='Directory holding engine.yaml')
def demo(jurisdiction: Optional[str], overdue: bool, output_format: str, config_dir: Optional[str]):
    """Run a consent-to-audit lifecycle and print the compliance report."""
    try:
        config = ConfigLoader(Path(config_dir)).load_engine_config() if config_dir else EngineConfiguration()
        result = run_demo(config, jurisdiction or config.default_jurisdiction, overdue)
    except (PrivacyComplianceError, ValueError) as e:
        console.print(f"[bold red]Demo failed: {e}[/bold red]")
        sys.exit(1)

    if output_format == 'json':
        click.echo(json.dumps(result, indent=2))
        return

    audit = result['audit']
    table = Table(title="Compliance Audit")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Score", f"{audit['compliance_score']}/100")
    table.add_row("Result", audit['result'])
    table.add_row("Violations", str(len(audit['violations'])))
    table.add_row("Follow-up", "yes" if audit['follow_up_required'] else "no")
    table.add_row("Retention", result['retention']['compliance_status'])
    console.print(table)

    for violation in audit['violations']:
        console.print(f"[yellow]- {violation}[/yellow]")
    for recommendation in audit['recommendations']:
        console.print(f"[dim]{recommendation}[/dim]")
