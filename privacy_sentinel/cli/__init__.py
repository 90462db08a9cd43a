"""Command-line interface for Privacy Sentinel."""

from typing import Optional

import click

from privacy_sentinel import __version__
from privacy_sentinel.cli.config_commands import config_group
from privacy_sentinel.cli.privacy_commands import demo, framework
from privacy_sentinel.utils.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="privacy-sentinel")
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Emit structured logs to stderr at this level')
@click.option('--log-dir', type=click.Path(file_okay=False),
              help='Also write general and privacy audit logs to this directory')
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_dir: Optional[str]):
    """Privacy Sentinel - consent, processing, rights and audit compliance engine."""
    ctx.ensure_object(dict)

    if log_level or log_dir:
        setup_logging({
            "log_level": log_level or "INFO",
            "log_dir": log_dir,
            "enable_file": log_dir is not None,
            "enable_audit": log_dir is not None,
        })


cli.add_command(framework)
cli.add_command(demo)
cli.add_command(config_group)


if __name__ == '__main__':
    cli()
