"""CLI commands for configuration management."""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from privacy_sentinel.models.config import EngineConfiguration
from privacy_sentinel.utils.config_loader import ConfigLoader


def _loader(config_dir: Optional[str]) -> ConfigLoader:
    return ConfigLoader(Path(config_dir) if config_dir else None)


@click.group(name='config')
def config_group():
    """Configuration management commands."""
    pass


@config_group.command()
@click.option('--config-dir', type=click.Path(file_okay=False), help='Configuration directory')
@click.option('--force', is_flag=True, help='Overwrite an existing engine.yaml')
def init(config_dir: Optional[str], force: bool):
    """Write the effective configuration to engine.yaml."""
    loader = _loader(config_dir)

    if loader.config_file.exists() and not force:
        click.echo(f"Configuration already exists at {loader.config_file} (use --force to overwrite)", err=True)
        sys.exit(1)

    try:
        path = loader.save_engine_config(EngineConfiguration())
    except ValueError as e:
        click.echo(f"Error initializing configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"Configuration written to {path}")


@config_group.command()
@click.option('--config-dir', type=click.Path(file_okay=False), help='Configuration directory')
@click.option('--format', '-f', 'output_format', type=click.Choice(['yaml', 'json']),
              default='yaml', help='Output format')
def show(config_dir: Optional[str], output_format: str):
    """Show the effective configuration."""
    try:
        config = _loader(config_dir).load_engine_config()
    except (ValueError, TypeError, yaml.YAMLError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if output_format == 'json':
        click.echo(json.dumps(config.to_dict(), indent=2))
    else:
        click.echo(yaml.dump(config.to_dict(), default_flow_style=False, indent=2, sort_keys=False))


@config_group.command()
@click.option('--config-dir', type=click.Path(file_okay=False), help='Configuration directory')
def validate(config_dir: Optional[str]):
    """Validate engine.yaml."""
    result = _loader(config_dir).validate_configuration()

    if result['valid']:
        click.echo("Configuration is valid")
    else:
        click.echo("Configuration validation failed:")
        for error in result['errors']:
            click.echo(f"  - {error}")

    for warning in result['warnings']:
        click.echo(f"  warning: {warning}")

    if not result['valid']:
        sys.exit(1)
