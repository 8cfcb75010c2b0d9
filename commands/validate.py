#!/usr/bin/env python3

"""Validation commands"""

import logging
import sys

import click

from commands.common import home_option
from lib.data import Settings, load_config
from subscriptions.engine import parse_and_validate
from subscriptions.errors import ConfigError, DocumentRejected

logger = logging.getLogger(__name__)


@click.command()
@home_option
@click.argument("path", required=False, type=click.Path(dir_okay=False))
def validate(home, path):
    """
    Validate config.yaml or an engine document

    \b
    Examples:
        subkeeper validate                       # Validate config.yaml and all active documents
        subkeeper validate subscribe/work.yaml   # Validate a single document
    """
    if path:
        try:
            parse_and_validate(path)
        except DocumentRejected as e:
            click.echo(f"✗ {path}: {e}", err=True)
            sys.exit(1)
        click.echo(f"✓ {path}: valid")
        return

    settings = Settings.from_home(home)
    try:
        config = load_config(settings)
    except ConfigError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    click.echo(f"✓ {settings.config_file}: {len(config.subscribe)} subscription(s)")

    errors = {}
    for subscription in config.subscribe:
        if not subscription.name:
            errors[subscription.url or "?"] = "no name and none derivable from the url"
            continue
        active = settings.active_path(subscription.name)
        if not active.exists():
            click.echo(f"  - {subscription.name}: not downloaded yet")
            continue
        try:
            parse_and_validate(active)
        except DocumentRejected as e:
            errors[subscription.name] = str(e)
            continue
        click.echo(f"  ✓ {subscription.name}: valid")

    if errors:
        click.echo(f"✗ {len(errors)} subscription(s) with errors:", err=True)
        for name, error in errors.items():
            click.echo(f"  - {name}: {error}", err=True)
        sys.exit(1)
