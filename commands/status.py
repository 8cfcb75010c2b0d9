#!/usr/bin/env python3

"""
subkeeper status command

Show subscriptions with their last update, next scheduled update and backups.
"""

import sys
from datetime import datetime
from typing import Optional

import click

from commands.common import home_option
from subscriptions.errors import ConfigError
from subscriptions.manager import SubscriptionManager


class Colors:
    """ANSI color codes for terminal output"""

    BLUE = "\033[0;34m"
    GREEN = "\033[0;32m"
    YELLOW = "\033[1;33m"
    NC = "\033[0m"  # No Color


def _when(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


@click.command()
@home_option
def status(home):
    """📊 Show subscriptions and their schedule

    \b
    Examples:
        subkeeper status
        subkeeper status -d /etc/clash
    """
    try:
        manager = SubscriptionManager.from_home(home)
    except ConfigError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    rows = manager.status()
    if not rows:
        click.echo(f"{Colors.YELLOW}No subscriptions configured{Colors.NC}")
        return

    for row in rows:
        marker = f"{Colors.GREEN}*{Colors.NC}" if row["current"] else " "
        click.echo(f"{marker} {Colors.BLUE}{row['name']}{Colors.NC}")
        click.echo(f"    url:          {row['url'] or '-'}")
        click.echo(f"    cron:         {row['cron'] or '-'} ({row['state']})")
        click.echo(f"    last updated: {_when(row['last_updated'])}")
        click.echo(f"    next update:  {_when(row['next_due'])}")
        click.echo(f"    backups:      {row['backups']}")
