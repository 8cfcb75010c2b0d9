#!/usr/bin/env python3

"""On-demand subscription update"""

import logging
import sys

import click

from commands.common import complete_subscription, home_option
from subscriptions.errors import ConfigError
from subscriptions.manager import SubscriptionManager

logger = logging.getLogger(__name__)


@click.command()
@home_option
@click.argument("names", nargs=-1, shell_complete=complete_subscription)
@click.option("--all", "update_all", is_flag=True, help="Update every subscription that has a url")
def update(home, names, update_all):
    """
    🔄 Update subscriptions now, outside their schedule

    Fetches, checks and promotes each named subscription (the current one when
    no name is given). Exits non-zero when any update fails.

    \b
    Examples:
        subkeeper update              # Update the current subscription
        subkeeper update work home    # Update two subscriptions
        subkeeper update --all        # Update everything with a url
    """
    try:
        manager = SubscriptionManager.from_home(home)
        if update_all:
            targets = [s for s in manager.config.subscribe if s.url]
        else:
            targets = [manager.find(name) for name in names] or [manager.find()]
    except ConfigError as e:
        logger.error(f"✗ {e}")
        sys.exit(1)

    failed = [s.name for s in targets if not manager.update(s)]
    if failed:
        logger.error(f"✗ Failed: {', '.join(failed)}")
        sys.exit(1)
