#!/usr/bin/env python3

"""Run the subscription manager in the foreground"""

import logging
import sys
from datetime import datetime

import click

from commands.common import home_option
from subscriptions.errors import SubscriptionError
from subscriptions.manager import SubscriptionManager

logger = logging.getLogger(__name__)


@click.command()
@home_option
def run(home):
    """
    🚀 Run: bootstrap, apply and keep subscriptions updated

    \b
    Startup sequence:
    1. Load config.yaml from the home directory
    2. Fetch the current subscription if it has no document yet (fatal on failure)
    3. Hand the current document to the engine
    4. Update every subscription with a cron schedule until SIGINT/SIGTERM

    \b
    Examples:
        subkeeper run              # Use SUBKEEPER_HOME_DIR or ./data
        subkeeper run -d /etc/clash
    """
    logger.info(f"🚀 Starting {datetime.now().astimezone().isoformat(timespec='seconds')}")
    try:
        manager = SubscriptionManager.from_home(home)
        manager.run()
    except SubscriptionError as e:
        logger.error(f"✗ {e}")
        sys.exit(1)
