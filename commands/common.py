#!/usr/bin/env python3

"""Common utilities for CLI commands"""

import logging

import click

from lib.data import Settings, home_dir_from_env, load_config
from subscriptions.errors import ConfigError

logger = logging.getLogger(__name__)


def home_option(func):
    """The `--home/-d` option shared by all commands"""
    return click.option(
        "--home",
        "-d",
        "home",
        default=None,
        help="Data and config directory [env SUBKEEPER_HOME_DIR, default: data]",
    )(func)


def complete_subscription(ctx, param, incomplete):
    """
    Autocomplete subscription names.

    Args:
        ctx: Click context
        param: Click parameter
        incomplete: Partially typed string to complete

    Returns:
        List of subscription names from config.yaml matching the incomplete string
    """
    home = ctx.params.get("home") or home_dir_from_env()
    try:
        config = load_config(Settings.from_home(home))
    except ConfigError as e:
        logger.debug(f"Failed to load config for autocomplete: {e}")
        return []
    return [s.name for s in config.subscribe if s.name.lower().startswith(incomplete.lower())]
