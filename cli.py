#!/usr/bin/env python3

"""subkeeper - Subscription keeper for Clash"""

import click

from commands import run, status, update, validate
from lib.logging_config import setup_logging

__version__ = "0.1.0"


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__, prog_name="subkeeper")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--log-file",
    envvar="LOG_FILE",
    type=click.Path(dir_okay=False),
    help="Also write structured log lines to this file [env LOG_FILE]",
)
def cli(verbose, log_file):
    """
    subkeeper - Subscription keeper for Clash

    Keeps remote configuration subscriptions mirrored on disk, refreshes them
    on cron schedules and swaps them into place without ever leaving a broken
    document behind.
    """
    setup_logging("DEBUG" if verbose else None, log_file)


cli.add_command(run)
cli.add_command(status)
cli.add_command(update)
cli.add_command(validate)


if __name__ == "__main__":
    cli()
