"""
subkeeper CLI Commands

This module contains CLI command implementations for the subkeeper tool.
"""

__all__ = ["run", "status", "update", "validate"]

from commands.run import run
from commands.status import status
from commands.update import update
from commands.validate import validate
