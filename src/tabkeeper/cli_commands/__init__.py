"""CLI command modules for Tabkeeper."""

from tabkeeper.cli_commands.config import config_app
from tabkeeper.cli_commands.simulate import simulate_command

__all__ = ["config_app", "simulate_command"]
