"""CLI commands for netresim."""

from . import run, config_cmd

__all__ = ["run", "config_cmd"]
