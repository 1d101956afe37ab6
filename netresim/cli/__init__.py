"""Command-line interface for netresim."""

from .app import app

__all__ = ["app"]
