"""Configuration management for netresim.

Holds tool-level settings (logging, worker processes, default seed). Model
and run settings live in YAML model files, not here.

Config resolution order (highest priority first):
1. Programmatic (NetresimConfig constructed in code)
2. Environment variables (NETRESIM_LOG_LEVEL, NETRESIM_NCORES, NETRESIM_SEED)
3. Config file (~/.config/netresim/config.json, managed by `netresim config`)
4. Hardcoded defaults
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "netresim"
CONFIG_FILE = CONFIG_DIR / "config.json"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


# =============================================================================
# Config dataclasses
# =============================================================================


@dataclass
class RunDefaults:
    """Defaults applied to runs that do not set them in their model file."""

    ncores: int = 1
    seed: int | None = None


@dataclass
class NetresimConfig:
    """Top-level netresim configuration.

    Examples:
        # Package use
        config = NetresimConfig(log_level="DEBUG")

        # CLI use: loads ~/.config/netresim/config.json plus env vars
        config = NetresimConfig.load()
    """

    log_level: str = "WARNING"
    run: RunDefaults = field(default_factory=RunDefaults)

    @classmethod
    def load(cls) -> "NetresimConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        config = cls()

        # Layer 1: config file
        if CONFIG_FILE.exists():
            try:
                with open(CONFIG_FILE) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (ValueError, OSError) as exc:
                logger.warning("Failed to load config from %s: %s", CONFIG_FILE, exc)

        # Layer 2: env var overrides
        if val := os.environ.get("NETRESIM_LOG_LEVEL"):
            if val.upper() in LOG_LEVELS:
                config.log_level = val.upper()
            else:
                logger.warning("Invalid NETRESIM_LOG_LEVEL=%r, ignoring", val)
        if val := os.environ.get("NETRESIM_NCORES"):
            try:
                config.run.ncores = max(1, int(val))
            except ValueError:
                logger.warning("Invalid NETRESIM_NCORES=%r, ignoring", val)
        if val := os.environ.get("NETRESIM_SEED"):
            try:
                config.run.seed = int(val)
            except ValueError:
                logger.warning("Invalid NETRESIM_SEED=%r, ignoring", val)

        return config

    def save(self) -> None:
        """Save config to ~/.config/netresim/config.json."""
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for display."""
        return {"log_level": self.log_level, "run": asdict(self.run)}


def _apply_dict(config: NetresimConfig, data: dict) -> None:
    """Apply a dict of values onto a NetresimConfig."""
    level = data.get("log_level")
    if isinstance(level, str) and level.upper() in LOG_LEVELS:
        config.log_level = level.upper()
    if "run" in data and isinstance(data["run"], dict):
        for k, v in data["run"].items():
            if hasattr(config.run, k):
                if k == "ncores":
                    v = max(1, int(v))
                setattr(config.run, k, v)


# =============================================================================
# Global config singleton
# =============================================================================

_config: NetresimConfig | None = None


def get_config() -> NetresimConfig:
    """Get the global config, loading from file + env on first access.

    Use configure() to replace the global config programmatically.
    """
    global _config
    if _config is None:
        _config = NetresimConfig.load()
    return _config


def reset_config() -> None:
    """Reset the global config (forces reload on next get_config())."""
    global _config
    _config = None


def configure(config: NetresimConfig) -> None:
    """Set the global NetresimConfig programmatically."""
    global _config
    _config = config
