"""Exception and warning types for netresim.

Configuration problems are fatal and raised before any step runs.
Sampler warnings are expected noise and are filtered by the network
model driver; hard sampler failures propagate unchanged.
"""


class NetresimError(Exception):
    """Base class for all netresim errors."""


class ConfigurationError(NetresimError, ValueError):
    """Raised when run or network settings cannot be combined."""


class FormulaError(NetresimError, ValueError):
    """Raised when a model formula cannot be parsed or evaluated."""


class SimulationError(NetresimError):
    """Raised for invalid requests against simulation output."""


class SamplerWarning(UserWarning):
    """Non-actionable warning emitted by a stochastic network sampler."""
