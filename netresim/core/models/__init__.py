"""Pydantic models for netresim.

- network.py: dissolution coefficients and per-network parameter sets
- control.py: sampler, per-network and run-level control settings
- spec.py: complete model files with YAML I/O
"""

from .network import (
    DissolutionCoefs,
    NetworkParameters,
    dissolution_coefs,
)
from .control import (
    SamplerControl,
    NetworkControl,
    RunControl,
    validate_run_configuration,
)
from .spec import (
    PopulationConfig,
    DemographyConfig,
    ModelSpec,
)

__all__ = [
    "DissolutionCoefs",
    "NetworkParameters",
    "dissolution_coefs",
    "SamplerControl",
    "NetworkControl",
    "RunControl",
    "validate_run_configuration",
    "PopulationConfig",
    "DemographyConfig",
    "ModelSpec",
]
