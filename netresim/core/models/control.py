"""Run and per-network control settings.

RunControl is immutable for the life of a run. Flag combinations are
checked by ``validate_run_configuration`` before any network is touched.
"""

import math
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from ...network.formula import Formula
from ..errors import ConfigurationError


class SamplerControl(BaseModel):
    """Settings handed to the external network sampler."""

    parallel: int = Field(default=0, ge=0, description="Sampler-internal workers (0 = off)")
    discordance_fraction: float | None = Field(
        default=None,
        ge=0,
        le=1,
        description="Share of proposals aimed at dyads that differ from the previous state",
    )
    mcmc_interval: int | None = Field(
        default=None, ge=1, description="Proposals between recorded states"
    )
    options: dict[str, Any] = Field(
        default_factory=dict, description="Sampler-specific options, passed through"
    )


class NetworkControl(BaseModel):
    """Per-network control settings."""

    track_duration: bool = Field(
        default=False,
        description="Keep time/lasttoggle network attributes (lightweight mode only)",
    )
    ergm_control: SamplerControl = Field(
        default_factory=SamplerControl,
        description="Control for the cross-sectional time-0 draw",
    )
    tergm_control: SamplerControl = Field(
        default_factory=SamplerControl,
        description="Control for the per-step advance",
    )
    nwstats_formula: Formula | None = Field(
        default=None,
        description="Statistics to record; defaults to the formation formula",
    )


class RunControl(BaseModel):
    """Immutable configuration of a simulation run."""

    model_config = ConfigDict(frozen=True, ser_json_inf_nan="constants")

    nsteps: int = Field(ge=1, description="Number of time steps")
    nsims: int = Field(default=1, ge=1, description="Number of independent replicates")
    ncores: int = Field(default=1, ge=1, description="Worker processes for replicates")
    groups: int = Field(default=1, description="Population groups (1 or 2)")
    resimulate_network: bool = Field(
        default=True, description="Resimulate the networks at every step"
    )
    lightweight: bool = Field(
        default=True,
        description="Keep edge lists instead of full temporal networks",
    )
    save_nwstats: bool = Field(default=False, description="Record network statistics")
    truncate_el_cuml: float = Field(
        default=math.inf,
        ge=0,
        description="Steps an ended edge stays in the cumulative edgelist",
    )
    reuse_basis: bool = Field(
        default=False,
        description="Reuse the sampler's last output as the next basis network",
    )
    seed: int | None = Field(default=None, description="Base random seed")
    networks: list[NetworkControl] = Field(
        default_factory=list, description="Per-network controls, by network index"
    )

    def network_control(self, network: int) -> NetworkControl:
        """Control for 1-based ``network``; defaults when not configured."""
        if 1 <= network <= len(self.networks):
            return self.networks[network - 1]
        return NetworkControl()

    def to_yaml(self, path: Path | str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, sort_keys=False)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "RunControl":
        with open(Path(path)) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError("Control YAML must parse to an object")
        return cls.model_validate(data)


def validate_run_configuration(control: RunControl, num_networks: int) -> None:
    """Reject flag combinations the engine cannot honour.

    Raises:
        ConfigurationError: On any incompatible setting
    """
    if control.groups not in (1, 2):
        raise ConfigurationError(
            f"Only one- and two-group populations are supported, got groups={control.groups}"
        )
    if num_networks < 1:
        raise ConfigurationError("At least one network is required")
    if control.networks and len(control.networks) != num_networks:
        raise ConfigurationError(
            f"{len(control.networks)} network controls given for {num_networks} networks"
        )
    if control.lightweight and not control.resimulate_network:
        raise ConfigurationError(
            "The lightweight representation keeps only the current state and "
            "needs resimulate_network=True"
        )
    for network in range(1, num_networks + 1):
        if control.network_control(network).track_duration and not control.lightweight:
            raise ConfigurationError(
                f"Network {network}: duration tracking requires the lightweight "
                f"representation; full temporal networks carry their own history"
            )
