"""Model files: everything needed to run a simulation from YAML.

Example:

    control:
      nsteps: 52
      nsims: 4
      groups: 1
    population:
      size: 500
    networks:
      - formation: "~edges"
        coef_form: [-4.6]
        coef_diss:
          dissolution: "~offset(edges)"
          duration: [20]
          coef_adj: [2.94]
          coef_crude: [2.94]
    demography:
      departure_rate: 0.005
      arrival_rate: 0.005
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

from .control import RunControl
from .network import NetworkParameters


class PopulationConfig(BaseModel):
    """Initial population."""

    size: int = Field(ge=1, description="Initial number of nodes")
    group_sizes: list[int] | None = Field(
        default=None,
        description="Nodes per group for two-group models (defaults to an even split)",
    )

    @model_validator(mode="after")
    def _check_group_sizes(self) -> "PopulationConfig":
        if self.group_sizes is not None and sum(self.group_sizes) != self.size:
            raise ValueError(
                f"group_sizes sum to {sum(self.group_sizes)}, expected {self.size}"
            )
        return self


class DemographyConfig(BaseModel):
    """Built-in open-population dynamics."""

    departure_rate: float = Field(default=0.0, ge=0, le=1)
    arrival_rate: float = Field(default=0.0, ge=0)


class ModelSpec(BaseModel):
    """A complete, runnable model definition."""

    control: RunControl
    population: PopulationConfig
    networks: list[NetworkParameters] = Field(min_length=1)
    demography: DemographyConfig = Field(default_factory=DemographyConfig)

    def to_yaml(self, path: Path | str) -> None:
        """Save the model to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ModelSpec":
        """Load a model from a YAML file."""
        with open(Path(path)) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError("Model YAML must parse to an object")
        return cls.model_validate(data)
