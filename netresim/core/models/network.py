"""Network parameter sets: formation model, dissolution model, coefficients.

A NetworkParameters object is created once per network at run start and its
base formation coefficient is shifted in place as the population changes.
"""

import math
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...network.formula import Formula
from ..errors import ConfigurationError

_EDGES_DISSOLUTION = Formula.parse("~offset(edges)")


class DissolutionCoefs(BaseModel):
    """Persistence coefficients derived from target relationship durations."""

    model_config = ConfigDict(ser_json_inf_nan="constants")

    dissolution: Formula = Field(description="Dissolution (persistence) model formula")
    duration: list[float] = Field(description="Target mean edge duration, in steps")
    coef_adj: list[float] = Field(
        description="Persistence coefficients adjusted for departures"
    )
    coef_crude: list[float] = Field(
        description="Persistence coefficients ignoring departures"
    )
    d_rate: float = Field(default=0.0, ge=0, lt=1, description="Per-step departure rate")


def dissolution_coefs(
    dissolution: Formula | str = "~offset(edges)",
    duration: float | Sequence[float] = 1,
    d_rate: float = 0.0,
) -> DissolutionCoefs:
    """Compute persistence coefficients for a homogeneous dissolution model.

    With ``pg = (duration - 1) / duration`` the crude coefficient is
    ``log(pg / (1 - pg))``. When nodes depart at rate ``d_rate`` an edge also
    ends if either partner leaves, so the adjusted coefficient uses the dyad
    survival probability ``ps2 = (1 - d_rate)**2``: ``log(pg / (ps2 - pg))``.

    Args:
        dissolution: Dissolution formula; only ``~offset(edges)`` is supported
        duration: Mean edge duration in time steps (>= 1)
        d_rate: Departure rate per time step

    Returns:
        DissolutionCoefs

    Raises:
        ConfigurationError: For unsupported formulas, durations below 1, or a
            departure rate too high for the requested duration
    """
    formula = Formula.parse(dissolution)
    if formula != _EDGES_DISSOLUTION:
        raise ConfigurationError(
            f"Unsupported dissolution model {formula}; use ~offset(edges)"
        )

    durations = [float(duration)] if isinstance(duration, (int, float)) else [
        float(d) for d in duration
    ]
    if len(durations) != 1:
        raise ConfigurationError("~offset(edges) takes exactly one duration")
    mean_duration = durations[0]
    if mean_duration < 1:
        raise ConfigurationError(f"Duration must be >= 1, got {mean_duration}")
    if not 0 <= d_rate < 1:
        raise ConfigurationError(f"d_rate must be in [0, 1), got {d_rate}")

    if mean_duration == 1:
        return DissolutionCoefs(
            dissolution=formula,
            duration=durations,
            coef_adj=[-math.inf],
            coef_crude=[-math.inf],
            d_rate=d_rate,
        )

    pg = (mean_duration - 1) / mean_duration
    ps2 = (1 - d_rate) ** 2
    if ps2 <= pg:
        raise ConfigurationError(
            f"Departure rate {d_rate} is too high for a mean duration of "
            f"{mean_duration}; lower d_rate or shorten the duration"
        )

    return DissolutionCoefs(
        dissolution=formula,
        duration=durations,
        coef_adj=[math.log(pg / (ps2 - pg))],
        coef_crude=[math.log(pg / (1 - pg))],
        d_rate=d_rate,
    )


class NetworkParameters(BaseModel):
    """Static configuration of one network plus its mutable coefficients."""

    formation: Formula = Field(description="Formation model formula")
    coef_form: list[float] = Field(description="Formation coefficients; [0] is the edges term")
    coef_diss: DissolutionCoefs = Field(description="Dissolution model and coefficients")
    coef_form_crude: list[float] | None = Field(
        default=None,
        description="Cross-sectional coefficients for the time-0 draw (derived if omitted)",
    )
    constraints: str = Field(default="~.", description="Sampler constraints, passed through")
    edapprox: bool = Field(
        default=True,
        description="Draw the time-0 network from the cross-sectional approximation",
    )
    initial_edges: list[tuple[int, int]] = Field(
        default_factory=list,
        description="Fitted network edges, the time-0 state when edapprox is off",
    )

    @field_validator("coef_form")
    @classmethod
    def _require_base_coefficient(cls, value: list[float]) -> list[float]:
        if not value:
            raise ValueError("coef_form needs at least the base (edges) coefficient")
        return value

    @property
    def is_durational(self) -> bool:
        return self.coef_diss.duration[0] > 1

    def shift_base_coefficient(self, adjustment: float) -> None:
        """Add ``adjustment`` to the base (first) formation coefficient."""
        self.coef_form[0] = self.coef_form[0] + adjustment

    def cross_sectional_coefs(self) -> list[float]:
        """Coefficients for the cross-sectional (edges dissolution approximation) draw.

        Under the approximation the formation edges coefficient equals the
        cross-sectional one minus the crude persistence coefficient, so the
        latter is added back when no crude coefficients were supplied.
        """
        if self.coef_form_crude is not None:
            return list(self.coef_form_crude)
        coefs = list(self.coef_form)
        if self.is_durational:
            coefs[0] += self.coef_diss.coef_crude[0]
        return coefs
