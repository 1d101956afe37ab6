"""Simulation state container owned by a single run.

Holds the attribute table, the per-network parameter sets and stored
network state, the population count cache used by the coefficient
adjuster, the per-network statistics history and the cumulative edgelist.

Write access is split by concern:
- representation fields: only through ``commit_edgelist``/``commit_temporal``,
  which the representation adapter calls
- coefficients: only through NetworkParameters.shift_base_coefficient,
  which the coefficient adjuster calls
- population counts: ``set_population_counts``
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..core.models import (
    NetworkControl,
    NetworkParameters,
    RunControl,
    validate_run_configuration,
)
from ..core.errors import ConfigurationError
from ..network.base import Edge
from ..network.dynamic import TemporalNetwork
from ..network.terms import StatsMatrix

logger = logging.getLogger(__name__)

# (state, at, network) -> state; network 0 is the global pre-loop call
StateHook = Callable[["SimulationState", int, int], "SimulationState"]


@dataclass
class CumulativeEdge:
    """One partnership spell in the cumulative edgelist."""

    tail: int
    head: int
    start: int
    stop: int | None = None

    @property
    def is_open(self) -> bool:
        return self.stop is None


@dataclass
class NetworkSlot:
    """Stored state of one network."""

    el: list[Edge] = field(default_factory=list)
    net_attr: dict[str, Any] = field(default_factory=dict)
    nw: TemporalNetwork | None = None
    revision: int = 0
    nwstats: list[dict[str, float]] = field(default_factory=list)
    cumulative: list[CumulativeEdge] = field(default_factory=list)


class SimulationState:
    """Mutable state of one simulation replicate.

    Args:
        params: One parameter set per network (copied; the run owns its copies)
        control: Run control settings
        attributes: Vertex attribute table; must contain ``active`` (0/1)
            and, for two-group runs, ``group`` (1/2)
        hook: Optional per-step/per-network update function
        sim: Replicate index (1-based), for logging and results
        seed: Seed for the run's module random stream
    """

    def __init__(
        self,
        params: Sequence[NetworkParameters],
        control: RunControl,
        attributes: dict[str, Sequence[Any]],
        hook: StateHook | None = None,
        sim: int = 1,
        seed: int | None = None,
    ):
        validate_run_configuration(control, len(params))
        if "active" not in attributes:
            raise ConfigurationError("Vertex attributes must include 'active'")
        if control.groups == 2 and "group" not in attributes:
            raise ConfigurationError("Two-group runs need a 'group' vertex attribute")

        lengths = {len(values) for values in attributes.values()}
        if len(lengths) != 1:
            raise ConfigurationError("All vertex attributes must have the same length")

        self.control = control
        self.sim = sim
        self.hook = hook
        self.rng = random.Random(seed)
        self.attr: dict[str, list[Any]] = {k: list(v) for k, v in attributes.items()}
        self.run_scope: dict[str, int] = {}
        self.epi: dict[str, list[float]] = {}

        self._params = [p.model_copy(deep=True) for p in params]
        self._slots = [NetworkSlot() for _ in self._params]

    # =========================================================================
    # Read accessors
    # =========================================================================

    @property
    def num_networks(self) -> int:
        return len(self._params)

    @property
    def num_nodes(self) -> int:
        return len(self.attr["active"])

    def networks(self) -> range:
        """Network indices in run order (1-based)."""
        return range(1, self.num_networks + 1)

    def params(self, network: int) -> NetworkParameters:
        return self._params[self._index(network)]

    def network_control(self, network: int) -> NetworkControl:
        return self.control.network_control(network)

    def slot(self, network: int) -> NetworkSlot:
        return self._slots[self._index(network)]

    def revision(self, network: int) -> int:
        """Counter bumped on every write to the network's stored state."""
        return self.slot(network).revision

    def get_attr(self, name: str) -> list[Any]:
        return self.attr[name]

    def active_ids(self) -> list[int]:
        return [i for i, flag in enumerate(self.attr["active"]) if flag == 1]

    def _index(self, network: int) -> int:
        if not 1 <= network <= len(self._params):
            raise IndexError(
                f"Network index {network} outside 1..{len(self._params)}"
            )
        return network - 1

    # =========================================================================
    # Mutation entry points
    # =========================================================================

    def set_attr(self, name: str, values: Sequence[Any]) -> None:
        if len(values) != self.num_nodes:
            raise ValueError(
                f"Attribute {name!r} has {len(values)} values for {self.num_nodes} nodes"
            )
        self.attr[name] = list(values)

    def append_nodes(self, count: int, attributes: dict[str, Sequence[Any]]) -> list[int]:
        """Grow the attribute table by ``count`` rows; returns the new ids.

        Attributes not given for the new rows are filled with None.
        """
        start = self.num_nodes
        for name, values in self.attr.items():
            extra = list(attributes.get(name, [None] * count))
            if len(extra) != count:
                raise ValueError(f"Attribute {name!r} needs {count} new values")
            values.extend(extra)
        for name, extra in attributes.items():
            if name not in self.attr:
                self.attr[name] = [None] * start + list(extra)
        return list(range(start, start + count))

    def set_population_counts(self, num: int, num_g2: int | None = None) -> None:
        self.run_scope["num"] = num
        if num_g2 is None:
            self.run_scope.pop("num_g2", None)
        else:
            self.run_scope["num_g2"] = num_g2

    def commit_edgelist(
        self, network: int, edges: list[Edge], net_attr: dict[str, Any] | None = None
    ) -> None:
        slot = self.slot(network)
        slot.el = list(edges)
        if net_attr is not None:
            slot.net_attr = dict(net_attr)
        slot.revision += 1

    def commit_temporal(self, network: int, nw: TemporalNetwork) -> None:
        slot = self.slot(network)
        slot.nw = nw
        slot.revision += 1

    def touch(self, network: int) -> None:
        """Mark stored state as changed outside a commit (lightweight vertex additions)."""
        self.slot(network).revision += 1

    def append_nwstats(self, network: int, stats: StatsMatrix, first_time: int) -> None:
        """Append per-slice statistics, one record per slice starting at ``first_time``."""
        records = self.slot(network).nwstats
        for offset, row in enumerate(stats.to_records()):
            records.append({"time": first_time + offset, **row})

    def record_epi(self, name: str, value: float) -> None:
        self.epi.setdefault(name, []).append(value)

    def __repr__(self) -> str:
        return (
            f"SimulationState(sim={self.sim}, num_nodes={self.num_nodes}, "
            f"num_networks={self.num_networks})"
        )
