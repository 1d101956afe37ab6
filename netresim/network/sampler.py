"""Stochastic network simulation primitive.

The engine treats the sampler as a black box behind the NetworkSimulator
protocol: given a formula, coefficients, a basis network, constraints and a
time window it returns the next network state and, when asked, per-slice
statistics. Any object with a matching ``simulate`` method can be plugged in.

DyadIndependentSampler is the reference implementation. It draws
dyad-independent models exactly:
    - Cross-sectional draw: every eligible dyad is an edge with probability
      logistic(theta . delta(i, j)).
    - Separable durational draw (``~Form(...) + Persist(...)``): non-edges
      form with the formation probability, edges survive with the
      persistence probability.
    - Plain formula in dynamic mode: an independent cross-sectional draw per
      slice (an exact draw makes the discordance setting irrelevant).
Eligible dyads join two nodes that are active at the slice time.
"""

import logging
import math
import random
import warnings
from dataclasses import dataclass, field
from itertools import combinations
from typing import Literal, Protocol, runtime_checkable

from ..core.errors import SamplerWarning
from ..core.models.control import SamplerControl
from .base import Edge, NetworkRepresentation
from .dynamic import TemporalNetwork
from .formula import Formula
from .lite import NetworkLite
from .terms import StatsMatrix, dyad_change_function, formula_labels, summary_statistics

logger = logging.getLogger(__name__)


@dataclass
class SimulationRequest:
    """Arguments of one call into the sampler."""

    formula: Formula
    coef: list[float]
    basis: NetworkRepresentation
    constraints: str = "~."
    time_start: int = 0
    time_offset: int = 1
    time_slices: int = 1
    control: SamplerControl = field(default_factory=SamplerControl)
    monitor: Formula | None = None
    dynamic: bool = True
    output: Literal["final", "dynamic"] = "final"


@dataclass
class SimulationResult:
    """Sampler output: the new network and optional per-slice statistics."""

    network: NetworkRepresentation
    stats: StatsMatrix | None = None


@runtime_checkable
class NetworkSimulator(Protocol):
    def simulate(self, request: SimulationRequest) -> SimulationResult: ...


def logistic(eta: float) -> float:
    """Numerically stable inverse logit that maps +/-inf to 1/0."""
    if eta >= 0:
        z = math.exp(-eta)
        return 1.0 / (1.0 + z)
    z = math.exp(eta)
    return z / (1.0 + z)


def _linear_predictor(coef: list[float], change: list[float]) -> float:
    # Zero change statistics never contribute, even against infinite offsets
    return sum(c * x for c, x in zip(coef, change) if x != 0)


class DyadIndependentSampler:
    """Exact sampler for dyad-independent (T)ERGMs on undirected networks."""

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self.rng = random.Random(seed)

    def simulate(self, request: SimulationRequest) -> SimulationResult:
        if request.control.parallel > 0:
            logger.debug(
                f"Sampler asked for {request.control.parallel} workers; "
                f"drawing single-threaded"
            )
        if request.time_slices < 1:
            raise ValueError(f"time_slices must be >= 1, got {request.time_slices}")
        if not request.dynamic:
            return self._simulate_cross_sectional(request)
        return self._simulate_dynamic(request)

    # =========================================================================
    # Cross-sectional
    # =========================================================================

    def _simulate_cross_sectional(self, request: SimulationRequest) -> SimulationResult:
        basis = request.basis
        if not isinstance(basis, NetworkLite):
            raise TypeError("Cross-sectional draws need a NetworkLite basis")

        nodes = basis.active_nodes()
        attrs = basis.vertex_attributes()
        prob = self._probability_function(request.formula, request.coef, attrs, len(nodes))
        edges = [(i, j) for i, j in self._eligible_dyads(nodes) if self.rng.random() < prob(i, j)]
        network = basis.with_edges(edges)

        stats = None
        if request.monitor is not None:
            stats = self._new_stats(request.formula, request.monitor, attrs)
            self._record_stats(stats, request.formula, request.monitor, edges, attrs, nodes)
        return SimulationResult(network=network, stats=stats)

    # =========================================================================
    # Dynamic
    # =========================================================================

    def _simulate_dynamic(self, request: SimulationRequest) -> SimulationResult:
        basis = request.basis
        attrs = basis.vertex_attributes()
        first_time = request.time_start + request.time_offset

        temporal: TemporalNetwork | None = None
        if isinstance(basis, TemporalNetwork):
            temporal = basis.copy()
            nodes = basis.active_nodes(first_time)
        else:
            nodes = basis.active_nodes()
        node_set = set(nodes)

        current: set[Edge] = {
            (i, j) for i, j in basis.as_edgelist() if i in node_set and j in node_set
        }

        if request.formula.is_tergm:
            form, persist = request.formula.split_tergm()
            n_form = len(formula_labels(form, attrs))
            form_prob = self._probability_function(
                form, request.coef[:n_form], attrs, len(nodes)
            )
            persist_prob = self._probability_function(
                persist, request.coef[n_form:], attrs, len(nodes)
            )
        else:
            form_prob = persist_prob = self._probability_function(
                request.formula, request.coef, attrs, len(nodes)
            )

        network_attrs = basis.network_attributes()
        lasttoggle = network_attrs.get("lasttoggle")

        stats = None
        if request.monitor is not None:
            stats = self._new_stats(request.formula, request.monitor, attrs)

        dyads = self._eligible_dyads(nodes)
        if not dyads:
            warnings.warn(
                f"No eligible dyads among {len(nodes)} active nodes; "
                f"network is empty for this window",
                SamplerWarning,
                stacklevel=2,
            )

        for k in range(request.time_slices):
            t = first_time + k
            toggles: list[Edge] = []
            for dyad in dyads:
                i, j = dyad
                if dyad in current:
                    if self.rng.random() >= persist_prob(i, j):
                        toggles.append(dyad)
                elif self.rng.random() < form_prob(i, j):
                    toggles.append(dyad)

            for dyad in toggles:
                if dyad in current:
                    current.discard(dyad)
                else:
                    current.add(dyad)
                if lasttoggle is not None:
                    lasttoggle[dyad] = t
                if temporal is not None:
                    temporal.toggle_edge(dyad[0], dyad[1], t)

            if stats is not None:
                self._record_stats(
                    stats, request.formula, request.monitor, sorted(current), attrs, nodes
                )

        if lasttoggle is not None:
            network_attrs["lasttoggle"] = lasttoggle
        if "time" in network_attrs:
            network_attrs["time"] = first_time + request.time_slices - 1

        if request.output == "dynamic":
            if temporal is None:
                raise TypeError("output='dynamic' needs a TemporalNetwork basis")
            temporal.extend_observations(first_time, first_time + request.time_slices)
            return SimulationResult(network=temporal, stats=stats)

        if isinstance(basis, NetworkLite):
            network = basis.with_edges(current, network_attributes=network_attrs)
        else:
            network = NetworkLite(basis.num_nodes, current, attrs, {})
        return SimulationResult(network=network, stats=stats)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _eligible_dyads(nodes: list[int]) -> list[Edge]:
        return list(combinations(sorted(nodes), 2))

    @staticmethod
    def _probability_function(formula, coef, attrs, num_active):
        labels = formula_labels(formula, attrs)
        if len(coef) != len(labels):
            raise ValueError(
                f"{len(coef)} coefficients given for {len(labels)} statistics "
                f"({', '.join(labels)}) of {formula}"
            )
        change = dyad_change_function(formula, attrs, num_active)
        coef = list(coef)
        return lambda i, j: logistic(_linear_predictor(coef, change(i, j)))

    @staticmethod
    def _new_stats(formula: Formula, monitor: Formula, attrs) -> StatsMatrix:
        return StatsMatrix(
            columns=formula_labels(formula, attrs) + formula_labels(monitor, attrs)
        )

    @staticmethod
    def _record_stats(stats, formula, monitor, edges, attrs, nodes) -> None:
        row = [v for _, v in summary_statistics(formula, edges, attrs, nodes)]
        row += [v for _, v in summary_statistics(monitor, edges, attrs, nodes)]
        stats.append(row)
