"""Tests for the reference network sampler.

Functions under test in netresim/network/sampler.py.
"""

import math
import warnings

import pytest

from netresim.core.errors import SamplerWarning
from netresim.core.models import SamplerControl
from netresim.network.dynamic import TemporalNetwork
from netresim.network.formula import Formula
from netresim.network.lite import NetworkLite
from netresim.network.sampler import (
    DyadIndependentSampler,
    NetworkSimulator,
    SimulationRequest,
    logistic,
)


def _make_basis(num_nodes=6, edges=(), network_attributes=None, active=None):
    return NetworkLite(
        num_nodes,
        edges,
        {"active": active or [1] * num_nodes, "group": [1, 2] * (num_nodes // 2)},
        network_attributes,
    )


def _all_dyads(n):
    return [(i, j) for i in range(n) for j in range(i + 1, n)]


class TestLogistic:
    def test_midpoint(self):
        assert logistic(0.0) == 0.5

    def test_infinities(self):
        assert logistic(math.inf) == 1.0
        assert logistic(-math.inf) == 0.0

    def test_large_values_do_not_overflow(self):
        assert logistic(1000.0) == pytest.approx(1.0)
        assert logistic(-1000.0) == pytest.approx(0.0)


class TestCrossSectional:
    """Test time-0 draws."""

    def test_satisfies_protocol(self):
        assert isinstance(DyadIndependentSampler(seed=1), NetworkSimulator)

    def test_certain_edges(self):
        sampler = DyadIndependentSampler(seed=1)
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.parse("~edges"),
                coef=[math.inf],
                basis=_make_basis(),
                dynamic=False,
            )
        )
        assert result.network.as_edgelist() == _all_dyads(6)
        assert result.stats is None

    def test_nodematch_only_within_group(self):
        sampler = DyadIndependentSampler(seed=1)
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.parse("~edges + nodematch('group')"),
                coef=[-50.0, 100.0],
                basis=_make_basis(),
                dynamic=False,
            )
        )
        groups = [1, 2] * 3
        edges = result.network.as_edgelist()
        assert edges
        assert all(groups[i] == groups[j] for i, j in edges)

    def test_inactive_nodes_get_no_edges(self):
        sampler = DyadIndependentSampler(seed=1)
        basis = _make_basis(active=[1, 1, 0, 1, 0, 1])
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.parse("~edges"), coef=[math.inf], basis=basis, dynamic=False
            )
        )
        assert result.network.as_edgelist() == [
            (0, 1),
            (0, 3),
            (0, 5),
            (1, 3),
            (1, 5),
            (3, 5),
        ]

    def test_coefficient_count_checked(self):
        sampler = DyadIndependentSampler(seed=1)
        with pytest.raises(ValueError, match="coefficients"):
            sampler.simulate(
                SimulationRequest(
                    formula=Formula.parse("~edges + nodematch('group')"),
                    coef=[-1.0],
                    basis=_make_basis(),
                    dynamic=False,
                )
            )

    def test_same_seed_same_draw(self):
        def draw():
            return (
                DyadIndependentSampler(seed=42)
                .simulate(
                    SimulationRequest(
                        formula=Formula.parse("~edges"),
                        coef=[0.0],
                        basis=_make_basis(num_nodes=20),
                        dynamic=False,
                    )
                )
                .network.as_edgelist()
            )

        assert draw() == draw()


class TestDynamic:
    """Test per-slice advances."""

    def test_persistence_keeps_edges_and_formation_blocked(self):
        sampler = DyadIndependentSampler(seed=3)
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.compose_tergm("~edges", "~offset(edges)"),
                coef=[-math.inf, math.inf],
                basis=_make_basis(edges=[(0, 1), (2, 3)]),
                time_slices=5,
            )
        )
        assert result.network.as_edgelist() == [(0, 1), (2, 3)]

    def test_no_persistence_drops_edges(self):
        sampler = DyadIndependentSampler(seed=3)
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.compose_tergm("~edges", "~offset(edges)"),
                coef=[-math.inf, -math.inf],
                basis=_make_basis(edges=[(0, 1), (2, 3)]),
            )
        )
        assert result.network.as_edgelist() == []

    def test_duration_attributes_updated(self):
        sampler = DyadIndependentSampler(seed=3)
        basis = _make_basis(
            edges=[(0, 1)],
            network_attributes={"time": 4, "lasttoggle": {(0, 1): 0}},
        )
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.compose_tergm("~edges", "~offset(edges)"),
                coef=[-math.inf, -math.inf],
                basis=basis,
                time_start=4,
                time_offset=1,
            )
        )
        attrs = result.network.network_attributes()
        assert attrs["time"] == 5
        assert attrs["lasttoggle"] == {(0, 1): 5}

    def test_monitor_records_one_row_per_slice(self):
        sampler = DyadIndependentSampler(seed=3)
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.compose_tergm("~edges", "~offset(edges)"),
                coef=[math.inf, math.inf],
                basis=_make_basis(num_nodes=4),
                time_slices=3,
                monitor=Formula.parse("~edges + isolates"),
            )
        )
        stats = result.stats
        assert stats.columns == ["Form~edges", "Persist~offset(edges)", "edges", "isolates"]
        assert len(stats) == 3
        assert stats.column("edges") == [6.0, 6.0, 6.0]
        assert stats.column("isolates") == [0.0, 0.0, 0.0]

    def test_no_dyads_warns(self):
        sampler = DyadIndependentSampler(seed=3)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            result = sampler.simulate(
                SimulationRequest(
                    formula=Formula.parse("~edges"),
                    coef=[0.0],
                    basis=_make_basis(num_nodes=2, active=[1, 0]),
                )
            )
        assert any(issubclass(w.category, SamplerWarning) for w in caught)
        assert result.network.as_edgelist() == []

    def test_temporal_basis_dynamic_output(self):
        basis = TemporalNetwork.from_static(_make_basis(num_nodes=4, edges=[(0, 1)]))
        basis.set_net_obs_period([(0, 1)])
        sampler = DyadIndependentSampler(seed=3)
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.compose_tergm("~edges", "~offset(edges)"),
                coef=[-math.inf, -math.inf],
                basis=basis,
                time_start=1,
                time_offset=0,
                output="dynamic",
            )
        )
        nw = result.network
        assert isinstance(nw, TemporalNetwork)
        assert nw.edge_spells(0, 1) == [(0, 1)]
        assert nw.net_obs_period["observations"] == [[0, 1], [1, 2]]
        # the basis is not modified
        assert basis.as_edgelist() == [(0, 1)]

    def test_dynamic_output_needs_temporal_basis(self):
        sampler = DyadIndependentSampler(seed=3)
        with pytest.raises(TypeError, match="TemporalNetwork"):
            sampler.simulate(
                SimulationRequest(
                    formula=Formula.parse("~edges"),
                    coef=[0.0],
                    basis=_make_basis(),
                    output="dynamic",
                )
            )

    def test_parallel_request_is_accepted(self):
        sampler = DyadIndependentSampler(seed=3)
        result = sampler.simulate(
            SimulationRequest(
                formula=Formula.parse("~edges"),
                coef=[math.inf],
                basis=_make_basis(num_nodes=4),
                control=SamplerControl(parallel=4),
            )
        )
        assert result.network.as_edgelist() == _all_dyads(4)

    def test_time_slices_must_be_positive(self):
        sampler = DyadIndependentSampler(seed=3)
        with pytest.raises(ValueError, match="time_slices"):
            sampler.simulate(
                SimulationRequest(
                    formula=Formula.parse("~edges"),
                    coef=[0.0],
                    basis=_make_basis(),
                    time_slices=0,
                )
            )
