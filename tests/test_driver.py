"""Tests for the network model driver.

Functions under test in netresim/simulation/driver.py.
"""

import math
import warnings

import pytest

from netresim.core.errors import SamplerWarning
from netresim.core.models import (
    NetworkControl,
    NetworkParameters,
    RunControl,
    SamplerControl,
    dissolution_coefs,
)
from netresim.network.dynamic import TemporalNetwork
from netresim.network.formula import Formula
from netresim.network.lite import NetworkLite
from netresim.network.sampler import SimulationResult
from netresim.network.terms import StatsMatrix
from netresim.simulation.adapter import set_network
from netresim.simulation.driver import NetworkModelDriver, model_terms
from netresim.simulation.engine import initial_attributes
from netresim.simulation.state import SimulationState


class RecordingSimulator:
    """Returns the basis unchanged (plus ``extra_edge``) and records every request."""

    def __init__(self, extra_edge=(0, 1), stats_columns=None, fail_with=None):
        self.requests = []
        self.extra_edge = extra_edge
        self.stats_columns = stats_columns
        self.fail_with = fail_with

    def simulate(self, request):
        self.requests.append(request)
        warnings.warn("sampler noise", SamplerWarning)
        if self.fail_with is not None:
            raise self.fail_with

        basis = request.basis
        if isinstance(basis, TemporalNetwork):
            network = basis.copy()
            network.toggle_edge(*self.extra_edge, request.time_start + request.time_offset)
        else:
            network = basis.with_edges(basis.as_edgelist() + [self.extra_edge])

        stats = None
        if request.monitor is not None and self.stats_columns is not None:
            stats = StatsMatrix(columns=self.stats_columns)
            for k in range(request.time_slices):
                stats.append([float(k)] * len(self.stats_columns))
        return SimulationResult(network=network, stats=stats)


def _make_params(duration=20, **kwargs):
    defaults = {
        "formation": "~edges + nodematch('group')",
        "coef_form": [-4.0, 0.5],
        "coef_diss": dissolution_coefs(duration=duration),
    }
    defaults.update(kwargs)
    return NetworkParameters(**defaults)


def _make_state(params=None, num_nodes=6, **control_kwargs):
    control_kwargs.setdefault("nsteps", 10)
    control = RunControl(**control_kwargs)
    state = SimulationState(
        [params or _make_params()], control, initial_attributes(num_nodes, 2)
    )
    if control.lightweight:
        set_network(state, 1, NetworkLite(num_nodes, [], state.attr))
    else:
        nw = TemporalNetwork.from_static(NetworkLite(num_nodes, [], state.attr))
        set_network(state, 1, nw)
    return state


class TestModelTerms:
    """Test the formula and coefficient choice."""

    def test_durational_model(self):
        params = _make_params(duration=20)
        formula, coef, control = model_terms(params, SamplerControl(parallel=3))
        assert formula == Formula.compose_tergm(params.formation, "~offset(edges)")
        assert coef == [-4.0, 0.5] + params.coef_diss.coef_adj
        assert control.parallel == 0
        assert control.discordance_fraction is None

    def test_durational_uses_adjusted_coefficient(self):
        params = _make_params(coef_diss=dissolution_coefs(duration=20, d_rate=0.01))
        _, coef, _ = model_terms(params, SamplerControl())
        assert coef[-1] == params.coef_diss.coef_adj[0]
        assert coef[-1] != params.coef_diss.coef_crude[0]

    def test_unit_duration_uses_formation_only(self):
        params = _make_params(duration=1)
        formula, coef, control = model_terms(
            params, SamplerControl(parallel=2, discordance_fraction=0.5)
        )
        assert formula == params.formation
        assert coef == [-4.0, 0.5]
        assert control.parallel == 0
        assert control.discordance_fraction == 0.0

    def test_caller_control_not_modified(self):
        original = SamplerControl(parallel=4, options={"burnin": 10})
        _, _, control = model_terms(_make_params(), original)
        control.options["burnin"] = 20
        assert original.parallel == 4
        assert original.options == {"burnin": 10}


class TestAdvance:
    """Test request construction and commit."""

    def test_lightweight_request(self):
        sim = RecordingSimulator()
        state = _make_state(
            networks=[NetworkControl(tergm_control=SamplerControl(parallel=8))]
        )
        NetworkModelDriver(sim).advance(state, 1, at=5)

        request = sim.requests[0]
        assert request.time_start == 4
        assert request.time_offset == 1
        assert request.time_slices == 1
        assert request.dynamic
        assert request.output == "final"
        assert request.monitor is None
        assert request.control.parallel == 0
        assert request.constraints == "~."
        assert state.slot(1).el == [(0, 1)]

    def test_full_mode_offset_zero(self):
        sim = RecordingSimulator()
        state = _make_state(lightweight=False)
        NetworkModelDriver(sim).advance(state, 1, at=5)

        request = sim.requests[0]
        assert request.time_start == 5
        assert request.time_offset == 0
        assert request.output == "dynamic"
        assert state.slot(1).nw.is_edge_active(0, 1, 5)

    def test_full_mode_without_resimulation(self):
        sim = RecordingSimulator(stats_columns=["edges", "nodematch.group", "edges"])
        state = _make_state(lightweight=False, resimulate_network=False, save_nwstats=True)
        NetworkModelDriver(sim).advance(state, 1, at=1, nsteps=3)

        request = sim.requests[0]
        assert request.time_start == 0
        assert request.time_offset == 1
        assert request.time_slices == 3
        assert request.monitor == state.params(1).formation

        stats = state.slot(1).nwstats
        assert [row["time"] for row in stats] == [1, 2, 3]
        assert list(stats[0]) == ["time", "edges", "nodematch.group"]

    def test_monitor_prefers_nwstats_formula(self):
        sim = RecordingSimulator()
        state = _make_state(
            lightweight=False,
            resimulate_network=False,
            save_nwstats=True,
            networks=[NetworkControl(nwstats_formula="~edges + isolates")],
        )
        NetworkModelDriver(sim).advance(state, 1, at=1)
        assert sim.requests[0].monitor == Formula.parse("~edges + isolates")

    def test_no_monitor_when_resimulating(self):
        sim = RecordingSimulator()
        state = _make_state(save_nwstats=True)
        NetworkModelDriver(sim).advance(state, 1, at=3)
        assert sim.requests[0].monitor is None
        assert state.slot(1).nwstats == []

    def test_sampler_warnings_suppressed(self):
        sim = RecordingSimulator()
        state = _make_state()
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            NetworkModelDriver(sim).advance(state, 1, at=2)
        assert not any(issubclass(w.category, SamplerWarning) for w in caught)

    def test_sampler_errors_propagate(self):
        sim = RecordingSimulator(fail_with=RuntimeError("sampler blew up"))
        state = _make_state()
        with pytest.raises(RuntimeError, match="blew up"):
            NetworkModelDriver(sim).advance(state, 1, at=2)
        assert state.slot(1).el == []

    def test_uses_current_coefficients(self):
        sim = RecordingSimulator()
        state = _make_state()
        state.params(1).shift_base_coefficient(math.log(2))
        NetworkModelDriver(sim).advance(state, 1, at=2)
        assert sim.requests[0].coef[0] == pytest.approx(-4.0 + math.log(2))


class TestInitialNetwork:
    def test_cross_sectional_request(self):
        sim = RecordingSimulator(extra_edge=(2, 3))
        state = _make_state(
            networks=[NetworkControl(ergm_control=SamplerControl(mcmc_interval=50))]
        )
        nw = NetworkModelDriver(sim).initial_network(state, 1)

        request = sim.requests[0]
        assert not request.dynamic
        assert request.formula == state.params(1).formation
        assert request.coef == state.params(1).cross_sectional_coefs()
        assert request.control.mcmc_interval == 50
        assert nw.as_edgelist() == [(2, 3)]


class TestReuseBasis:
    """The previous output is reused only while the stored state is unchanged."""

    def test_reuses_last_output(self):
        sim = RecordingSimulator()
        state = _make_state()
        driver = NetworkModelDriver(sim, reuse_basis=True)
        first = driver.advance(state, 1, at=2)
        driver.advance(state, 1, at=3)
        assert sim.requests[1].basis == first.with_vertex_attributes(state.attr)

    def test_rebuilds_after_external_write(self):
        sim = RecordingSimulator()
        state = _make_state()
        driver = NetworkModelDriver(sim, reuse_basis=True)
        driver.advance(state, 1, at=2)
        state.commit_edgelist(1, [(4, 5)])
        driver.advance(state, 1, at=3)
        assert sim.requests[1].basis.as_edgelist() == [(4, 5)]

    def test_rebuilds_after_population_change(self):
        sim = RecordingSimulator()
        state = _make_state()
        driver = NetworkModelDriver(sim, reuse_basis=True)
        driver.advance(state, 1, at=2)
        state.append_nodes(2, {"active": [1, 1], "group": [1, 2]})
        state.touch(1)
        driver.advance(state, 1, at=3)
        assert sim.requests[1].basis.num_nodes == 8
