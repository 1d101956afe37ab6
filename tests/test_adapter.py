"""Tests for the state container and the representation adapter.

Functions under test in netresim/simulation/state.py and
netresim/simulation/adapter.py.
"""

import pytest

from netresim.core.errors import ConfigurationError
from netresim.core.models import NetworkControl, NetworkParameters, RunControl, dissolution_coefs
from netresim.network.dynamic import TemporalNetwork
from netresim.network.lite import NetworkLite
from netresim.simulation.adapter import (
    add_vertices,
    current_edges,
    deactivate_vertices,
    get_network,
    set_network,
)
from netresim.simulation.engine import initial_attributes
from netresim.simulation.state import SimulationState


def _make_params():
    return NetworkParameters(
        formation="~edges", coef_form=[-3.0], coef_diss=dissolution_coefs(duration=10)
    )


def _make_state(num_nodes=6, num_networks=1, **control_kwargs):
    control_kwargs.setdefault("nsteps", 5)
    control = RunControl(**control_kwargs)
    return SimulationState(
        [_make_params() for _ in range(num_networks)],
        control,
        initial_attributes(num_nodes, control.groups),
    )


class TestSimulationState:
    """Test construction checks and accessors."""

    def test_params_are_copied(self):
        params = _make_params()
        state = SimulationState([params], RunControl(nsteps=5), initial_attributes(4))
        state.params(1).shift_base_coefficient(1.0)
        assert params.coef_form == [-3.0]
        assert state.params(1).coef_form == [-2.0]

    def test_requires_active_attribute(self):
        with pytest.raises(ConfigurationError, match="active"):
            SimulationState([_make_params()], RunControl(nsteps=5), {"group": [1, 2]})

    def test_two_groups_require_group_attribute(self):
        with pytest.raises(ConfigurationError, match="group"):
            SimulationState(
                [_make_params()], RunControl(nsteps=5, groups=2), {"active": [1, 1]}
            )

    def test_attribute_lengths_must_agree(self):
        with pytest.raises(ConfigurationError, match="same length"):
            SimulationState(
                [_make_params()],
                RunControl(nsteps=5),
                {"active": [1, 1, 1], "age": [20, 30]},
            )

    def test_network_index_is_one_based(self):
        state = _make_state(num_networks=2)
        assert list(state.networks()) == [1, 2]
        with pytest.raises(IndexError):
            state.slot(0)
        with pytest.raises(IndexError):
            state.params(3)

    def test_append_nodes_fills_missing_attributes(self):
        state = _make_state(num_nodes=3)
        ids = state.append_nodes(2, {"active": [1, 1], "age": [30, 40]})
        assert ids == [3, 4]
        assert state.num_nodes == 5
        assert state.attr["entry_time"] == [0, 0, 0, None, None]
        assert state.attr["age"] == [None, None, None, 30, 40]

    def test_commit_bumps_revision(self):
        state = _make_state()
        before = state.revision(1)
        state.commit_edgelist(1, [(0, 1)])
        state.touch(1)
        assert state.revision(1) == before + 2


class TestLightweightAdapter:
    """Edge-list storage round trips."""

    def test_round_trip_without_duration(self):
        state = _make_state()
        set_network(
            state, 1, NetworkLite(6, [(0, 1), (2, 5)], state.attr, {"time": 3})
        )
        assert state.slot(1).el == [(0, 1), (2, 5)]
        assert state.slot(1).net_attr == {}

        nw = get_network(state, 1)
        assert isinstance(nw, NetworkLite)
        assert nw.as_edgelist() == [(0, 1), (2, 5)]
        assert nw.vertex_attributes()["active"] == [1] * 6
        assert current_edges(state, 1, at=3) == [(0, 1), (2, 5)]

    def test_round_trip_with_duration(self):
        state = _make_state(networks=[NetworkControl(track_duration=True)])
        attrs = {"time": 3, "lasttoggle": {(0, 1): 2}, "other": "dropped"}
        set_network(state, 1, NetworkLite(6, [(0, 1)], state.attr, attrs))

        assert state.slot(1).net_attr == {"time": 3, "lasttoggle": {(0, 1): 2}}
        assert get_network(state, 1).network_attributes() == {
            "time": 3,
            "lasttoggle": {(0, 1): 2},
        }

    def test_deactivate_removes_edges(self):
        state = _make_state(num_networks=2)
        set_network(state, 1, NetworkLite(6, [(0, 1), (2, 3)], state.attr))
        set_network(state, 2, NetworkLite(6, [(1, 4)], state.attr))

        deactivate_vertices(state, [1], at=3)
        assert state.attr["active"] == [1, 0, 1, 1, 1, 1]
        assert state.slot(1).el == [(2, 3)]
        assert state.slot(2).el == []

    def test_deactivate_prunes_lasttoggle(self):
        state = _make_state(networks=[NetworkControl(track_duration=True)])
        attrs = {"time": 3, "lasttoggle": {(0, 1): 2, (2, 3): 1, (1, 4): 3}}
        set_network(state, 1, NetworkLite(6, [(0, 1), (2, 3)], state.attr, attrs))

        deactivate_vertices(state, [1], at=4)
        assert state.slot(1).el == [(2, 3)]
        assert state.slot(1).net_attr == {"time": 3, "lasttoggle": {(2, 3): 1}}

    def test_add_vertices_touches_every_network(self):
        state = _make_state(num_networks=2)
        revisions = [state.revision(n) for n in state.networks()]
        ids = add_vertices(state, 2, at=4, attributes={"active": [1, 1], "entry_time": [4, 4]})
        assert ids == [6, 7]
        assert [state.revision(n) for n in state.networks()] == [r + 1 for r in revisions]
        assert get_network(state, 1).num_nodes == 8

    def test_add_zero_vertices(self):
        state = _make_state()
        assert add_vertices(state, 0, at=2, attributes={}) == []
        assert state.num_nodes == 6


class TestFullAdapter:
    """Temporal network storage."""

    def _make_full_state(self):
        state = _make_state(lightweight=False)
        nw = TemporalNetwork.from_static(NetworkLite(6, [(0, 1), (3, 4)], state.attr))
        set_network(state, 1, nw)
        return state

    def test_uninitialized_network(self):
        state = _make_state(lightweight=False)
        with pytest.raises(RuntimeError, match="not been initialized"):
            get_network(state, 1)

    def test_requires_temporal_network(self):
        state = _make_state(lightweight=False)
        with pytest.raises(TypeError, match="TemporalNetwork"):
            set_network(state, 1, NetworkLite(6, [], state.attr))

    def test_current_edges_at_time(self):
        state = self._make_full_state()
        get_network(state, 1).toggle_edge(3, 4, at=2)
        assert current_edges(state, 1, at=1) == [(0, 1), (3, 4)]
        assert current_edges(state, 1, at=2) == [(0, 1)]

    def test_vertex_changes_reach_the_network(self):
        state = self._make_full_state()
        deactivate_vertices(state, [0], at=2)
        add_vertices(state, 1, at=2, attributes={"active": [1]})

        nw = get_network(state, 1)
        assert nw.num_nodes == 7
        assert nw.edges_at(2) == [(3, 4)]
        assert nw.active_nodes(2) == [1, 2, 3, 4, 5, 6]

    def test_vertex_changes_leave_earlier_references_alone(self):
        state = self._make_full_state()
        before = get_network(state, 1)
        revision = state.revision(1)

        add_vertices(state, 3, at=2, attributes={"active": [1, 1, 1]})
        deactivate_vertices(state, [0], at=2)

        assert before.num_nodes == 6
        assert before.vertex_spells(0) == [(0, float("inf"))]
        assert before.edges_at(2) == [(0, 1), (3, 4)]

        after = get_network(state, 1)
        assert after is not before
        assert after.num_nodes == 9
        assert after.vertex_spells(0) == [(0, 2)]
        assert state.revision(1) == revision + 2
