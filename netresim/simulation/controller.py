"""Time-step resimulation controller.

Sequences the per-step network work: the population gate, the edges
coefficient adjustment, one driver call per network with the update hook
around it, statistics summaries and the cumulative edgelist.
"""

import logging

from ..network.dynamic import TemporalNetwork
from ..network.lite import NetworkLite
from ..network.terms import StatsMatrix, summary_statistics
from .adapter import get_network, set_network
from .adjustment import edges_correct, has_active_population, update_population_counts
from .cumulative import update_cumulative_edgelist
from .driver import NetworkModelDriver
from .state import SimulationState

logger = logging.getLogger(__name__)


def call_hook(state: SimulationState, at: int, network: int) -> SimulationState:
    """Run the state's update hook, passing the state through when unset."""
    if state.hook is None:
        return state
    updated = state.hook(state, at, network)
    return state if updated is None else updated


def summarize_networks(state: SimulationState, at: int) -> None:
    """Record one row of network statistics per network for step ``at``."""
    for network in state.networks():
        params = state.params(network)
        formula = state.network_control(network).nwstats_formula or params.formation
        nw = get_network(state, network)
        if isinstance(nw, TemporalNetwork):
            edges, nodes = nw.edges_at(at), nw.active_nodes(at)
        else:
            edges, nodes = nw.as_edgelist(), nw.active_nodes()

        values = summary_statistics(formula, edges, state.attr, nodes)
        stats = StatsMatrix(columns=[label for label, _ in values])
        stats.append([value for _, value in values])
        state.append_nwstats(network, stats.deduplicated(), first_time=at)


class ResimulationController:
    """Runs the network part of each time step for one replicate."""

    def __init__(self, driver: NetworkModelDriver):
        self.driver = driver

    def initialize(self, state: SimulationState) -> SimulationState:
        """Build the time-0 networks and simulate step 1.

        With per-step resimulation only step 1 is drawn here; otherwise the
        whole run's network dynamics are drawn in one call per network.
        """
        control = state.control

        state = call_hook(state, 0, 0)
        for network in state.networks():
            params = state.params(network)
            if params.edapprox:
                nw = self.driver.initial_network(state, network)
            else:
                nw = NetworkLite(state.num_nodes, params.initial_edges, state.attr)

            if control.lightweight:
                if state.network_control(network).track_duration:
                    edges = nw.as_edgelist()
                    nw = nw.with_edges(
                        edges,
                        network_attributes={
                            "time": 0,
                            "lasttoggle": {edge: 0 for edge in edges},
                        },
                    )
            else:
                nw = TemporalNetwork.from_static(nw, onset=0)
                if control.resimulate_network:
                    nw.set_net_obs_period([(0, 1)])

            set_network(state, network, nw)
            state = call_hook(state, 0, network)
            logger.info(
                f"[SIM {state.sim}] Network {network}: initial network with "
                f"{len(nw.as_edgelist())} edges"
            )

        nsteps = 1 if control.resimulate_network else control.nsteps

        if has_active_population(state):
            update_population_counts(state)

        state = call_hook(state, 1, 0)
        for network in state.networks():
            self.driver.advance(state, network, at=1, nsteps=nsteps)
            state = call_hook(state, 1, network)

        if control.save_nwstats and control.resimulate_network:
            summarize_networks(state, 1)
        for network in state.networks():
            update_cumulative_edgelist(state, network, 1, control.truncate_el_cuml)
        return state

    def resimulate(self, state: SimulationState, at: int) -> SimulationState:
        """Advance every network to step ``at`` (``at >= 2``).

        Networks are left unchanged when resimulation is off or nobody is
        available to connect; the cumulative edgelist is updated either way.
        """
        control = state.control

        if not has_active_population(state):
            logger.debug(f"[TIMESTEP {at}] No active population; networks unchanged")
        elif control.resimulate_network:
            edges_correct(state, at)
            update_population_counts(state)

            state = call_hook(state, at, 0)
            for network in state.networks():
                self.driver.advance(state, network, at=at)
                state = call_hook(state, at, network)

            if control.save_nwstats:
                summarize_networks(state, at)

        for network in state.networks():
            update_cumulative_edgelist(state, network, at, control.truncate_el_cuml)
        return state
