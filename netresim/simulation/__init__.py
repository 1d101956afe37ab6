"""Step-wise network resimulation.

- state.py: the per-run SimulationState container
- adapter.py: the only writer of stored network state
- adjustment.py: degree-preserving edges coefficient correction
- driver.py: one sampler call per network per advance
- controller.py: per-step sequencing (t=1 initialisation and t>=2 updates)
- cumulative.py: windowed partnership history
- engine.py: replicates of the step loop
- results.py: extraction helpers
"""

from .state import CumulativeEdge, NetworkSlot, SimulationState, StateHook
from .adapter import (
    add_vertices,
    current_edges,
    deactivate_vertices,
    remove_node_edges,
    set_network,
)
from .adapter import get_network as get_state_network
from .adjustment import (
    compute_edges_adjustment,
    count_active,
    edges_correct,
    has_active_population,
    update_population_counts,
)
from .driver import NetworkModelDriver, model_terms
from .controller import ResimulationController, call_hook, summarize_networks
from .cumulative import update_cumulative_edgelist
from .demography import BirthDeathModule
from .engine import (
    NetsimResult,
    RunOutput,
    initial_attributes,
    run_netsim,
    run_replicates,
    run_simulation,
)
from .results import get_cumulative_edgelist, get_network, get_nwstats

__all__ = [
    "CumulativeEdge",
    "NetworkSlot",
    "SimulationState",
    "StateHook",
    "add_vertices",
    "current_edges",
    "deactivate_vertices",
    "remove_node_edges",
    "set_network",
    "get_state_network",
    "compute_edges_adjustment",
    "count_active",
    "edges_correct",
    "has_active_population",
    "update_population_counts",
    "NetworkModelDriver",
    "model_terms",
    "ResimulationController",
    "call_hook",
    "summarize_networks",
    "update_cumulative_edgelist",
    "BirthDeathModule",
    "NetsimResult",
    "RunOutput",
    "initial_attributes",
    "run_netsim",
    "run_replicates",
    "run_simulation",
    "get_cumulative_edgelist",
    "get_network",
    "get_nwstats",
]
