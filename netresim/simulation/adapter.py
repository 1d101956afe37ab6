"""Representation adapter between the state container and network objects.

In lightweight mode the container stores an edge list per network plus
optional ``time``/``lasttoggle`` network attributes, and a NetworkLite is
rebuilt on demand from those and the shared attribute table. In full mode
the container stores the TemporalNetwork itself.

This module is the only writer of stored network state.
"""

import logging
from typing import Any, Iterable, Sequence

from ..network.base import Edge, NetworkRepresentation
from ..network.dynamic import TemporalNetwork
from ..network.lite import NetworkLite
from .state import SimulationState

logger = logging.getLogger(__name__)

DURATION_ATTRIBUTES = ("time", "lasttoggle")


def get_network(state: SimulationState, network: int) -> NetworkRepresentation:
    """Current representation of ``network`` (1-based)."""
    slot = state.slot(network)
    if state.control.lightweight:
        return NetworkLite(state.num_nodes, slot.el, state.attr, slot.net_attr)
    if slot.nw is None:
        raise RuntimeError(f"Network {network} has not been initialized")
    return slot.nw


def set_network(
    state: SimulationState, network: int, nw: NetworkRepresentation
) -> None:
    """Commit ``nw`` as the current state of ``network``.

    Lightweight mode keeps the edge list, plus ``time`` and ``lasttoggle``
    when the network tracks durations. Full mode keeps the temporal network.
    """
    if state.control.lightweight:
        net_attr = None
        if state.network_control(network).track_duration:
            attrs = nw.network_attributes()
            net_attr = dict(state.slot(network).net_attr)
            net_attr.update({k: attrs[k] for k in DURATION_ATTRIBUTES if k in attrs})
        state.commit_edgelist(network, nw.as_edgelist(), net_attr)
        return

    if not isinstance(nw, TemporalNetwork):
        raise TypeError(
            f"Full representation expects a TemporalNetwork, got {type(nw).__name__}"
        )
    state.commit_temporal(network, nw)


def current_edges(state: SimulationState, network: int, at: int) -> list[Edge]:
    """Edges of ``network`` present at step ``at``."""
    if state.control.lightweight:
        return list(state.slot(network).el)
    return get_network(state, network).edges_at(at)


# =============================================================================
# Vertex changes
# =============================================================================


def add_vertices(
    state: SimulationState,
    count: int,
    at: int,
    attributes: dict[str, Sequence[Any]],
) -> list[int]:
    """Add ``count`` nodes active from ``at`` to the attribute table and every network.

    Full-mode networks are copied and recommitted, so representations handed
    out earlier keep their old vertex set.
    """
    if count <= 0:
        return []
    new_ids = state.append_nodes(count, attributes)
    new_attrs = {name: values[-count:] for name, values in state.attr.items()}
    for network in state.networks():
        nw = state.slot(network).nw
        if state.control.lightweight or nw is None:
            state.touch(network)
            continue
        nw = nw.copy()
        nw.add_vertices(count, onset=at, vertex_attributes=new_attrs)
        state.commit_temporal(network, nw)
    return new_ids


def deactivate_vertices(state: SimulationState, vertices: Iterable[int], at: int) -> None:
    """Mark ``vertices`` inactive from ``at`` and end their edges."""
    targets = set(vertices)
    if not targets:
        return
    active = list(state.attr["active"])
    for v in targets:
        active[v] = 0
    state.set_attr("active", active)

    for network in state.networks():
        if state.control.lightweight:
            remove_node_edges(state, network, targets)
            continue
        nw = state.slot(network).nw
        if nw is not None:
            nw = nw.copy()
            nw.deactivate_vertices(at, targets)
            state.commit_temporal(network, nw)


def remove_node_edges(state: SimulationState, network: int, nodes: Iterable[int]) -> None:
    """Drop every edge touching ``nodes`` from a lightweight network.

    Their ``lasttoggle`` entries go too, so the mapping only covers dyads
    between nodes still in the network.
    """
    targets = set(nodes)
    slot = state.slot(network)
    kept = [(i, j) for i, j in slot.el if i not in targets and j not in targets]
    if len(kept) != len(slot.el):
        logger.debug(
            f"Network {network}: removed {len(slot.el) - len(kept)} edges of departed nodes"
        )

    net_attr = None
    lasttoggle = slot.net_attr.get("lasttoggle")
    if lasttoggle is not None:
        net_attr = dict(slot.net_attr)
        net_attr["lasttoggle"] = {
            dyad: t
            for dyad, t in lasttoggle.items()
            if dyad[0] not in targets and dyad[1] not in targets
        }
    state.commit_edgelist(network, kept, net_attr)
