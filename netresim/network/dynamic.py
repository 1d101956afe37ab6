"""Full temporal network with activity spells for vertices and edges.

Spells are half-open ``[onset, terminus)`` intervals; an open spell has
``terminus == inf``. The most recent state is the set of open edge spells,
and ``collapse(at)`` produces the static snapshot at any recorded time.
"""

import copy
import math
from typing import Any, Iterable, Sequence

import networkx as nx

from .base import Edge, normalize_edge, normalize_edges
from .lite import NetworkLite

INF = math.inf

Spell = list[float]


def _active_in(spells: list[Spell], at: float) -> bool:
    return any(onset <= at < terminus for onset, terminus in spells)


class TemporalNetwork:
    """Undirected dynamic network on nodes ``0..num_nodes-1``."""

    def __init__(
        self,
        num_nodes: int,
        vertex_attributes: dict[str, Sequence[Any]] | None = None,
        network_attributes: dict[str, Any] | None = None,
    ):
        self._num_nodes = int(num_nodes)
        self._vertex_spells: list[list[Spell]] = [[] for _ in range(self._num_nodes)]
        self._edge_spells: dict[Edge, list[Spell]] = {}
        self._vertex_attributes: dict[str, list[Any]] = {
            name: list(values) for name, values in (vertex_attributes or {}).items()
        }
        self._network_attributes: dict[str, Any] = dict(network_attributes or {})

    @classmethod
    def from_static(cls, network: NetworkLite, onset: float = 0) -> "TemporalNetwork":
        """Wrap a static network whose active vertices and edges start at ``onset``."""
        temporal = cls(
            network.num_nodes,
            network.vertex_attributes(),
            {
                k: v
                for k, v in network.network_attributes().items()
                if k not in ("time", "lasttoggle")
            },
        )
        temporal.activate_vertices(onset, vertices=network.active_nodes())
        temporal.activate_edges(onset, edges=network.as_edgelist())
        return temporal

    # =========================================================================
    # Activity
    # =========================================================================

    def activate_vertices(
        self,
        onset: float,
        terminus: float = INF,
        vertices: Iterable[int] | None = None,
    ) -> None:
        targets = range(self._num_nodes) if vertices is None else vertices
        for v in targets:
            self._vertex_spells[v].append([onset, terminus])

    def deactivate_vertices(self, at: float, vertices: Iterable[int]) -> None:
        """End the open spells of ``vertices`` and of their edges at ``at``."""
        targets = set(vertices)
        for v in targets:
            for spell in self._vertex_spells[v]:
                if spell[1] == INF:
                    spell[1] = at
        for (i, j), spells in self._edge_spells.items():
            if i in targets or j in targets:
                for spell in spells:
                    if spell[1] == INF:
                        spell[1] = at

    def add_vertices(
        self,
        count: int,
        onset: float,
        vertex_attributes: dict[str, Sequence[Any]] | None = None,
    ) -> list[int]:
        """Append ``count`` vertices active from ``onset``; returns their ids."""
        new_ids = list(range(self._num_nodes, self._num_nodes + count))
        self._num_nodes += count
        for _ in new_ids:
            self._vertex_spells.append([[onset, INF]])
        extra = vertex_attributes or {}
        for name, values in self._vertex_attributes.items():
            values.extend(extra.get(name, [None] * count))
        for name, values in extra.items():
            if name not in self._vertex_attributes:
                self._vertex_attributes[name] = [None] * (self._num_nodes - count) + list(values)
        return new_ids

    def activate_edges(
        self,
        onset: float,
        terminus: float = INF,
        edges: Iterable[Edge] | None = None,
    ) -> None:
        targets = list(self._edge_spells) if edges is None else normalize_edges(edges)
        for edge in targets:
            self._edge_spells.setdefault(edge, []).append([onset, terminus])

    def toggle_edge(self, tail: int, head: int, at: float) -> None:
        """Close the edge's open spell at ``at``, or open a new one."""
        edge = normalize_edge(tail, head)
        spells = self._edge_spells.setdefault(edge, [])
        for spell in spells:
            if spell[1] == INF:
                spell[1] = at
                return
        spells.append([at, INF])

    def is_vertex_active(self, vertex: int, at: float) -> bool:
        return _active_in(self._vertex_spells[vertex], at)

    def is_edge_active(self, tail: int, head: int, at: float) -> bool:
        return _active_in(self._edge_spells.get(normalize_edge(tail, head), []), at)

    def edge_spells(self, tail: int, head: int) -> list[tuple[float, float]]:
        return [tuple(s) for s in self._edge_spells.get(normalize_edge(tail, head), [])]

    def vertex_spells(self, vertex: int) -> list[tuple[float, float]]:
        return [tuple(s) for s in self._vertex_spells[vertex]]

    # =========================================================================
    # Representation interface
    # =========================================================================

    @property
    def num_nodes(self) -> int:
        return self._num_nodes

    def as_edgelist(self) -> list[Edge]:
        return sorted(
            edge
            for edge, spells in self._edge_spells.items()
            if any(terminus == INF for _, terminus in spells)
        )

    def edges_at(self, at: float) -> list[Edge]:
        return sorted(
            edge for edge, spells in self._edge_spells.items() if _active_in(spells, at)
        )

    def active_nodes(self, at: float | None = None) -> list[int]:
        """Vertices active at ``at``, or holding an open spell when ``at`` is None."""
        if at is None:
            return [
                v
                for v, spells in enumerate(self._vertex_spells)
                if any(terminus == INF for _, terminus in spells)
            ]
        return [v for v, spells in enumerate(self._vertex_spells) if _active_in(spells, at)]

    def collapse(self, at: float | None = None) -> nx.Graph:
        graph = nx.Graph()
        nodes = self.active_nodes(at)
        for node in nodes:
            graph.add_node(
                node,
                **{name: values[node] for name, values in self._vertex_attributes.items()},
            )
        edges = self.as_edgelist() if at is None else self.edges_at(at)
        graph.add_edges_from((i, j) for i, j in edges if i in graph and j in graph)
        graph.graph.update(
            {k: v for k, v in self._network_attributes.items() if k != "net_obs_period"}
        )
        return graph

    def network_attributes(self) -> dict[str, Any]:
        return copy.deepcopy(self._network_attributes)

    def vertex_attributes(self) -> dict[str, list[Any]]:
        return {name: list(values) for name, values in self._vertex_attributes.items()}

    def set_vertex_attribute(self, name: str, values: Sequence[Any]) -> None:
        if len(values) != self._num_nodes:
            raise ValueError(
                f"Vertex attribute {name!r} has {len(values)} values "
                f"for {self._num_nodes} nodes"
            )
        self._vertex_attributes[name] = list(values)

    @property
    def net_obs_period(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._network_attributes.get("net_obs_period"))

    def set_net_obs_period(self, observations: list[tuple[float, float]]) -> None:
        self._network_attributes["net_obs_period"] = {
            "observations": [list(o) for o in observations],
            "mode": "discrete",
            "time_increment": 1,
            "time_unit": "step",
        }

    def extend_observations(self, start: float, end: float) -> None:
        period = self._network_attributes.get("net_obs_period")
        if period is None:
            self.set_net_obs_period([(start, end)])
        else:
            period["observations"].append([start, end])

    def copy(self) -> "TemporalNetwork":
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return (
            f"TemporalNetwork(num_nodes={self._num_nodes}, "
            f"num_dyads_with_spells={len(self._edge_spells)})"
        )
