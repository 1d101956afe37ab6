"""Lightweight network: an edge list plus attribute tables.

Holds only the current state. When duration tracking is on, the network
attributes ``time`` (current step) and ``lasttoggle`` (mapping from edge to
the step of its last change) travel with it.
"""

from typing import Any, Iterable, Sequence

import networkx as nx

from .base import Edge, normalize_edges


class NetworkLite:
    """Undirected network on nodes ``0..num_nodes-1`` stored as an edge list."""

    def __init__(
        self,
        num_nodes: int,
        edges: Iterable[Edge] = (),
        vertex_attributes: dict[str, Sequence[Any]] | None = None,
        network_attributes: dict[str, Any] | None = None,
    ):
        if num_nodes < 0:
            raise ValueError("num_nodes must be non-negative")
        self._num_nodes = int(num_nodes)
        self._edges = normalize_edges(edges)
        for i, j in self._edges:
            if j >= self._num_nodes or i < 0:
                raise ValueError(
                    f"Edge ({i}, {j}) references a node outside 0..{num_nodes - 1}"
                )

        self._vertex_attributes: dict[str, list[Any]] = {}
        for name, values in (vertex_attributes or {}).items():
            if len(values) != self._num_nodes:
                raise ValueError(
                    f"Vertex attribute {name!r} has {len(values)} values "
                    f"for {self._num_nodes} nodes"
                )
            self._vertex_attributes[name] = list(values)

        self._network_attributes = _copy_network_attributes(network_attributes or {})

    @property
    def num_nodes(self) -> int:
        return self._num_nodes

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    def as_edgelist(self) -> list[Edge]:
        return list(self._edges)

    def network_attributes(self) -> dict[str, Any]:
        return _copy_network_attributes(self._network_attributes)

    def vertex_attributes(self) -> dict[str, list[Any]]:
        return {name: list(values) for name, values in self._vertex_attributes.items()}

    def get_network_attribute(self, name: str, default: Any = None) -> Any:
        value = self._network_attributes.get(name, default)
        if isinstance(value, dict):
            return dict(value)
        return value

    def active_nodes(self, at: float | None = None) -> list[int]:
        """Nodes whose ``active`` attribute is 1 (all nodes if untracked).

        ``at`` is accepted for interface compatibility; a lightweight network
        only knows its current state.
        """
        active = self._vertex_attributes.get("active")
        if active is None:
            return list(range(self._num_nodes))
        return [i for i, flag in enumerate(active) if flag == 1]

    def collapse(self, at: float | None = None) -> nx.Graph:
        graph = nx.Graph()
        for node in self.active_nodes(at):
            graph.add_node(
                node,
                **{name: values[node] for name, values in self._vertex_attributes.items()},
            )
        graph.add_edges_from(
            (i, j) for i, j in self._edges if i in graph and j in graph
        )
        graph.graph.update(self.network_attributes())
        return graph

    def with_edges(
        self,
        edges: Iterable[Edge],
        network_attributes: dict[str, Any] | None = None,
    ) -> "NetworkLite":
        """Copy with a new edge set (and optionally new network attributes)."""
        return NetworkLite(
            self._num_nodes,
            edges,
            self._vertex_attributes,
            self._network_attributes if network_attributes is None else network_attributes,
        )

    def with_vertex_attributes(self, vertex_attributes: dict[str, Sequence[Any]]) -> "NetworkLite":
        """Copy with replaced vertex attributes; the node count follows them."""
        lengths = {len(v) for v in vertex_attributes.values()}
        num_nodes = lengths.pop() if len(lengths) == 1 else self._num_nodes
        return NetworkLite(
            num_nodes, self._edges, vertex_attributes, self._network_attributes
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkLite):
            return NotImplemented
        return (
            self._num_nodes == other._num_nodes
            and self._edges == other._edges
            and self._vertex_attributes == other._vertex_attributes
            and self._network_attributes == other._network_attributes
        )

    def __repr__(self) -> str:
        return f"NetworkLite(num_nodes={self._num_nodes}, num_edges={len(self._edges)})"


def _copy_network_attributes(attrs: dict[str, Any]) -> dict[str, Any]:
    copied: dict[str, Any] = {}
    for name, value in attrs.items():
        if isinstance(value, dict):
            copied[name] = dict(value)
        elif isinstance(value, list):
            copied[name] = list(value)
        else:
            copied[name] = value
    return copied
