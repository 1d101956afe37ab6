"""Capability interface shared by both network representations.

The driver, the adapter and the reporting helpers only ever talk to a
network through these methods, so the lightweight edge-list form and the
full temporal form are interchangeable wherever the run configuration
allows either.
"""

from typing import Any, Iterable, Protocol, runtime_checkable

import networkx as nx

Edge = tuple[int, int]


def normalize_edge(tail: int, head: int) -> Edge:
    """Order an undirected dyad as ``(min, max)``.

    Raises:
        ValueError: For self-loops
    """
    if tail == head:
        raise ValueError(f"Self-loop on node {tail} is not allowed")
    return (tail, head) if tail < head else (head, tail)


def normalize_edges(edges: Iterable[Edge]) -> list[Edge]:
    """Deduplicate and sort an undirected edge list."""
    return sorted({normalize_edge(int(i), int(j)) for i, j in edges})


@runtime_checkable
class NetworkRepresentation(Protocol):
    """What every network representation can do."""

    @property
    def num_nodes(self) -> int: ...

    def as_edgelist(self) -> list[Edge]:
        """Edges in the current (most recent) state."""
        ...

    def collapse(self, at: float | None = None) -> nx.Graph:
        """Static snapshot as a networkx graph."""
        ...

    def network_attributes(self) -> dict[str, Any]: ...

    def vertex_attributes(self) -> dict[str, list[Any]]: ...

    def active_nodes(self, at: float | None = None) -> list[int]:
        """Node ids eligible to hold edges."""
        ...
