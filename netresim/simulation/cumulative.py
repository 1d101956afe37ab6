"""Cumulative edgelist: a windowed history of partnerships per network.

Each row is a spell ``(tail, head, start, stop)``; ``stop`` is None while the
edge is still present. Rows whose spell ended more than ``truncate`` steps
ago are dropped.
"""

import logging
import math

from .adapter import current_edges
from .state import CumulativeEdge, SimulationState

logger = logging.getLogger(__name__)


def update_cumulative_edgelist(
    state: SimulationState,
    network: int,
    at: int,
    truncate: float = math.inf,
) -> list[CumulativeEdge]:
    """Fold the edges present at ``at`` into the network's cumulative edgelist.

    - edges present now without an open row get a new row starting at ``at``
    - open rows whose edge is gone are closed at ``at - 1``
    - rows with ``stop < at - truncate`` are dropped

    Returns:
        The updated rows
    """
    slot = state.slot(network)
    present = set(current_edges(state, network, at))

    open_rows: set[tuple[int, int]] = set()
    for row in slot.cumulative:
        if row.stop is None:
            if (row.tail, row.head) in present:
                open_rows.add((row.tail, row.head))
            else:
                row.stop = at - 1

    for tail, head in sorted(present - open_rows):
        slot.cumulative.append(CumulativeEdge(tail=tail, head=head, start=at))

    if not math.isinf(truncate):
        horizon = at - truncate
        before = len(slot.cumulative)
        slot.cumulative = [
            row for row in slot.cumulative if row.stop is None or row.stop >= horizon
        ]
        dropped = before - len(slot.cumulative)
        if dropped:
            logger.debug(f"[TIMESTEP {at}] Network {network}: pruned {dropped} ended spells")

    return slot.cumulative


def cumulative_edgelist_records(state: SimulationState, network: int) -> list[dict]:
    """Rows as plain dicts (``tail``, ``head``, ``start``, ``stop``)."""
    return [
        {"tail": row.tail, "head": row.head, "start": row.start, "stop": row.stop}
        for row in state.slot(network).cumulative
    ]
