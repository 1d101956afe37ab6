"""Extraction helpers for finished runs."""

from typing import Any, Iterable

import networkx as nx

from ..core.errors import SimulationError
from ..network.base import NetworkRepresentation
from .engine import NetsimResult


def _check_sim(result: NetsimResult, sim: int) -> None:
    if not isinstance(sim, int) or not 1 <= sim <= result.nsims:
        raise SimulationError(f"Specify a single sim between 1 and {result.nsims}")


def _check_network(result: NetsimResult, network: int) -> None:
    if not 1 <= network <= result.num_networks:
        raise SimulationError(f"Specify network between 1 and {result.num_networks}")


def get_network(
    result: NetsimResult,
    sim: int = 1,
    network: int = 1,
    collapse: bool = False,
    at: int | None = None,
) -> NetworkRepresentation | nx.Graph:
    """Final network of one replicate, optionally collapsed to a snapshot.

    Args:
        result: Output of run_netsim
        sim: Replicate (1-based)
        network: Network index (1-based)
        collapse: Return the static networkx snapshot at ``at`` instead
        at: Time step to collapse at (full representation only)

    Raises:
        SimulationError: For out-of-range indices or options the
            lightweight representation cannot honour
    """
    control = result.control
    _check_sim(result, sim)

    if control.lightweight and collapse:
        raise SimulationError(
            "Argument `collapse` should be False when control.lightweight is True"
        )
    if control.lightweight and at is not None:
        raise SimulationError(
            "Argument `at` should be missing when control.lightweight is True"
        )

    _check_network(result, network)

    if collapse and (at is None or at > control.nsteps or at < 0):
        raise SimulationError(
            f"Specify collapse time step between 0 and {control.nsteps}"
        )

    nw = result.run(sim).networks[network - 1]
    if collapse:
        return nw.collapse(at)
    return nw


def get_nwstats(
    result: NetsimResult,
    sim: int | Iterable[int] | None = None,
    network: int = 1,
) -> list[dict[str, Any]]:
    """Recorded network statistics as rows with ``sim`` and ``time`` first.

    Raises:
        SimulationError: If statistics were not saved or indices are out of range
    """
    if sim is None:
        sims = list(range(1, result.nsims + 1))
    elif isinstance(sim, int):
        sims = [sim]
    else:
        sims = list(sim)

    if not sims or max(sims) > result.nsims or min(sims) < 1:
        raise SimulationError(f"Specify sims less than or equal to {result.nsims}")
    if not result.control.save_nwstats:
        raise SimulationError(
            "Network statistics not saved in netsim object, check control settings"
        )
    _check_network(result, network)

    rows: list[dict[str, Any]] = []
    for s in sims:
        for record in result.run(s).nwstats.get(network, []):
            rows.append({"sim": s, **record})
    return rows


def get_cumulative_edgelist(
    result: NetsimResult, sim: int = 1, network: int = 1
) -> list[dict[str, Any]]:
    """Cumulative edgelist rows (``tail``, ``head``, ``start``, ``stop``) of one replicate."""
    _check_sim(result, sim)
    _check_network(result, network)
    return [dict(row) for row in result.run(sim).cumulative_edgelist.get(network, [])]
