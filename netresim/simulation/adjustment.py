"""Degree-preserving adjustment of the formation edges coefficient.

When the active population changes from N to N', an edges coefficient
theta keeps the expected mean degree when shifted by ln(N) - ln(N'). For
two-group models the cross-group edge potential scales with the harmonic
mean of the group sizes, giving

    ln(2 n1 n2 / (n1 + n2)) - ln(2 n1' n2' / (n1' + n2'))
"""

import logging
import math

from .state import SimulationState

logger = logging.getLogger(__name__)


def count_active(state: SimulationState) -> tuple[int, int | None]:
    """Active node counts: ``(num, None)`` or ``(num_group1, num_group2)``."""
    active = state.attr["active"]
    if state.control.groups == 1:
        return sum(1 for flag in active if flag == 1), None
    group = state.attr["group"]
    g1 = sum(1 for flag, g in zip(active, group) if flag == 1 and g == 1)
    g2 = sum(1 for flag, g in zip(active, group) if flag == 1 and g == 2)
    return g1, g2


def has_active_population(state: SimulationState) -> bool:
    """True when there is someone to connect: any active node, or both groups."""
    num, num_g2 = count_active(state)
    if num_g2 is None:
        return num > 0
    return num > 0 and num_g2 > 0


def update_population_counts(state: SimulationState) -> None:
    """Cache the current active counts for the next step's adjustment."""
    num, num_g2 = count_active(state)
    state.set_population_counts(num, num_g2)


def compute_edges_adjustment(
    old: tuple[int, int | None],
    new: tuple[int, int | None],
    groups: int = 1,
) -> float:
    """Shift for the edges coefficient when the population goes from ``old`` to ``new``.

    Args:
        old: Previous counts, ``(num, num_g2)``
        new: Current counts, same shape
        groups: 1 or 2

    Returns:
        The additive adjustment (0.0 when nothing changed)
    """
    if groups == 1:
        return math.log(old[0]) - math.log(new[0])
    return math.log(_harmonic_size(*old)) - math.log(_harmonic_size(*new))


def _harmonic_size(n1: int, n2: int) -> float:
    return 2 * n1 * n2 / (n1 + n2)


def edges_correct(state: SimulationState, at: int) -> float:
    """Shift the base formation coefficient of every network for step ``at``.

    The same adjustment is applied to all networks of the run, relative to
    the counts cached by update_population_counts. A no-op before step 2,
    when networks are not resimulated, or while no counts are cached (the
    run has not yet had an active population).

    Returns:
        The adjustment applied
    """
    if at < 2 or not state.control.resimulate_network:
        return 0.0
    if "num" not in state.run_scope:
        return 0.0

    old = (state.run_scope["num"], state.run_scope.get("num_g2"))
    new = count_active(state)
    adjustment = compute_edges_adjustment(old, new, state.control.groups)

    for network in state.networks():
        state.params(network).shift_base_coefficient(adjustment)

    if adjustment != 0:
        logger.debug(
            f"[TIMESTEP {at}] Edges coefficient shifted by {adjustment:+.4f} "
            f"(population {old} -> {new})"
        )
    return adjustment
