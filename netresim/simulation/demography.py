"""Built-in open-population module: departures and arrivals.

Each active node departs with probability ``departure_rate`` per step;
arrivals are drawn per active node with probability ``arrival_rate``.
New nodes copy their non-core attributes from a random active node, and
in two-group runs join either group with equal probability.
"""

import logging

from .adapter import add_vertices, deactivate_vertices
from .state import SimulationState

logger = logging.getLogger(__name__)

CORE_ATTRIBUTES = {"active", "group", "entry_time", "exit_time"}


class BirthDeathModule:
    """Step module ``(state, at) -> state`` for a simple open population."""

    def __init__(self, departure_rate: float = 0.0, arrival_rate: float = 0.0):
        if not 0 <= departure_rate <= 1:
            raise ValueError(f"departure_rate must be in [0, 1], got {departure_rate}")
        if arrival_rate < 0:
            raise ValueError(f"arrival_rate must be >= 0, got {arrival_rate}")
        self.departure_rate = departure_rate
        self.arrival_rate = arrival_rate

    def __call__(self, state: SimulationState, at: int) -> SimulationState:
        rng = state.rng
        active = state.active_ids()

        departing = [v for v in active if rng.random() < self.departure_rate]
        if departing:
            deactivate_vertices(state, departing, at)
            if "exit_time" in state.attr:
                exit_time = list(state.attr["exit_time"])
                for v in departing:
                    exit_time[v] = at
                state.set_attr("exit_time", exit_time)

        # Arrivals scale with the population at the start of the step
        arrivals = sum(1 for _ in active if rng.random() < self.arrival_rate)
        if arrivals:
            add_vertices(state, arrivals, at, self._new_attributes(state, arrivals, at, active))

        state.record_epi("departures", len(departing))
        state.record_epi("arrivals", arrivals)
        if departing or arrivals:
            logger.debug(
                f"[TIMESTEP {at}] {len(departing)} departures, {arrivals} arrivals"
            )
        return state

    @staticmethod
    def _new_attributes(
        state: SimulationState, count: int, at: int, donors: list[int]
    ) -> dict[str, list]:
        rng = state.rng
        attrs: dict[str, list] = {
            "active": [1] * count,
            "entry_time": [at] * count,
        }
        if "exit_time" in state.attr:
            attrs["exit_time"] = [None] * count
        if state.control.groups == 2:
            attrs["group"] = [rng.choice((1, 2)) for _ in range(count)]

        picks = [rng.choice(donors) for _ in range(count)] if donors else []
        for name, values in state.attr.items():
            if name in CORE_ATTRIBUTES:
                continue
            attrs[name] = [values[v] for v in picks] if picks else [None] * count
        return attrs
