"""Simulation runner: replicates of the step loop.

Each replicate owns one SimulationState, one driver and one controller.
Step 1 is produced by ResimulationController.initialize; every later step
resimulates the networks first and then runs the user's modules, which
may change the population that the next step's adjustment sees.
"""

import logging
import multiprocessing as mp
import random
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..core.errors import ConfigurationError
from ..core.models import NetworkParameters, RunControl, validate_run_configuration
from ..network.base import NetworkRepresentation
from ..network.sampler import DyadIndependentSampler, NetworkSimulator
from .adapter import current_edges, get_network
from .controller import ResimulationController
from .cumulative import cumulative_edgelist_records
from .driver import NetworkModelDriver
from .state import SimulationState, StateHook

logger = logging.getLogger(__name__)

StepModule = Callable[[SimulationState, int], SimulationState]
SimulatorFactory = Callable[[int | None], NetworkSimulator]


@dataclass
class RunOutput:
    """Everything kept from one replicate."""

    sim: int
    networks: list[NetworkRepresentation]
    params: list[NetworkParameters]
    nwstats: dict[int, list[dict[str, float]]] = field(default_factory=dict)
    cumulative_edgelist: dict[int, list[dict[str, Any]]] = field(default_factory=dict)
    epi: dict[str, list[float]] = field(default_factory=dict)
    attributes: dict[str, list[Any]] = field(default_factory=dict)
    elapsed_seconds: float = 0.0


@dataclass
class NetsimResult:
    """All replicates of a run, indexed by 1-based ``sim``."""

    control: RunControl
    num_networks: int
    runs: list[RunOutput]

    @property
    def nsims(self) -> int:
        return len(self.runs)

    def run(self, sim: int) -> RunOutput:
        return self.runs[sim - 1]


def initial_attributes(
    num_nodes: int,
    groups: int = 1,
    group_sizes: Sequence[int] | None = None,
    extra: dict[str, Sequence[Any]] | None = None,
) -> dict[str, list[Any]]:
    """Attribute table for a fully active starting population.

    Two-group populations default to an even split, group 1 first.
    """
    attrs: dict[str, list[Any]] = {
        "active": [1] * num_nodes,
        "entry_time": [0] * num_nodes,
        "exit_time": [None] * num_nodes,
    }
    if groups == 2:
        if group_sizes is None:
            group_sizes = [num_nodes // 2, num_nodes - num_nodes // 2]
        if len(group_sizes) != 2 or sum(group_sizes) != num_nodes:
            raise ConfigurationError(
                f"group_sizes {list(group_sizes)} do not split {num_nodes} nodes in two"
            )
        attrs["group"] = [1] * group_sizes[0] + [2] * group_sizes[1]
    for name, values in (extra or {}).items():
        if len(values) != num_nodes:
            raise ConfigurationError(
                f"Attribute {name!r} has {len(values)} values for {num_nodes} nodes"
            )
        attrs[name] = list(values)
    return attrs


def _record_epi(state: SimulationState, at: int) -> None:
    active = state.attr["active"]
    if state.control.groups == 2:
        group = state.attr["group"]
        state.record_epi("num", sum(1 for a, g in zip(active, group) if a == 1 and g == 1))
        state.record_epi("num_g2", sum(1 for a, g in zip(active, group) if a == 1 and g == 2))
    else:
        state.record_epi("num", sum(1 for a in active if a == 1))
    for network in state.networks():
        state.record_epi(f"edges_net{network}", len(current_edges(state, network, at)))


def run_simulation(
    params: Sequence[NetworkParameters],
    control: RunControl,
    attributes: dict[str, Sequence[Any]],
    modules: Sequence[StepModule] = (),
    hook: StateHook | None = None,
    simulator_factory: SimulatorFactory = DyadIndependentSampler,
    sim: int = 1,
    seed: int | None = None,
) -> RunOutput:
    """Run one replicate for ``control.nsteps`` steps.

    Args:
        params: Parameter set per network
        control: Run control
        attributes: Starting vertex attribute table
        modules: Step modules run after the network update at each step >= 2
        hook: Update function called around each network's update
        simulator_factory: Builds the sampler from a seed
        sim: Replicate index
        seed: Replicate seed; None draws fresh entropy

    Returns:
        RunOutput with the final networks, statistics and epi series
    """
    start = time.time()
    seeder = random.Random(seed)
    simulator = simulator_factory(seeder.getrandbits(32))

    state = SimulationState(
        params, control, attributes, hook=hook, sim=sim, seed=seeder.getrandbits(32)
    )
    controller = ResimulationController(
        NetworkModelDriver(simulator, reuse_basis=control.reuse_basis)
    )

    state = controller.initialize(state)
    _record_epi(state, 1)

    for at in range(2, control.nsteps + 1):
        state = controller.resimulate(state, at)
        for module in modules:
            state = module(state, at)
        _record_epi(state, at)

        if at % 10 == 0 or at == control.nsteps:
            logger.info(
                f"[SIM {sim}] [TIMESTEP {at}/{control.nsteps}] "
                f"active={len(state.active_ids())} "
                + " ".join(
                    f"net{n}={state.epi[f'edges_net{n}'][-1]:.0f}" for n in state.networks()
                )
            )

    elapsed = time.time() - start
    logger.info(f"[SIM {sim}] Finished {control.nsteps} steps in {elapsed:.2f}s")

    return RunOutput(
        sim=sim,
        networks=[get_network(state, n) for n in state.networks()],
        params=[state.params(n).model_copy(deep=True) for n in state.networks()],
        nwstats={n: list(state.slot(n).nwstats) for n in state.networks()},
        cumulative_edgelist={
            n: cumulative_edgelist_records(state, n) for n in state.networks()
        },
        epi=dict(state.epi),
        attributes={k: list(v) for k, v in state.attr.items()},
        elapsed_seconds=elapsed,
    )


def run_replicates(
    params: Sequence[NetworkParameters],
    control: RunControl,
    attributes: dict[str, Sequence[Any]],
    modules: Sequence[StepModule] = (),
    hook: StateHook | None = None,
    simulator_factory: SimulatorFactory = DyadIndependentSampler,
) -> NetsimResult:
    """Run ``control.nsims`` independent replicates.

    Replicate ``sim`` uses seed ``control.seed + sim`` when a base seed is
    set. With ``control.ncores > 1`` replicates run in worker processes, so
    modules, hook and factory must be picklable.
    """
    validate_run_configuration(control, len(params))
    seeds = {
        sim: (None if control.seed is None else control.seed + sim)
        for sim in range(1, control.nsims + 1)
    }
    workers = min(control.ncores, control.nsims)
    logger.info(
        f"Running {control.nsims} replicates of {control.nsteps} steps "
        f"on {workers} worker(s)"
    )

    outputs: dict[int, RunOutput] = {}
    if workers <= 1:
        for sim, seed in seeds.items():
            outputs[sim] = run_simulation(
                params, control, attributes, modules, hook, simulator_factory, sim, seed
            )
    else:
        ctx = mp.get_context("spawn")
        with ProcessPoolExecutor(max_workers=workers, mp_context=ctx) as ex:
            futures = {
                ex.submit(
                    run_simulation,
                    list(params),
                    control,
                    dict(attributes),
                    list(modules),
                    hook,
                    simulator_factory,
                    sim,
                    seed,
                ): sim
                for sim, seed in seeds.items()
            }
            for fut in as_completed(futures):
                sim = futures[fut]
                outputs[sim] = fut.result()
                logger.debug(f"Replicate {sim} finished")

    return NetsimResult(
        control=control,
        num_networks=len(params),
        runs=[outputs[sim] for sim in sorted(outputs)],
    )


def run_netsim(
    networks: Sequence[NetworkParameters],
    control: RunControl,
    num_nodes: int | None = None,
    attributes: dict[str, Sequence[Any]] | None = None,
    group_sizes: Sequence[int] | None = None,
    modules: Sequence[StepModule] = (),
    hook: StateHook | None = None,
    simulator_factory: SimulatorFactory = DyadIndependentSampler,
) -> NetsimResult:
    """Simulate dynamic networks over a changing population.

    Give either ``num_nodes`` for a fresh, fully active population (with
    ``group_sizes`` for two-group runs) or a complete ``attributes`` table.

    Raises:
        ConfigurationError: For inconsistent population or control settings
    """
    if attributes is None:
        if num_nodes is None:
            raise ConfigurationError("Give either num_nodes or attributes")
        attributes = initial_attributes(num_nodes, control.groups, group_sizes)
    return run_replicates(networks, control, attributes, modules, hook, simulator_factory)
