"""Network model driver: one sampler call per network per advance.

Chooses between the durational path (``~Form(formation) + Persist(dissolution)``
with formation and adjusted persistence coefficients) and the
cross-sectional path (formation formula alone, zero discordance), sets up
the time window and monitoring, and commits the sampler's output through
the representation adapter.
"""

import logging
import warnings

from ..core.models import NetworkParameters, SamplerControl
from ..network.base import NetworkRepresentation
from ..network.formula import Formula
from ..network.lite import NetworkLite
from ..network.sampler import NetworkSimulator, SimulationRequest
from .adapter import get_network, set_network
from .state import SimulationState

logger = logging.getLogger(__name__)


def model_terms(
    params: NetworkParameters, control: SamplerControl
) -> tuple[Formula, list[float], SamplerControl]:
    """Formula, coefficients and sampler control for advancing one network.

    Durations above one step select the separable formation/persistence
    model; otherwise the formation model is redrawn with zero discordance.
    Internal sampler parallelism is always switched off.
    """
    if params.is_durational:
        formula = Formula.compose_tergm(params.formation, params.coef_diss.dissolution)
        coef = list(params.coef_form) + list(params.coef_diss.coef_adj)
        sampler_control = control.model_copy(update={"parallel": 0}, deep=True)
    else:
        formula = params.formation
        coef = list(params.coef_form)
        sampler_control = control.model_copy(
            update={"parallel": 0, "discordance_fraction": 0.0}, deep=True
        )
    return formula, coef, sampler_control


class NetworkModelDriver:
    """Advances networks through a NetworkSimulator.

    Args:
        simulator: Stochastic network sampler
        reuse_basis: Use the sampler's previous output as the next basis
            when the stored state has not been written since, instead of
            rebuilding it from the container
    """

    def __init__(self, simulator: NetworkSimulator, reuse_basis: bool = False):
        self.simulator = simulator
        self.reuse_basis = reuse_basis
        self._last_output: dict[int, tuple[int, NetworkRepresentation]] = {}

    def initial_network(self, state: SimulationState, network: int) -> NetworkLite:
        """Cross-sectional draw of the time-0 network from the formation model."""
        params = state.params(network)
        ncontrol = state.network_control(network)
        basis = NetworkLite(state.num_nodes, (), state.attr)
        request = SimulationRequest(
            formula=params.formation,
            coef=params.cross_sectional_coefs(),
            basis=basis,
            constraints=params.constraints,
            control=ncontrol.ergm_control.model_copy(deep=True),
            dynamic=False,
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            result = self.simulator.simulate(request)
        logger.debug(
            f"Network {network}: time-0 draw has {len(result.network.as_edgelist())} edges"
        )
        return result.network

    def advance(
        self, state: SimulationState, network: int, at: int, nsteps: int = 1
    ) -> NetworkRepresentation:
        """Simulate ``nsteps`` slices of ``network`` starting at step ``at`` and commit.

        Sampler warnings are suppressed; sampler exceptions propagate.
        """
        control = state.control
        params = state.params(network)
        ncontrol = state.network_control(network)

        formula, coef, sampler_control = model_terms(params, ncontrol.tergm_control)

        monitor = None
        if control.save_nwstats and not control.resimulate_network:
            monitor = ncontrol.nwstats_formula or params.formation

        time_offset = 0 if (not control.lightweight and control.resimulate_network) else 1

        request = SimulationRequest(
            formula=formula,
            coef=coef,
            basis=self._basis(state, network),
            constraints=params.constraints,
            time_start=at - time_offset,
            time_offset=time_offset,
            time_slices=nsteps,
            control=sampler_control,
            monitor=monitor,
            dynamic=True,
            output="final" if control.lightweight else "dynamic",
        )

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            result = self.simulator.simulate(request)

        set_network(state, network, result.network)
        if self.reuse_basis:
            self._last_output[network] = (state.revision(network), result.network)

        if monitor is not None and result.stats is not None:
            state.append_nwstats(
                network,
                result.stats.deduplicated(),
                first_time=request.time_start + request.time_offset,
            )
        return result.network

    def _basis(self, state: SimulationState, network: int) -> NetworkRepresentation:
        cached = self._last_output.get(network) if self.reuse_basis else None
        if cached is not None and cached[0] == state.revision(network):
            nw = cached[1]
            if isinstance(nw, NetworkLite):
                return nw.with_vertex_attributes(state.attr)
            return nw
        return get_network(state, network)
