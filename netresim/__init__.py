"""netresim: stepwise resimulation of dynamic contact networks.

Drives an external stochastic network sampler one time step at a time while
the active population changes underneath it, keeping mean degree stable and
keeping a compact simulation state in sync with whichever network
representation (lightweight edge list or full temporal network) is in use.

Usage:
    from netresim import NetworkParameters, RunControl, dissolution_coefs, run_netsim

    params = NetworkParameters(
        formation="~edges",
        coef_form=[-4.6],
        coef_diss=dissolution_coefs("~offset(edges)", duration=20),
    )
    result = run_netsim([params], RunControl(nsteps=52, nsims=4), num_nodes=500)
"""

__version__ = "0.3.0"

from .core.errors import (
    NetresimError,
    ConfigurationError,
    FormulaError,
    SimulationError,
    SamplerWarning,
)
from .core.models import (
    DissolutionCoefs,
    NetworkParameters,
    dissolution_coefs,
    SamplerControl,
    NetworkControl,
    RunControl,
    ModelSpec,
)
from .network import (
    Formula,
    NetworkLite,
    TemporalNetwork,
    DyadIndependentSampler,
)
from .simulation import (
    SimulationState,
    NetworkModelDriver,
    ResimulationController,
    run_netsim,
    get_network,
    get_nwstats,
)

__all__ = [
    "__version__",
    "NetresimError",
    "ConfigurationError",
    "FormulaError",
    "SimulationError",
    "SamplerWarning",
    "DissolutionCoefs",
    "NetworkParameters",
    "dissolution_coefs",
    "SamplerControl",
    "NetworkControl",
    "RunControl",
    "ModelSpec",
    "Formula",
    "NetworkLite",
    "TemporalNetwork",
    "DyadIndependentSampler",
    "SimulationState",
    "NetworkModelDriver",
    "ResimulationController",
    "run_netsim",
    "get_network",
    "get_nwstats",
]
