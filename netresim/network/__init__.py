"""Network representations, model formulas and the sampler interface.

- formula.py: ergm-style model formulas
- terms.py: statistic labels, change statistics and summaries
- lite.py / dynamic.py: lightweight and full temporal representations
- sampler.py: the NetworkSimulator protocol and the reference sampler
"""

from .base import Edge, NetworkRepresentation, normalize_edge, normalize_edges
from .formula import Formula, Term
from .terms import StatsMatrix, formula_labels, summary_statistics
from .lite import NetworkLite
from .dynamic import TemporalNetwork
from .sampler import (
    DyadIndependentSampler,
    NetworkSimulator,
    SimulationRequest,
    SimulationResult,
)

__all__ = [
    "Edge",
    "NetworkRepresentation",
    "normalize_edge",
    "normalize_edges",
    "Formula",
    "Term",
    "StatsMatrix",
    "formula_labels",
    "summary_statistics",
    "NetworkLite",
    "TemporalNetwork",
    "DyadIndependentSampler",
    "NetworkSimulator",
    "SimulationRequest",
    "SimulationResult",
]
