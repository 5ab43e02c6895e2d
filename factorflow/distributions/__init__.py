"""Distribution implementations for FactorFlow.

Concrete message types that satisfy the capability contracts in
:mod:`factorflow.core.capabilities`.
"""

from .continuous import Gaussian, GaussianEstimator
from .discrete import Discrete, DiscreteEstimator, UnnormalizedDiscrete

__all__ = [
    "Gaussian",
    "GaussianEstimator",
    "Discrete",
    "DiscreteEstimator",
    "UnnormalizedDiscrete",
]
