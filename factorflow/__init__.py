"""FactorFlow: variable-node message operators for factor-graph inference.

This package provides the operators an inference scheduler calls to
compute the messages of a variable node under expectation propagation,
variational message passing, Gibbs sampling and max-product inference,
together with the per-node Gibbs sampling state and the capability
contracts that message distributions must satisfy.
"""

__version__ = "0.1.0"

from .core.config import SamplerConfig
from .core.errors import (
    FactorFlowError,
    ImproperDistributionError,
    StaleStateError,
    UnsupportedCapabilityError,
)
from .distributions.continuous import Gaussian
from .distributions.discrete import Discrete, UnnormalizedDiscrete
from .inference.gibbs_marginal import GibbsMarginal, GibbsMarginalArena
from .inference.registry import Algorithm, NodeKind, get_family, validate_family

__all__ = [
    "SamplerConfig",
    "FactorFlowError",
    "ImproperDistributionError",
    "StaleStateError",
    "UnsupportedCapabilityError",
    "Gaussian",
    "Discrete",
    "UnnormalizedDiscrete",
    "GibbsMarginal",
    "GibbsMarginalArena",
    "Algorithm",
    "NodeKind",
    "get_family",
    "validate_family",
]
