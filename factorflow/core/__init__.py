"""Core module for FactorFlow.

This module contains the capability contracts that message values must
satisfy, the error taxonomy, and the sampler configuration scope.
"""

from .capabilities import (
    CanCheckProperness,
    CanEstimate,
    CanGetAverageLog,
    CanGetLogAverageOf,
    CanGetLogProb,
    CanSetMaxToZero,
    Cloneable,
    Estimator,
    HasPoint,
    Sampleable,
    SettableTo,
    SettableToProduct,
)
from .config import SamplerConfig
from .errors import (
    FactorFlowError,
    ImproperDistributionError,
    StaleStateError,
    UnsupportedCapabilityError,
)

__all__ = [
    "CanCheckProperness",
    "CanEstimate",
    "CanGetAverageLog",
    "CanGetLogAverageOf",
    "CanGetLogProb",
    "CanSetMaxToZero",
    "Cloneable",
    "Estimator",
    "HasPoint",
    "Sampleable",
    "SettableTo",
    "SettableToProduct",
    "SamplerConfig",
    "FactorFlowError",
    "ImproperDistributionError",
    "StaleStateError",
    "UnsupportedCapabilityError",
]
