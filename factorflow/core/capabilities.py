"""Capability contracts for distribution-like message values.

Operators never depend on a single monolithic distribution interface.
Each one declares the small set of capabilities below that it actually
uses, and a distribution type is usable with an operator exactly when it
satisfies that set.  All capabilities are :class:`typing.Protocol` classes
decorated with :func:`typing.runtime_checkable`, so a value (or, for the
method-only capabilities, a type) can be queried structurally.
"""

from __future__ import annotations

import functools
from typing import (
    Any,
    Iterable,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

import numpy as np

from .errors import ImproperDistributionError, UnsupportedCapabilityError


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

@runtime_checkable
class Cloneable(Protocol):
    """Produce an independent copy with identical parameters."""

    def clone(self) -> Any: ...


@runtime_checkable
class SettableTo(Protocol):
    """Overwrite this value's parameters from another value."""

    def set_to(self, other: Any) -> None: ...


@runtime_checkable
class SettableToProduct(Protocol):
    """Overwrite this value with the pointwise product of two values."""

    def set_to_product(self, a: Any, b: Any) -> None: ...


@runtime_checkable
class Sampleable(Protocol):
    """Draw one realization from the distribution."""

    def sample(self, rng: Optional[np.random.Generator] = None) -> Any: ...


@runtime_checkable
class CanGetLogProb(Protocol):
    """Evaluate the log-density (or log-mass) at a point."""

    def log_prob(self, x: Any) -> float: ...


@runtime_checkable
class CanGetLogAverageOf(Protocol):
    """``log`` of the integral of the product of this and another distribution."""

    def log_average_of(self, other: Any) -> float: ...


@runtime_checkable
class CanGetAverageLog(Protocol):
    """Expectation under this distribution of another's log-density."""

    def average_log(self, other: Any) -> float: ...


@runtime_checkable
class HasPoint(Protocol):
    """Get or set the value of a degenerate (point-mass) distribution."""

    @property
    def is_point_mass(self) -> bool: ...

    @property
    def point(self) -> Any: ...

    @point.setter
    def point(self, value: Any) -> None: ...


@runtime_checkable
class CanCheckProperness(Protocol):
    """Report whether the distribution is normalizable, or the uniform element."""

    def is_proper(self) -> bool: ...

    def is_uniform(self) -> bool: ...


@runtime_checkable
class CanSetMaxToZero(Protocol):
    """Unnormalized representation that can be rescaled to a peak log-density of zero."""

    def set_max_to_zero(self) -> None: ...

    def max_log_prob(self) -> float: ...


@runtime_checkable
class Estimator(Protocol):
    """Accumulates conditionals or samples into an approximate marginal."""

    def add(self, dist: Any, weight: float = 1.0) -> None: ...

    def add_sample(self, value: Any, weight: float = 1.0) -> None: ...

    def get_distribution(self, result: Any) -> Any: ...


@runtime_checkable
class CanEstimate(Protocol):
    """Distribution type that can build an :class:`Estimator` of its own shape."""

    def estimator(self) -> Estimator: ...


# ---------------------------------------------------------------------------
# Capability queries
# ---------------------------------------------------------------------------

def missing_capabilities(value: Any, capabilities: Iterable[type]) -> List[str]:
    """Return the names of the capabilities *value* does not satisfy."""
    return [cap.__name__ for cap in capabilities if not isinstance(value, cap)]


def require_capabilities(
    value: Any,
    capabilities: Iterable[type],
    operator: Optional[str] = None,
) -> None:
    """Raise :class:`UnsupportedCapabilityError` unless *value* has every capability.

    Args:
        value: A distribution (or prototype of one).
        capabilities: Capability protocols to check.
        operator: Optional operator name used in the error message.

    Raises:
        UnsupportedCapabilityError: If any capability is missing.
    """
    missing = missing_capabilities(value, capabilities)
    if missing:
        where = f" required by '{operator}'" if operator else ""
        raise UnsupportedCapabilityError(
            f"{type(value).__name__} lacks {', '.join(missing)}{where}"
        )


@functools.lru_cache(maxsize=None)
def supports(dist_type: type, capability: type) -> bool:
    """Answer a capability query on a *type*, once per (type, capability) pair.

    Only method-only capabilities (for example :class:`CanSetMaxToZero`) can
    be queried on a type; property-bearing ones need an instance.
    """
    return issubclass(dist_type, capability)


def check_proper(dist: Any, name: str, allow_uniform: bool = True) -> None:
    """Reject an improper input message.

    A uniform message is the neutral element of the product law and is
    accepted unless *allow_uniform* is false.  Anything else that is not
    normalizable (negative mass, negative precision) raises.

    Raises:
        ImproperDistributionError: If *dist* is improper.
    """
    if not isinstance(dist, CanCheckProperness):
        return
    if dist.is_proper():
        return
    if allow_uniform and dist.is_uniform():
        return
    raise ImproperDistributionError(f"'{name}' is not a proper distribution: {dist!r}")
