"""Discrete distributions over the integers ``0 .. K-1``."""

from __future__ import annotations

import numbers
from typing import Optional

import numpy as np
from scipy.special import logsumexp

from ..core.errors import ImproperDistributionError, UnsupportedCapabilityError


def _probs_of(value):
    """Normalized probability vector of a Discrete or UnnormalizedDiscrete."""
    if isinstance(value, Discrete):
        return value.probs
    if isinstance(value, UnnormalizedDiscrete):
        return value.to_discrete().probs
    raise UnsupportedCapabilityError(
        f"Cannot read discrete probabilities from {type(value).__name__}"
    )


def _log_values_of(value):
    """Log-domain table of a Discrete or UnnormalizedDiscrete."""
    if isinstance(value, UnnormalizedDiscrete):
        return value.log_values
    if isinstance(value, Discrete):
        with np.errstate(divide="ignore"):
            return np.log(value.probs)
    raise UnsupportedCapabilityError(
        f"Cannot read discrete log-values from {type(value).__name__}"
    )


def _check_dimension(expected, *values):
    for v in values:
        if len(v) != expected:
            raise ValueError(
                f"Dimension mismatch: expected {expected} states, got {len(v)}"
            )


class Discrete:
    """Normalized distribution over ``{0, ..., K-1}``.

    Parameters
    ----------
    probs : array-like
        Non-negative weights for each state. They are normalized to sum to 1.

    Raises
    ------
    ImproperDistributionError
        If any weight is negative or non-finite, or all weights are zero.
    """

    def __init__(self, probs):
        probs = np.array(probs, dtype=float)
        if probs.ndim != 1 or probs.size == 0:
            raise ValueError("probs must be a non-empty 1-D array")
        if not np.all(np.isfinite(probs)) or np.any(probs < 0):
            raise ImproperDistributionError(
                f"Discrete weights must be finite and non-negative, got {probs}"
            )
        total = probs.sum()
        if total <= 0:
            raise ImproperDistributionError("Discrete weights have zero total mass")
        self.probs = probs / total

    @classmethod
    def uniform(cls, dimension):
        """Uniform distribution over *dimension* states."""
        return cls(np.ones(dimension))

    @classmethod
    def point_mass(cls, value, dimension):
        """Degenerate distribution putting all mass on *value*."""
        dist = cls.uniform(dimension)
        dist.point = value
        return dist

    @property
    def dimension(self):
        return self.probs.size

    def __len__(self):
        return self.dimension

    # ---------- capabilities ----------

    def clone(self):
        """Independent copy with identical probabilities."""
        return Discrete(self.probs.copy())

    def set_to(self, other):
        """Overwrite from a Discrete, an UnnormalizedDiscrete or a sampled state."""
        if isinstance(other, numbers.Integral):
            self.point = other
            return
        probs = _probs_of(other)
        _check_dimension(self.dimension, probs)
        self.probs = probs.copy()

    def set_to_product(self, a, b):
        """Set to the normalized pointwise product of *a* and *b*.

        Raises
        ------
        ImproperDistributionError
            If *a* and *b* have disjoint support.
        """
        pa, pb = _probs_of(a), _probs_of(b)
        _check_dimension(self.dimension, pa, pb)
        product = pa * pb
        total = product.sum()
        if total <= 0:
            raise ImproperDistributionError(
                "Product of discrete distributions has zero total mass"
            )
        self.probs = product / total

    def sample(self, rng: Optional[np.random.Generator] = None):
        """Draw one state index."""
        if self.is_point_mass:
            return self.point
        rng = rng if rng is not None else np.random.default_rng()
        return int(rng.choice(self.dimension, p=self.probs))

    def log_prob(self, x):
        """Log probability mass at state *x*."""
        x = int(x)
        if not 0 <= x < self.dimension:
            return -np.inf
        with np.errstate(divide="ignore"):
            return float(np.log(self.probs[x]))

    def log_average_of(self, other):
        """``log sum_x p(x) q(x)``.

        Raises
        ------
        ImproperDistributionError
            If the two distributions have disjoint support.
        """
        q = _probs_of(other)
        _check_dimension(self.dimension, q)
        total = float(np.dot(self.probs, q))
        if total <= 0:
            raise ImproperDistributionError(
                "log_average_of over disjoint supports is undefined"
            )
        return float(np.log(total))

    def average_log(self, other):
        """``sum_x p(x) log q(x)``, the expected log-mass of *other* under self.

        Raises
        ------
        ImproperDistributionError
            If *other* puts zero mass where self has positive mass.
        """
        log_q = _log_values_of(other)
        if isinstance(other, UnnormalizedDiscrete):
            log_q = log_q - logsumexp(log_q)
        _check_dimension(self.dimension, log_q)
        support = self.probs > 0
        if np.any(np.isneginf(log_q[support])):
            raise ImproperDistributionError(
                "average_log over disjoint supports is undefined"
            )
        return float(np.dot(self.probs[support], log_q[support]))

    @property
    def is_point_mass(self):
        return int(np.count_nonzero(self.probs)) == 1

    @property
    def point(self):
        """The point of a point mass; the mode otherwise."""
        return int(np.argmax(self.probs))

    @point.setter
    def point(self, value):
        value = int(value)
        if not 0 <= value < self.dimension:
            raise ValueError(f"Point {value} outside 0..{self.dimension - 1}")
        probs = np.zeros(self.dimension)
        probs[value] = 1.0
        self.probs = probs

    def is_proper(self):
        return True

    def is_uniform(self):
        return bool(np.all(self.probs == self.probs[0]))

    def estimator(self):
        return DiscreteEstimator(self.dimension)

    # ---------- summaries ----------

    def mode(self):
        """Return the most probable state."""
        return int(np.argmax(self.probs))

    def mean(self):
        return float(np.dot(np.arange(self.dimension), self.probs))

    def __repr__(self):
        return f"Discrete(probs={self.probs})"


class UnnormalizedDiscrete:
    """Discrete table stored in the log domain without normalization.

    Used for max-product messages: :meth:`set_max_to_zero` rescales the
    table so that its largest log-value is exactly zero.

    Parameters
    ----------
    log_values : array-like
        Unnormalized log-weights; ``-inf`` marks an impossible state.
    """

    def __init__(self, log_values):
        log_values = np.array(log_values, dtype=float)
        if log_values.ndim != 1 or log_values.size == 0:
            raise ValueError("log_values must be a non-empty 1-D array")
        if np.any(np.isnan(log_values)) or np.any(np.isposinf(log_values)):
            raise ImproperDistributionError(
                f"Unnormalized log-values must not be NaN or +inf, got {log_values}"
            )
        self.log_values = log_values

    @classmethod
    def uniform(cls, dimension):
        return cls(np.zeros(dimension))

    @classmethod
    def point_mass(cls, value, dimension):
        dist = cls.uniform(dimension)
        dist.point = value
        return dist

    @classmethod
    def from_discrete(cls, dist):
        """Log-domain copy of a normalized :class:`Discrete`."""
        return cls(_log_values_of(dist))

    @property
    def dimension(self):
        return self.log_values.size

    def __len__(self):
        return self.dimension

    def to_discrete(self):
        """Normalized :class:`Discrete` with the same shape."""
        if not self.is_proper():
            raise ImproperDistributionError("All states have zero weight")
        return Discrete(np.exp(self.log_values - self.log_values.max()))

    # ---------- capabilities ----------

    def clone(self):
        return UnnormalizedDiscrete(self.log_values.copy())

    def set_to(self, other):
        if isinstance(other, numbers.Integral):
            self.point = other
            return
        log_values = _log_values_of(other)
        _check_dimension(self.dimension, log_values)
        self.log_values = np.array(log_values, dtype=float)

    def set_to_product(self, a, b):
        """Set to the product of *a* and *b* (a sum in the log domain)."""
        la, lb = _log_values_of(a), _log_values_of(b)
        _check_dimension(self.dimension, la, lb)
        product = la + lb
        if np.all(np.isneginf(product)):
            raise ImproperDistributionError(
                "Product of discrete tables has zero total mass"
            )
        self.log_values = product

    def set_max_to_zero(self):
        """Shift the table so that its maximum log-value is exactly zero."""
        peak = self.log_values.max()
        if np.isneginf(peak):
            raise ImproperDistributionError("All states have zero weight")
        self.log_values = self.log_values - peak

    def max_log_prob(self):
        return float(self.log_values.max())

    def sample(self, rng: Optional[np.random.Generator] = None):
        return self.to_discrete().sample(rng)

    def log_prob(self, x):
        """Unnormalized log-value at state *x*."""
        x = int(x)
        if not 0 <= x < self.dimension:
            return -np.inf
        return float(self.log_values[x])

    def log_average_of(self, other):
        """``log sum_x f(x) g(x)`` of the two unnormalized tables."""
        lb = _log_values_of(other)
        _check_dimension(self.dimension, lb)
        product = self.log_values + lb
        if np.all(np.isneginf(product)):
            raise ImproperDistributionError(
                "log_average_of over disjoint supports is undefined"
            )
        return float(logsumexp(product))

    def average_log(self, other):
        return self.to_discrete().average_log(other)

    @property
    def is_point_mass(self):
        return int(np.count_nonzero(np.isfinite(self.log_values))) == 1

    @property
    def point(self):
        return int(np.argmax(self.log_values))

    @point.setter
    def point(self, value):
        value = int(value)
        if not 0 <= value < self.dimension:
            raise ValueError(f"Point {value} outside 0..{self.dimension - 1}")
        log_values = np.full(self.dimension, -np.inf)
        log_values[value] = 0.0
        self.log_values = log_values

    def is_proper(self):
        return bool(np.any(np.isfinite(self.log_values)))

    def is_uniform(self):
        return bool(
            np.all(np.isfinite(self.log_values))
            and np.all(self.log_values == self.log_values[0])
        )

    def estimator(self):
        return DiscreteEstimator(self.dimension)

    def __repr__(self):
        return f"UnnormalizedDiscrete(log_values={self.log_values})"


class DiscreteEstimator:
    """Accumulates discrete conditionals (or samples) into a marginal.

    Parameters
    ----------
    dimension : int
        Number of states.
    """

    def __init__(self, dimension):
        self.dimension = int(dimension)
        self._weights = np.zeros(self.dimension)
        self.count = 0.0

    def add(self, dist, weight=1.0):
        """Absorb a whole conditional distribution."""
        probs = _probs_of(dist)
        _check_dimension(self.dimension, probs)
        self._weights += weight * probs
        self.count += weight

    def add_sample(self, value, weight=1.0):
        """Absorb a single sampled state."""
        self._weights[int(value)] += weight
        self.count += weight

    def get_distribution(self, result=None):
        """Write the accumulated marginal into *result* (or a new Discrete)."""
        if self.count <= 0:
            raise ImproperDistributionError("Estimator has no accumulated mass")
        estimate = Discrete(self._weights)
        if result is None:
            return estimate
        result.set_to(estimate)
        return result
