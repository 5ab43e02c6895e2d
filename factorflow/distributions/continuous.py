"""Continuous message distributions backed by scipy.stats."""

from __future__ import annotations

import numbers
from typing import Optional

import numpy as np
from scipy import stats

from ..core.errors import ImproperDistributionError, UnsupportedCapabilityError

_LOG_2PI = float(np.log(2.0 * np.pi))


class Gaussian:
    """Univariate Gaussian in natural parameters.

    The density is proportional to
    ``exp(mean_times_precision * x - precision * x**2 / 2)``.

    * ``precision == 0`` and ``mean_times_precision == 0`` is the uniform
      (improper, neutral) message.
    * ``precision < 0`` is representable, as EP messages can be, but is
      improper.
    * ``precision == inf`` is a point mass and ``mean_times_precision``
      then holds the point itself.
    """

    def __init__(self, mean_times_precision: float = 0.0, precision: float = 0.0) -> None:
        self.mean_times_precision = float(mean_times_precision)
        self.precision = float(precision)
        if np.isnan(self.mean_times_precision) or np.isnan(self.precision):
            raise ImproperDistributionError("Gaussian parameters must not be NaN")

    @classmethod
    def from_mean_and_variance(cls, mean: float, variance: float) -> Gaussian:
        if variance == 0:
            return cls.point_mass(mean)
        if np.isinf(variance):
            return cls.uniform()
        return cls(mean / variance, 1.0 / variance)

    @classmethod
    def from_mean_and_precision(cls, mean: float, precision: float) -> Gaussian:
        if np.isinf(precision):
            return cls.point_mass(mean)
        return cls(mean * precision, precision)

    @classmethod
    def uniform(cls) -> Gaussian:
        return cls(0.0, 0.0)

    @classmethod
    def point_mass(cls, value: float) -> Gaussian:
        return cls(float(value), np.inf)

    # ---------- moments ----------

    def get_mean(self) -> float:
        if self.is_point_mass:
            return self.mean_times_precision
        if self.precision == 0:
            raise ImproperDistributionError("A uniform Gaussian has no mean")
        return self.mean_times_precision / self.precision

    def get_variance(self) -> float:
        if self.is_point_mass:
            return 0.0
        if self.precision == 0:
            return np.inf
        return 1.0 / self.precision

    def _log_normalizer(self) -> float:
        """``log`` of the integral of the unnormalized density; 0 for uniform."""
        if self.is_uniform():
            return 0.0
        if self.precision <= 0:
            raise ImproperDistributionError(f"{self!r} is not normalizable")
        return 0.5 * (
            _LOG_2PI
            - np.log(self.precision)
            + self.mean_times_precision**2 / self.precision
        )

    # ---------- capabilities ----------

    def clone(self) -> Gaussian:
        return Gaussian(self.mean_times_precision, self.precision)

    def set_to(self, other) -> None:
        """Copy another Gaussian, or become a point mass at a real number."""
        if isinstance(other, Gaussian):
            self.mean_times_precision = other.mean_times_precision
            self.precision = other.precision
        elif isinstance(other, numbers.Real):
            self.point = float(other)
        else:
            raise UnsupportedCapabilityError(
                f"Cannot set a Gaussian from {type(other).__name__}"
            )

    def set_to_product(self, a: Gaussian, b: Gaussian) -> None:
        """Set to the (unnormalized) product of *a* and *b*.

        A point mass absorbs the other operand.  Two point masses at
        different locations have no common support.
        """
        if a.is_point_mass:
            if b.is_point_mass and a.point != b.point:
                raise ImproperDistributionError(
                    f"Product of point masses at {a.point} and {b.point} is zero"
                )
            self.set_to(a)
        elif b.is_point_mass:
            self.set_to(b)
        else:
            self.mean_times_precision = a.mean_times_precision + b.mean_times_precision
            self.precision = a.precision + b.precision

    def sample(self, rng: Optional[np.random.Generator] = None) -> float:
        if self.is_point_mass:
            return self.point
        if not self.is_proper():
            raise ImproperDistributionError(f"Cannot sample from {self!r}")
        rng = rng if rng is not None else np.random.default_rng()
        return float(rng.normal(self.get_mean(), np.sqrt(self.get_variance())))

    def log_prob(self, x: float) -> float:
        """Log-density at *x*; ``+inf`` at the location of a point mass."""
        if self.is_point_mass:
            return np.inf if x == self.point else -np.inf
        if self.is_uniform():
            return 0.0
        if self.precision < 0:
            raise ImproperDistributionError(f"{self!r} has no log-density")
        return float(
            stats.norm.logpdf(x, loc=self.get_mean(), scale=np.sqrt(self.get_variance()))
        )

    def log_average_of(self, other: Gaussian) -> float:
        """``log`` of the integral of ``self(x) * other(x)``.

        Raises:
            ImproperDistributionError: If the supports are disjoint or the
                product is not normalizable.
        """
        if self.is_point_mass:
            result = other.log_prob(self.point)
        elif other.is_point_mass:
            result = self.log_prob(other.point)
        else:
            product = Gaussian()
            product.set_to_product(self, other)
            result = (
                product._log_normalizer()
                - self._log_normalizer()
                - other._log_normalizer()
            )
        if np.isneginf(result):
            raise ImproperDistributionError(
                "log_average_of over disjoint supports is undefined"
            )
        return float(result)

    def average_log(self, other: Gaussian) -> float:
        """Expectation under self of ``other.log_prob(x)``.

        Two point masses at the same location give 0, the same value a
        discrete point mass gives against itself.
        """
        if other.is_uniform():
            return 0.0
        if other.is_point_mass:
            if self.is_point_mass and self.point == other.point:
                return 0.0
            raise ImproperDistributionError(
                "average_log of a point-mass density is undefined"
            )
        if self.is_point_mass:
            return other.log_prob(self.point)
        if not self.is_proper() or not other.is_proper():
            raise ImproperDistributionError(
                f"average_log requires proper distributions, got {self!r} and {other!r}"
            )
        m1, v1 = self.get_mean(), self.get_variance()
        m2, v2 = other.get_mean(), other.get_variance()
        return float(-0.5 * (_LOG_2PI + np.log(v2)) - ((m1 - m2) ** 2 + v1) / (2.0 * v2))

    @property
    def is_point_mass(self) -> bool:
        return bool(np.isposinf(self.precision))

    @property
    def point(self) -> float:
        """The point of a point mass; the mean (0 when uniform) otherwise."""
        if self.is_point_mass:
            return self.mean_times_precision
        if self.precision == 0:
            return 0.0
        return self.get_mean()

    @point.setter
    def point(self, value: float) -> None:
        self.mean_times_precision = float(value)
        self.precision = np.inf

    def is_proper(self) -> bool:
        return self.precision > 0

    def is_uniform(self) -> bool:
        return self.precision == 0 and self.mean_times_precision == 0

    def estimator(self) -> GaussianEstimator:
        return GaussianEstimator()

    def __repr__(self) -> str:
        if self.is_point_mass:
            return f"Gaussian.point_mass({self.point})"
        if self.is_uniform():
            return "Gaussian.uniform()"
        if self.precision > 0:
            return f"Gaussian(mean={self.get_mean()}, variance={self.get_variance()})"
        return (
            f"Gaussian(mean_times_precision={self.mean_times_precision}, "
            f"precision={self.precision})"
        )


class GaussianEstimator:
    """Moment-matches a mixture of accumulated Gaussians (or samples)."""

    def __init__(self) -> None:
        self.count = 0.0
        self._sum = 0.0
        self._sum_sq = 0.0

    def add(self, dist: Gaussian, weight: float = 1.0) -> None:
        mean, variance = dist.get_mean(), dist.get_variance()
        self.count += weight
        self._sum += weight * mean
        self._sum_sq += weight * (variance + mean**2)

    def add_sample(self, value: float, weight: float = 1.0) -> None:
        self.count += weight
        self._sum += weight * value
        self._sum_sq += weight * value**2

    def get_distribution(self, result: Optional[Gaussian] = None) -> Gaussian:
        if self.count <= 0:
            raise ImproperDistributionError("Estimator has no accumulated mass")
        mean = self._sum / self.count
        variance = max(self._sum_sq / self.count - mean**2, 0.0)
        estimate = Gaussian.from_mean_and_variance(mean, variance)
        if result is None:
            return estimate
        result.set_to(estimate)
        return result
