"""Sampler configuration scope for Gibbs marginals."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Optional

import numpy as np


@dataclass
class SamplerConfig:
    """Settings shared by the Gibbs marginals built inside a scope.

    Can be used directly or as a context manager.  Inside a ``with`` block
    the config becomes the active one, and every
    :class:`~factorflow.inference.gibbs_marginal.GibbsMarginal` created
    without explicit settings picks it up.

    Example:
        >>> with SamplerConfig(burn_in=100, thin=5, seed=0):
        ...     marginal = GibbsMarginal(prior)

    Attributes:
        burn_in: Number of post-updates discarded before accumulation starts.
        thin: Accumulate every ``thin``-th post-update after burn-in.
        estimate_marginal: Fold conditionals into an approximate marginal.
        collect_samples: Keep the list of accumulated samples.
        collect_distributions: Keep copies of the accumulated conditionals.
        seed: Seed for the marginal's random generator.
    """

    burn_in: int = 0
    thin: int = 1
    estimate_marginal: bool = True
    collect_samples: bool = False
    collect_distributions: bool = False
    seed: Optional[int] = None

    _active: ClassVar[Optional["SamplerConfig"]] = None
    _parent: Optional["SamplerConfig"] = field(
        default=None, init=False, repr=False, compare=False
    )
    _seed_sequence: Optional[np.random.SeedSequence] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.burn_in < 0:
            raise ValueError(f"burn_in must be >= 0, got {self.burn_in}")
        if self.thin < 1:
            raise ValueError(f"thin must be >= 1, got {self.thin}")

    def __enter__(self) -> "SamplerConfig":
        """Make this config the active one.

        Returns:
            This config instance.
        """
        self._parent = SamplerConfig._active
        self._seed_sequence = None
        SamplerConfig._active = self
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Restore the enclosing config.

        Returns:
            False to propagate any exceptions.
        """
        SamplerConfig._active = self._parent
        self._parent = None
        return False

    def updated(self, **overrides: Any) -> "SamplerConfig":
        """Return a copy with the given non-``None`` settings replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def spawn_seed(self) -> Optional[np.random.SeedSequence]:
        """Draw the next child seed of this scope.

        Every call yields an independent child of ``SeedSequence(seed)``, so
        marginals built in one scope get distinct streams while a rerun of
        the scope with the same seed reproduces them in order.  Entering the
        scope restarts the sequence.

        Returns:
            A child seed, or ``None`` when the config has no seed.
        """
        if self.seed is None:
            return None
        if self._seed_sequence is None:
            self._seed_sequence = np.random.SeedSequence(self.seed)
        return self._seed_sequence.spawn(1)[0]

    @classmethod
    def active(cls) -> "SamplerConfig":
        """Get the innermost active config, or the defaults when none is active."""
        if cls._active is not None:
            return cls._active
        return cls()

    @classmethod
    def is_active(cls) -> bool:
        """Check whether any config scope is currently entered."""
        return cls._active is not None
