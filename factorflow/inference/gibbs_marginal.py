"""Per-node sampling state for Gibbs inference.

A :class:`GibbsMarginal` carries, across sweeps, the last full
conditional of a node, the last sample drawn from it, and an approximate
marginal accumulated from the conditionals seen after burn-in.

The conditional can only change through :meth:`GibbsMarginal.updating`
or the :attr:`GibbsMarginal.last_conditional` setter, and both run
:meth:`GibbsMarginal.post_update` before returning, so ``last_sample`` and
the accumulated marginal always describe the current conditional.
"""

from __future__ import annotations

import contextlib
import copy
import enum
import logging
import threading
from typing import Any, Dict, Generic, Hashable, Iterator, List, Optional, TypeVar

import numpy as np

from ..core.capabilities import (
    CanEstimate,
    Cloneable,
    HasPoint,
    Sampleable,
    require_capabilities,
)
from ..core.config import SamplerConfig
from ..core.errors import StaleStateError, UnsupportedCapabilityError

logger = logging.getLogger(__name__)

D = TypeVar("D")
T = TypeVar("T")


class GibbsState(enum.Enum):
    """Lifecycle of a Gibbs marginal."""

    UNINITIALIZED = "uninitialized"
    SEEDED = "seeded"
    RESAMPLED = "resampled"


class GibbsMarginal(Generic[D, T]):
    """Sampling state of one Gibbs variable node.

    Settings left as ``None`` are taken from the active
    :class:`~factorflow.core.config.SamplerConfig`.

    Args:
        prior: Defining message used to seed the conditional.  It is cloned;
            the marginal never mutates the caller's object.
        burn_in: Post-updates discarded before accumulation starts.
        thin: Accumulate every ``thin``-th post-update after burn-in.
        estimate_marginal: Fold conditionals into an approximate marginal.
        collect_samples: Keep the accumulated samples.
        collect_distributions: Keep copies of the accumulated conditionals.
        seed: Seed for this marginal's random generator.  When omitted, a
            distinct child of the active scope's seed is used.

    Raises:
        UnsupportedCapabilityError: If *prior* cannot be cloned or sampled.
        ImproperDistributionError: If no seed sample can be drawn from *prior*.
    """

    def __init__(
        self,
        prior: D,
        *,
        burn_in: Optional[int] = None,
        thin: Optional[int] = None,
        estimate_marginal: Optional[bool] = None,
        collect_samples: Optional[bool] = None,
        collect_distributions: Optional[bool] = None,
        seed: Optional[int] = None,
    ) -> None:
        require_capabilities(prior, (Cloneable, Sampleable), operator="GibbsMarginal")
        scope = SamplerConfig.active()
        self.config = scope.updated(
            burn_in=burn_in,
            thin=thin,
            estimate_marginal=estimate_marginal,
            collect_samples=collect_samples,
            collect_distributions=collect_distributions,
            seed=seed,
        )
        self.state = GibbsState.UNINITIALIZED
        self.update_count = 0
        self._rng = np.random.default_rng(seed if seed is not None else scope.spawn_seed())
        self._lock = threading.RLock()
        self._conditional: D = prior.clone()
        self._estimator = None
        if self.config.estimate_marginal and isinstance(prior, CanEstimate):
            self._estimator = prior.estimator()
        self._samples: List[T] = []
        self._conditionals: List[D] = []

        self._last_sample: T = self._conditional.sample(self._rng)
        self._fresh = True
        self.state = GibbsState.SEEDED
        logger.debug("Seeded Gibbs marginal from %r", prior)

    # ------------------------------------------------------------------ #
    #  Update protocol
    # ------------------------------------------------------------------ #

    @contextlib.contextmanager
    def updating(self) -> Iterator[D]:
        """Yield the owned conditional for in-place mutation, then post-update.

        If the body raises, the post-update is not run and the marginal is
        left stale: reading :attr:`last_sample` raises
        :class:`StaleStateError` until a later update succeeds.
        """
        with self._lock:
            self._fresh = False
            yield self._conditional
            self.post_update()

    def post_update(self) -> None:
        """Draw a new sample from the conditional and extend the accumulation.

        Must follow every change of the conditional; :meth:`updating` and
        the :attr:`last_conditional` setter call it automatically.
        """
        with self._lock:
            self._last_sample = self._conditional.sample(self._rng)
            self.update_count += 1
            self.state = GibbsState.RESAMPLED
            self._fresh = True
            past_burn_in = self.update_count - self.config.burn_in
            if past_burn_in > 0 and past_burn_in % self.config.thin == 0:
                self._accumulate()

    def _accumulate(self) -> None:
        if self._estimator is not None:
            if isinstance(self._conditional, HasPoint) and self._conditional.is_point_mass:
                self._estimator.add_sample(self._last_sample)
            else:
                self._estimator.add(self._conditional)
        if self.config.collect_samples:
            self._samples.append(self._last_sample)
        if self.config.collect_distributions:
            self._conditionals.append(self._conditional.clone())
        # Powers of two only.
        if self.update_count & (self.update_count - 1) == 0:
            logger.debug(
                "Accumulated update %d (sample=%r)", self.update_count, self._last_sample
            )

    # ------------------------------------------------------------------ #
    #  Accessors
    # ------------------------------------------------------------------ #

    @property
    def last_conditional(self) -> D:
        """Most recent full conditional.  Mutate it only through :meth:`updating`."""
        return self._conditional

    @last_conditional.setter
    def last_conditional(self, value: D) -> None:
        with self.updating() as conditional:
            conditional.set_to(value)

    @property
    def last_sample(self) -> T:
        """Most recent draw from :attr:`last_conditional`.

        Raises:
            StaleStateError: If the last conditional update did not complete.

        Reads block while another thread is inside :meth:`updating`.
        """
        with self._lock:
            if not self._fresh:
                raise StaleStateError(
                    "Gibbs marginal conditional changed without a completed post-update"
                )
            return self._last_sample

    @property
    def is_stale(self) -> bool:
        return not self._fresh

    @property
    def samples(self) -> List[T]:
        """Samples kept after burn-in and thinning (if collecting)."""
        return list(self._samples)

    @property
    def conditionals(self) -> List[D]:
        """Conditionals kept after burn-in and thinning (if collecting)."""
        return list(self._conditionals)

    @property
    def distribution(self) -> D:
        """The accumulated approximate marginal.

        Raises:
            UnsupportedCapabilityError: If marginal estimation is disabled
                or the distribution type has no estimator.
            ImproperDistributionError: If nothing has been accumulated yet.
        """
        if self._estimator is None:
            raise UnsupportedCapabilityError(
                f"No marginal estimate for {type(self._conditional).__name__} "
                "(estimation disabled or CanEstimate missing)"
            )
        return self._estimator.get_distribution(self._conditional.clone())

    def clone(self) -> "GibbsMarginal[D, T]":
        """Independent copy of the full sampling state, generator included."""
        with self._lock:
            other = copy.copy(self)
            other._lock = threading.RLock()
            other._rng = copy.deepcopy(self._rng)
            other._conditional = self._conditional.clone()
            other._estimator = copy.deepcopy(self._estimator)
            other._samples = list(self._samples)
            other._conditionals = [c.clone() for c in self._conditionals]
        return other

    def __repr__(self) -> str:
        return (
            f"GibbsMarginal(state={self.state.value}, updates={self.update_count}, "
            f"last_sample={self._last_sample!r})"
        )


class GibbsMarginalArena:
    """Owns the Gibbs marginals of a run, one per node.

    Nodes are identified by any hashable key.  The arena is the only owner
    of each marginal, so tearing the run down is a matter of :meth:`clear`.
    """

    def __init__(self) -> None:
        self._marginals: Dict[Hashable, GibbsMarginal] = {}

    def create(self, node: Hashable, prior: Any, **settings: Any) -> GibbsMarginal:
        """Create and register the marginal for *node*.

        Raises:
            ValueError: If *node* already has a marginal.
        """
        if node in self._marginals:
            raise ValueError(f"Node {node!r} already has a Gibbs marginal")
        marginal = GibbsMarginal(prior, **settings)
        self._marginals[node] = marginal
        return marginal

    def __getitem__(self, node: Hashable) -> GibbsMarginal:
        return self._marginals[node]

    def __contains__(self, node: Hashable) -> bool:
        return node in self._marginals

    def __len__(self) -> int:
        return len(self._marginals)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._marginals)

    def discard(self, node: Hashable) -> None:
        self._marginals.pop(node, None)

    def clear(self) -> None:
        self._marginals.clear()
