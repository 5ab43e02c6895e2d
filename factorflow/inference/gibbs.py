"""Gibbs sampling messages for variable and derived-variable nodes.

Under Gibbs sampling the message to a neighbour is the current sample of
the node rather than a distribution.  Each sweep recomputes the node's
full conditional (the product of ``def`` and ``use``, or a point mass when
either side already sent a sample) inside the marginal's update protocol,
which then draws the next sample and extends the accumulated marginal.
"""

from __future__ import annotations

from typing import TypeVar

import numpy as np

from ..core.capabilities import (
    CanGetLogAverageOf,
    CanGetLogProb,
    HasPoint,
    Sampleable,
    SettableTo,
    SettableToProduct,
    check_proper,
)
from ..core.errors import ImproperDistributionError
from .gibbs_marginal import GibbsMarginal
from .registry import Algorithm, NodeKind, message_operator, register_family

D = TypeVar("D")
T = TypeVar("T")


def _resample_product(use: D, def_: D, to_marginal: GibbsMarginal) -> GibbsMarginal:
    check_proper(def_, "def", allow_uniform=False)
    check_proper(use, "use")
    with to_marginal.updating() as conditional:
        conditional.set_to_product(def_, use)
    return to_marginal


def _resample_point(value: T, to_marginal: GibbsMarginal) -> GibbsMarginal:
    with to_marginal.updating() as conditional:
        conditional.point = value
    return to_marginal


@register_family(NodeKind.VARIABLE, Algorithm.GIBBS)
class VariableGibbsOp:
    """Gibbs messages for a variable node."""

    @staticmethod
    @message_operator(
        requires={
            "use": (CanGetLogProb,),
            "def_": (CanGetLogAverageOf, CanGetLogProb),
        },
    )
    def gibbs_evidence(use: D, def_: D, marginal: GibbsMarginal) -> float:
        """Evidence estimate at the current sample ``x``.

        ``log int def(x) use(x) dx - log def(x) - log use(x)``: the sample's
        own contribution to each side's density is removed so the remainder
        is an importance-weighted evidence estimate.

        Raises:
            ImproperDistributionError: If an input is improper, the supports
                are disjoint, or the estimate is undefined at the sample.
        """
        check_proper(def_, "def")
        check_proper(use, "use")
        sample = marginal.last_sample
        result = def_.log_average_of(use) - def_.log_prob(sample) - use.log_prob(sample)
        if np.isnan(result):
            raise ImproperDistributionError(
                f"Gibbs evidence is undefined at sample {sample!r}"
            )
        return float(result)

    @staticmethod
    @message_operator(
        stochastic=True,
        skip_if_uniform=("def_",),
        requires={"to_marginal.last_conditional": (SettableToProduct, Sampleable)},
    )
    def marginal_gibbs(use: D, def_: D, to_marginal: GibbsMarginal) -> GibbsMarginal:
        """Resample the node from the product of *def_* and *use*.

        Args:
            use: Product of the distribution messages from the consumers.
            def_: Message from the definition.  Must be proper.
            to_marginal: The node's Gibbs marginal, updated in place.

        Returns:
            *to_marginal*.

        Raises:
            ImproperDistributionError: If *def_* is not proper or *use* is
                improper and not uniform.
        """
        return _resample_product(use, def_, to_marginal)

    @staticmethod
    @message_operator(
        stochastic=True,
        skip_if_uniform=("def_",),
        requires={"to_marginal.last_conditional": (HasPoint, Sampleable)},
    )
    def marginal_gibbs_from_sample(use: T, def_: D, to_marginal: GibbsMarginal) -> GibbsMarginal:
        """Pin the node to the sample *use* sent by a consumer."""
        return _resample_point(use, to_marginal)

    @staticmethod
    @message_operator(skip_if_uniform=("marginal",))
    def use_gibbs(marginal: GibbsMarginal) -> T:
        """Message to a consumer: the current sample."""
        return marginal.last_sample

    @staticmethod
    @message_operator(is_returned="def_", requires={"result": (SettableTo,)})
    def use_gibbs_distribution(def_: D, result: D) -> D:
        """Distribution message to a consumer: a copy of *def_*."""
        result.set_to(def_)
        return result

    @staticmethod
    @message_operator(skip_if_uniform=("marginal",))
    def def_gibbs(marginal: GibbsMarginal) -> T:
        """Message to the definition: the current sample."""
        return marginal.last_sample

    @staticmethod
    @message_operator(is_returned="use", requires={"result": (SettableTo,)})
    def def_gibbs_distribution(use: D, result: D) -> D:
        """Distribution message to the definition: a copy of *use*."""
        result.set_to(use)
        return result


@register_family(NodeKind.DERIVED_VARIABLE, Algorithm.GIBBS)
class DerivedVariableGibbsOp:
    """Gibbs messages for a derived variable."""

    @staticmethod
    @message_operator(skip=True, fixed_value=0.0)
    def gibbs_evidence() -> float:
        return 0.0

    @staticmethod
    @message_operator(skip_if_uniform=("marginal",))
    def use_gibbs(marginal: GibbsMarginal, def_: D) -> T:
        """The current sample.  Takes *def_* so it is retriggered when ``def`` changes."""
        return marginal.last_sample

    @staticmethod
    @message_operator(is_returned="def_")
    def use_gibbs_from_sample(def_: T) -> T:
        """A sampled definition passes straight through to consumers."""
        return def_

    @staticmethod
    @message_operator(skip_if_uniform=("marginal",))
    def def_gibbs(marginal: GibbsMarginal) -> T:
        return marginal.last_sample

    @staticmethod
    @message_operator(is_returned="use")
    def def_gibbs_distribution(use: D) -> D:
        return use

    @staticmethod
    @message_operator(
        stochastic=True,
        skip_if_all_uniform=True,
        skip_if_uniform=("def_",),
        requires={"to_marginal.last_conditional": (SettableToProduct, Sampleable)},
    )
    def marginal_gibbs(use: D, def_: D, to_marginal: GibbsMarginal) -> GibbsMarginal:
        return _resample_product(use, def_, to_marginal)

    @staticmethod
    @message_operator(
        stochastic=True,
        requires={"to_marginal.last_conditional": (HasPoint, Sampleable)},
    )
    def marginal_gibbs_from_def_sample(def_: T, to_marginal: GibbsMarginal) -> GibbsMarginal:
        """Pin the node to the sampled definition *def_*."""
        return _resample_point(def_, to_marginal)

    @staticmethod
    @message_operator(
        stochastic=True,
        ignore_dependency=("def_",),
        requires={"to_marginal.last_conditional": (HasPoint, Sampleable)},
    )
    def marginal_gibbs_from_use_sample(use: T, def_: D, to_marginal: GibbsMarginal) -> GibbsMarginal:
        """Pin the node to the sample *use* sent by a consumer."""
        return _resample_point(use, to_marginal)
