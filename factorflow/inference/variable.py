"""Expectation propagation messages for variable and derived-variable nodes.

A variable node is the identity factor joining one defining computation
(``def``) to its consumers (``use``).  Under EP its marginal is the
product of the two incoming messages and each outgoing message passes the
opposite side through unchanged.  The node is evidentially transparent:
its evidence contribution is exactly zero.
"""

from __future__ import annotations

from typing import TypeVar

from ..core.capabilities import Cloneable, SettableTo, SettableToProduct, check_proper
from .registry import Algorithm, NodeKind, message_operator, register_family

D = TypeVar("D")


def _set_to_product(use: D, def_: D, result: D) -> D:
    check_proper(def_, "def")
    check_proper(use, "use")
    result.set_to_product(def_, use)
    return result


@register_family(NodeKind.VARIABLE, Algorithm.EP)
class VariableOp:
    """EP messages for a variable node."""

    @staticmethod
    @message_operator(skip=True, fixed_value=0.0)
    def log_evidence_ratio(use) -> float:
        """Evidence contribution of the node; always zero."""
        return 0.0

    @staticmethod
    @message_operator(
        skip_if_all_uniform=True,
        multiply_all=True,
        no_init=("use",),
        requires={"result": (SettableToProduct, SettableTo)},
    )
    def marginal_average_conditional(use: D, def_: D, result: D) -> D:
        """Set *result* to the product of *def_* and *use*.

        Args:
            use: Product of the messages from every consumer.
            def_: Message from the defining computation.
            result: Buffer overwritten with the marginal.

        Returns:
            *result*.

        Raises:
            ImproperDistributionError: If either input is improper and not
                uniform.
        """
        return _set_to_product(use, def_, result)

    @staticmethod
    @message_operator(
        ignore_dependency=("def_",),
        requires={"def_": (Cloneable,)},
    )
    def marginal_average_conditional_init(def_: D) -> D:
        """Initial marginal buffer: an independent copy of *def_*."""
        return def_.clone()

    @staticmethod
    @message_operator(is_returned="def_")
    def use_average_conditional(def_: D) -> D:
        """Message to a consumer: *def_* itself (aliased, not copied)."""
        return def_

    @staticmethod
    @message_operator(is_returned="use")
    def def_average_conditional(use: D) -> D:
        """Message to the definition: *use* itself (aliased, not copied)."""
        return use


@register_family(NodeKind.DERIVED_VARIABLE, Algorithm.EP)
class DerivedVariableOp:
    """EP messages for a derived variable.

    A derived variable is fully determined by its single defining input and
    has no prior of its own, so it contributes no evidence.
    """

    @staticmethod
    @message_operator(skip=True, fixed_value=0.0)
    def log_average_factor() -> float:
        return 0.0

    @staticmethod
    @message_operator(skip=True, fixed_value=0.0)
    def log_evidence_ratio(use) -> float:
        return 0.0

    @staticmethod
    @message_operator(
        skip_if_all_uniform=True,
        multiply_all=True,
        no_init=("use",),
        requires={"result": (SettableToProduct,)},
    )
    def marginal_average_conditional(use: D, def_: D, result: D) -> D:
        """Set *result* to the product of *def_* and *use*."""
        return _set_to_product(use, def_, result)

    @staticmethod
    @message_operator(
        ignore_dependency=("def_",),
        requires={"def_": (Cloneable,)},
    )
    def marginal_average_conditional_init(def_: D) -> D:
        return def_.clone()

    @staticmethod
    @message_operator(is_returned="def_")
    def use_average_conditional(def_: D) -> D:
        return def_

    @staticmethod
    @message_operator(is_returned="use")
    def def_average_conditional(use: D) -> D:
        return use
