"""Variational message passing for variable and derived-variable nodes.

Under VMP the marginal of a variable is still the product of its
``def`` and ``use`` messages, but at the variational fixed point both
outgoing messages equal that marginal.  The node's share of the lower
bound on log-evidence is the entropy of the marginal.
"""

from __future__ import annotations

from typing import TypeVar

from ..core.capabilities import (
    CanGetAverageLog,
    Cloneable,
    SettableTo,
    SettableToProduct,
    check_proper,
)
from .registry import Algorithm, NodeKind, message_operator, register_family

D = TypeVar("D")
R = TypeVar("R")


@register_family(NodeKind.VARIABLE, Algorithm.VMP)
class VariableVmpOp:
    """VMP messages for a variable node."""

    @staticmethod
    @message_operator(
        skip_if_uniform=("to_marginal",),
        requires={"to_marginal": (CanGetAverageLog,)},
    )
    def average_log_factor(to_marginal: D) -> float:
        """Evidence term ``-E[log q(x)]`` under the current marginal ``q``.

        Summed with every other node's and factor's term, this forms the
        variational lower bound on the log-evidence.

        Raises:
            ImproperDistributionError: If the marginal is not proper.
        """
        check_proper(to_marginal, "to_marginal", allow_uniform=False)
        return -to_marginal.average_log(to_marginal)

    @staticmethod
    @message_operator(
        skip_if_all_uniform=True,
        multiply_all=True,
        no_init=("use",),
        requires={"result": (SettableToProduct, SettableTo)},
    )
    def marginal_average_logarithm(use: D, def_: D, result: D) -> D:
        """Set *result* to the product of *def_* and *use*."""
        check_proper(def_, "def")
        check_proper(use, "use")
        result.set_to_product(def_, use)
        return result

    @staticmethod
    @message_operator(ignore_dependency=("def_",), requires={"def_": (Cloneable,)})
    def marginal_average_logarithm_init(def_: D) -> D:
        return def_.clone()

    @staticmethod
    @message_operator(is_returned="to_marginal", requires={"result": (SettableTo,)})
    def use_average_logarithm(to_marginal: D, result: D) -> D:
        """Message to a consumer: a copy of the current marginal."""
        result.set_to(to_marginal)
        return result

    @staticmethod
    @message_operator(ignore_dependency=("def_",), requires={"def_": (Cloneable,)})
    def use_average_logarithm_init(def_: D) -> D:
        return def_.clone()

    @staticmethod
    @message_operator(is_returned="to_marginal", requires={"result": (SettableTo,)})
    def def_average_logarithm(to_marginal: D, result: D) -> D:
        """Message to the definition: a copy of the current marginal."""
        result.set_to(to_marginal)
        return result


@register_family(NodeKind.DERIVED_VARIABLE, Algorithm.VMP)
class DerivedVariableVmpOp:
    """VMP messages for a derived variable.

    The marginal is wholly determined by the single defining input, so it
    is a copy of ``def`` rather than a product.  *result* may use a
    different representation from the incoming message; its ``set_to``
    performs the conversion.
    """

    @staticmethod
    @message_operator(skip=True, fixed_value=0.0)
    def average_log_factor() -> float:
        return 0.0

    @staticmethod
    @message_operator(is_returned="def_", requires={"result": (SettableTo,)})
    def marginal_average_logarithm(def_, result: R) -> R:
        result.set_to(def_)
        return result

    @staticmethod
    @message_operator(ignore_dependency=("def_",), requires={"def_": (Cloneable,)})
    def marginal_average_logarithm_init(def_: D) -> D:
        return def_.clone()

    @staticmethod
    @message_operator(is_returned="def_", requires={"result": (SettableTo,)})
    def use_average_logarithm(def_, result: R) -> R:
        result.set_to(def_)
        return result

    @staticmethod
    @message_operator(ignore_dependency=("def_",), requires={"def_": (Cloneable,)})
    def use_average_logarithm_init(def_: D) -> D:
        return def_.clone()

    @staticmethod
    @message_operator(is_returned="use", requires={"result": (SettableTo,)})
    def def_average_logarithm(use: D, result: D) -> D:
        result.set_to(use)
        return result
