"""Max-product (MAP) messages for variable nodes.

The marginal follows the EP product law, then tables that support an
unnormalized-with-mode representation are rescaled so their peak
log-density is zero.  Messages then track the mode of the belief rather
than its mass, which keeps long chains of products from under- or
overflowing.
"""

from __future__ import annotations

import functools
from typing import Callable, TypeVar

from ..core.capabilities import CanSetMaxToZero, Cloneable, SettableTo, SettableToProduct, supports
from .registry import Algorithm, NodeKind, message_operator, register_family
from .variable import VariableOp

D = TypeVar("D")


def _leave_unchanged(dist) -> None:
    pass


def _set_max_to_zero(dist) -> None:
    dist.set_max_to_zero()


@functools.lru_cache(maxsize=None)
def mode_normalizer(dist_type: type) -> Callable[[object], None]:
    """Normalizer for a message type, resolved once per type.

    Returns a callable that rescales a value of *dist_type* to a peak
    log-density of zero, or a no-op when the type has no such representation.
    """
    if supports(dist_type, CanSetMaxToZero):
        return _set_max_to_zero
    return _leave_unchanged


@register_family(NodeKind.VARIABLE, Algorithm.MAX_PRODUCT)
class VariableMaxOp:
    """Max-product messages for a variable node."""

    @staticmethod
    @message_operator(
        multiply_all=True,
        no_init=("use",),
        requires={"result": (SettableToProduct, SettableTo)},
    )
    def marginal_max_conditional(use: D, def_: D, result: D) -> D:
        """Product of *def_* and *use*, rescaled to a zero peak where supported."""
        result = VariableOp.marginal_average_conditional(use, def_, result)
        mode_normalizer(type(result))(result)
        return result

    @staticmethod
    @message_operator(ignore_dependency=("def_",), requires={"def_": (Cloneable,)})
    def marginal_max_conditional_init(def_: D) -> D:
        return def_.clone()

    @staticmethod
    @message_operator(requires={"result": (SettableTo,)})
    def use_max_conditional(def_: D, result: D) -> D:
        """Copy *def_* into *result* and rescale it to a zero peak where supported."""
        result.set_to(def_)
        mode_normalizer(type(result))(result)
        return result

    @staticmethod
    @message_operator(ignore_dependency=("def_",), requires={"def_": (Cloneable,)})
    def use_max_conditional_init(def_: D) -> D:
        return def_.clone()

    @staticmethod
    @message_operator(is_returned="use")
    def def_max_conditional(use: D) -> D:
        return use
