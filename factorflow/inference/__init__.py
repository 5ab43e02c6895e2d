"""Message operators for variable nodes under EP, VMP, Gibbs and max-product."""

from factorflow.inference.gibbs import DerivedVariableGibbsOp, VariableGibbsOp
from factorflow.inference.gibbs_marginal import (
    GibbsMarginal,
    GibbsMarginalArena,
    GibbsState,
)
from factorflow.inference.max_product import VariableMaxOp, mode_normalizer
from factorflow.inference.registry import (
    Algorithm,
    NodeKind,
    OperatorInfo,
    get_family,
    is_skippable,
    iter_operators,
    message_operator,
    operator_info,
    register_family,
    registered_families,
    validate_family,
)
from factorflow.inference.variable import DerivedVariableOp, VariableOp
from factorflow.inference.vmp import DerivedVariableVmpOp, VariableVmpOp

__all__ = [
    "Algorithm",
    "NodeKind",
    "OperatorInfo",
    "get_family",
    "is_skippable",
    "iter_operators",
    "message_operator",
    "operator_info",
    "register_family",
    "registered_families",
    "validate_family",
    "VariableOp",
    "DerivedVariableOp",
    "VariableVmpOp",
    "DerivedVariableVmpOp",
    "VariableMaxOp",
    "mode_normalizer",
    "VariableGibbsOp",
    "DerivedVariableGibbsOp",
    "GibbsMarginal",
    "GibbsMarginalArena",
    "GibbsState",
]
