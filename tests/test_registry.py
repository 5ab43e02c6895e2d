"""Tests for operator metadata and the family registry."""

import inspect

import pytest

from factorflow.core.capabilities import SettableToProduct
from factorflow.core.errors import UnsupportedCapabilityError
from factorflow.distributions import Discrete, Gaussian, UnnormalizedDiscrete
from factorflow.inference import (
    Algorithm,
    DerivedVariableGibbsOp,
    DerivedVariableOp,
    DerivedVariableVmpOp,
    NodeKind,
    VariableGibbsOp,
    VariableMaxOp,
    VariableOp,
    VariableVmpOp,
    get_family,
    is_skippable,
    iter_operators,
    message_operator,
    operator_info,
    register_family,
    registered_families,
    validate_family,
)

FAMILIES = {
    (NodeKind.VARIABLE, Algorithm.EP): VariableOp,
    (NodeKind.DERIVED_VARIABLE, Algorithm.EP): DerivedVariableOp,
    (NodeKind.VARIABLE, Algorithm.VMP): VariableVmpOp,
    (NodeKind.DERIVED_VARIABLE, Algorithm.VMP): DerivedVariableVmpOp,
    (NodeKind.VARIABLE, Algorithm.GIBBS): VariableGibbsOp,
    (NodeKind.DERIVED_VARIABLE, Algorithm.GIBBS): DerivedVariableGibbsOp,
    (NodeKind.VARIABLE, Algorithm.MAX_PRODUCT): VariableMaxOp,
}


class _OnlySettable:
    """Message type with a single capability."""

    def set_to(self, other):
        pass


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestFamilyLookup:
    @pytest.mark.parametrize("key", list(FAMILIES))
    def test_get_family(self, key):
        family = get_family(*key)
        assert family is FAMILIES[key]
        assert family.node_kind is key[0]
        assert family.algorithm is key[1]

    def test_registered_families_is_a_copy(self):
        families = registered_families()
        assert families == FAMILIES
        families.clear()
        assert registered_families() == FAMILIES

    def test_missing_pair_raises(self):
        with pytest.raises(UnsupportedCapabilityError, match="max_product"):
            get_family(NodeKind.DERIVED_VARIABLE, Algorithm.MAX_PRODUCT)

    def test_conflicting_registration_raises(self):
        with pytest.raises(ValueError, match="VariableOp"):

            @register_family(NodeKind.VARIABLE, Algorithm.EP)
            class Impostor:
                pass

        assert get_family(NodeKind.VARIABLE, Algorithm.EP) is VariableOp

    def test_reregistration_is_idempotent(self):
        assert register_family(NodeKind.VARIABLE, Algorithm.EP)(VariableOp) is VariableOp


# ---------------------------------------------------------------------------
# Operator metadata
# ---------------------------------------------------------------------------


class TestOperatorMetadata:
    def test_iter_operators(self):
        names = [name for name, _ in iter_operators(VariableOp)]
        assert names == [
            "def_average_conditional",
            "log_evidence_ratio",
            "marginal_average_conditional",
            "marginal_average_conditional_init",
            "use_average_conditional",
        ]

    def test_plain_function_is_not_an_operator(self):
        with pytest.raises(TypeError):
            operator_info(lambda use: use)

    def test_decorator_keeps_function(self):
        @message_operator(is_returned="use")
        def passthrough(use):
            return use

        assert passthrough(3) == 3
        assert operator_info(passthrough).name == "passthrough"
        assert operator_info(passthrough).is_returned == "use"

    def test_required_capabilities_deduplicated(self):
        info = operator_info(VariableMaxOp.marginal_max_conditional)
        assert info.required_capabilities.count(SettableToProduct) == 1

    @pytest.mark.parametrize("family", list(FAMILIES.values()), ids=lambda f: f.__name__)
    def test_skip_operators_return_fixed_value(self, family):
        for name, fn in iter_operators(family):
            info = operator_info(fn)
            if not info.skip:
                continue
            args = [None] * len(inspect.signature(fn).parameters)
            assert fn(*args) == info.fixed_value, name

    def test_only_evidence_operators_skip(self):
        skipped = {
            (family.__name__, name)
            for family in FAMILIES.values()
            for name, fn in iter_operators(family)
            if is_skippable(fn)
        }
        assert skipped == {
            ("VariableOp", "log_evidence_ratio"),
            ("DerivedVariableOp", "log_average_factor"),
            ("DerivedVariableOp", "log_evidence_ratio"),
            ("DerivedVariableVmpOp", "average_log_factor"),
            ("DerivedVariableGibbsOp", "gibbs_evidence"),
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidateFamily:
    @pytest.mark.parametrize("key", list(FAMILIES))
    def test_gaussian_satisfies_every_family(self, key):
        names = validate_family(*key, Gaussian.from_mean_and_variance(0, 1))
        assert names == sorted(name for name, _ in iter_operators(FAMILIES[key]))

    @pytest.mark.parametrize("prototype", [Discrete.uniform(2), UnnormalizedDiscrete.uniform(2)])
    def test_discrete_tables_satisfy_max_product(self, prototype):
        validate_family(NodeKind.VARIABLE, Algorithm.MAX_PRODUCT, prototype)

    def test_missing_capability_is_reported(self):
        with pytest.raises(UnsupportedCapabilityError, match="SettableToProduct"):
            validate_family(NodeKind.VARIABLE, Algorithm.EP, _OnlySettable())

    def test_subset_of_operators(self):
        names = validate_family(
            NodeKind.VARIABLE,
            Algorithm.EP,
            _OnlySettable(),
            operators=["use_average_conditional", "def_average_conditional"],
        )
        assert names == ["use_average_conditional", "def_average_conditional"]

    def test_unknown_operator_raises(self):
        with pytest.raises(UnsupportedCapabilityError, match="no operator"):
            validate_family(
                NodeKind.VARIABLE, Algorithm.EP, Gaussian.uniform(), operators=["bogus"]
            )
