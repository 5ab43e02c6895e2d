"""Operator metadata and the (node kind, algorithm) family registry.

Every message operator carries an :class:`OperatorInfo` describing how an
external scheduler may treat it: whether it always returns a fixed neutral
value (and so never needs to be computed), which inputs let it be skipped
when uniform, which inputs it aliases in its return value, and which
capabilities each distribution argument must provide.  The metadata is
attached by :func:`message_operator` and does not change the function.

Families register themselves with :func:`register_family`; a scheduler
looks one up with :func:`get_family` and can check a distribution type
against it at graph-construction time with :func:`validate_family`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..core.capabilities import missing_capabilities
from ..core.errors import UnsupportedCapabilityError

logger = logging.getLogger(__name__)


class Algorithm(enum.Enum):
    """Inference algorithm a node's messages are computed under."""

    EP = "ep"
    VMP = "vmp"
    GIBBS = "gibbs"
    MAX_PRODUCT = "max_product"


class NodeKind(enum.Enum):
    """Kind of variable node."""

    VARIABLE = "variable"
    DERIVED_VARIABLE = "derived_variable"


@dataclass(frozen=True)
class OperatorInfo:
    """Scheduling metadata for one message operator.

    Attributes:
        name: Operator name.
        skip: The operator always returns ``fixed_value`` and may be
            requested zero times.
        fixed_value: Neutral value returned by a skip operator.
        skip_if_all_uniform: The message is uniform whenever every input is.
        skip_if_uniform: Inputs whose uniformity makes the message uniform.
        ignore_dependency: Inputs whose value changes do not invalidate the
            message (only their type/shape matters).
        no_init: Inputs that need not be initialized before the first call.
        is_returned: Input whose value the return value carries (aliased
            or copied into the result buffer).
        multiply_all: The message is a product over every use edge.
        stochastic: The operator draws random numbers or mutates sampler state.
        requires: Capabilities the message distribution type must provide,
            keyed by the argument or buffer that uses them.  A dotted key
            such as ``"to_marginal.last_conditional"`` names the conditional
            owned by a Gibbs marginal argument rather than the marginal.
    """

    name: str
    skip: bool = False
    fixed_value: Any = None
    skip_if_all_uniform: bool = False
    skip_if_uniform: Tuple[str, ...] = ()
    ignore_dependency: Tuple[str, ...] = ()
    no_init: Tuple[str, ...] = ()
    is_returned: Optional[str] = None
    multiply_all: bool = False
    stochastic: bool = False
    requires: Mapping[str, Tuple[type, ...]] = field(default_factory=dict)

    @property
    def required_capabilities(self) -> Tuple[type, ...]:
        """All capabilities required by any argument, without duplicates."""
        seen: List[type] = []
        for caps in self.requires.values():
            for cap in caps:
                if cap not in seen:
                    seen.append(cap)
        return tuple(seen)


def message_operator(**metadata: Any) -> Callable[[Callable], Callable]:
    """Attach :class:`OperatorInfo` to a message operator.

    Apply it below ``@staticmethod``::

        @staticmethod
        @message_operator(skip=True, fixed_value=0.0)
        def log_evidence_ratio(use):
            return 0.0
    """

    def decorate(fn: Callable) -> Callable:
        fn.__operator_info__ = OperatorInfo(name=fn.__name__, **metadata)
        return fn

    return decorate


def operator_info(fn: Callable) -> OperatorInfo:
    """Return the metadata of a message operator.

    Raises:
        TypeError: If *fn* is not a message operator.
    """
    info = getattr(fn, "__operator_info__", None)
    if info is None:
        raise TypeError(f"{fn!r} is not a message operator")
    return info


def is_skippable(fn: Callable) -> bool:
    """Whether the scheduler may use the fixed value without calling *fn*."""
    return operator_info(fn).skip


def iter_operators(family: type) -> Iterator[Tuple[str, Callable]]:
    """Yield ``(name, operator)`` for every message operator of a family."""
    for name in sorted(vars(family)):
        fn = getattr(family, name)
        if hasattr(fn, "__operator_info__"):
            yield name, fn


# ---------------------------------------------------------------------------
# Family registry
# ---------------------------------------------------------------------------

_FAMILIES: Dict[Tuple[NodeKind, Algorithm], type] = {}


def register_family(kind: NodeKind, algorithm: Algorithm) -> Callable[[type], type]:
    """Class decorator registering an operator family for ``(kind, algorithm)``."""

    def decorate(family: type) -> type:
        key = (kind, algorithm)
        if key in _FAMILIES and _FAMILIES[key] is not family:
            raise ValueError(
                f"{kind.value}/{algorithm.value} already served by "
                f"{_FAMILIES[key].__name__}"
            )
        _FAMILIES[key] = family
        family.node_kind = kind
        family.algorithm = algorithm
        logger.debug(
            "Registered %s for %s/%s", family.__name__, kind.value, algorithm.value
        )
        return family

    return decorate


def get_family(kind: NodeKind, algorithm: Algorithm) -> type:
    """Look up the operator family serving a node kind under an algorithm.

    Raises:
        UnsupportedCapabilityError: If no family is registered for the pair.
    """
    try:
        return _FAMILIES[(kind, algorithm)]
    except KeyError:
        raise UnsupportedCapabilityError(
            f"No operator family for {kind.value} nodes under {algorithm.value}"
        ) from None


def registered_families() -> Dict[Tuple[NodeKind, Algorithm], type]:
    return dict(_FAMILIES)


def validate_family(
    kind: NodeKind,
    algorithm: Algorithm,
    prototype: Any,
    operators: Optional[Sequence[str]] = None,
) -> List[str]:
    """Check a distribution type against a family before inference starts.

    Args:
        kind: Node kind.
        algorithm: Inference algorithm.
        prototype: An instance of the message distribution type.
        operators: Names of the operators the scheduler will request.
            Defaults to every operator of the family.

    Returns:
        Names of the operators that were checked.

    Raises:
        UnsupportedCapabilityError: If the prototype lacks a capability
            that one of the operators declares, or an operator name is unknown.
    """
    family = get_family(kind, algorithm)
    available = dict(iter_operators(family))
    names = list(operators) if operators is not None else sorted(available)
    problems = []
    for name in names:
        if name not in available:
            raise UnsupportedCapabilityError(
                f"{family.__name__} has no operator '{name}'"
            )
        info = operator_info(available[name])
        missing = missing_capabilities(prototype, info.required_capabilities)
        if missing:
            problems.append(f"{name}: {', '.join(missing)}")
    if problems:
        raise UnsupportedCapabilityError(
            f"{type(prototype).__name__} cannot be used with {family.__name__} "
            f"({'; '.join(problems)})"
        )
    logger.debug(
        "Validated %s against %s (%d operators)",
        type(prototype).__name__,
        family.__name__,
        len(names),
    )
    return names
