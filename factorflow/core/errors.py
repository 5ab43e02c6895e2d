"""Exception types raised by FactorFlow operators and distributions."""


class FactorFlowError(Exception):
    """Base class for all FactorFlow errors."""


class ImproperDistributionError(FactorFlowError, ValueError):
    """A distribution that must be proper (normalizable) is not.

    Raised when an operator receives an improper message on an input that
    requires properness, when a product has zero total mass, and when an
    evidence integral is taken over disjoint supports.
    """


class UnsupportedCapabilityError(FactorFlowError, TypeError):
    """A distribution type lacks a capability an operator needs."""


class StaleStateError(FactorFlowError, RuntimeError):
    """A Gibbs marginal was read after its conditional changed without a post-update."""
