"""Exception and warning types raised by the quadrature package."""


class QuadratureError(Exception):
    """Base class for errors raised by adaptive quadrature."""


class InvalidToleranceError(QuadratureError, ValueError):
    """Requested tolerances cannot be met in double precision.

    Raised only when the caller opts into hard failures; otherwise the
    condition is reported through ``Diagnostic.INVALID_TOLERANCE``.
    """


class WorkspaceInvariantError(QuadratureError, RuntimeError):
    """An interval store or workspace pool was used in an impossible state."""


class QuadratureWarning(RuntimeWarning):
    """Integration returned a result that may not meet the requested tolerance."""
