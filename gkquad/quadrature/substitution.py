"""Change of variables for improper and endpoint-singular integrals.

A ``Substitution`` maps a transformed coordinate ``u`` to the original
coordinate ``x``. Composing it with an integrand gives
``g(u) = f(x(u)) * dx/du(u)`` on the bounds ``(u(a), u(b))``, which the
adaptive engine integrates like any other finite interval. The adapter does
no error control of its own.

Classes:
    Substitution: Abstract change of variables
    ReciprocalSubstitution: x = 1/u, for semi-infinite domains
    SquareSubstitution: x = origin + u², for inverse square-root singularities
    SubstitutedIntegrand: The composed integrand g(u)

Functions:
    substitute: Build the composed integrand and transformed bounds
"""

import math
from abc import ABC, abstractmethod
from collections.abc import Callable


class Substitution(ABC):
    """Abstract change of variables ``x = x(u)``.

    ``x`` and ``dxdu`` are applied to every evaluation point and should accept
    tensors as well as floats when used with vectorized integration; ``u`` is
    only applied to the two bounds.
    """

    @abstractmethod
    def x(self, u):
        """Map a transformed coordinate to the original coordinate."""

    @abstractmethod
    def dxdu(self, u):
        """Derivative of ``x`` with respect to ``u``."""

    @abstractmethod
    def u(self, x: float) -> float:
        """Inverse map, used for the integration bounds."""


class ReciprocalSubstitution(Substitution):
    """``x = 1/u``, mapping ``[c, inf)`` onto ``(0, 1/c]`` for ``c > 0``.

    Example:
        >>> integrate_substituted(lambda x: x**-2, 1.0, math.inf,
        ...                       ReciprocalSubstitution())  # 1.0
    """

    def x(self, u):
        return 1.0 / u

    def dxdu(self, u):
        return -1.0 / (u * u)

    def u(self, x: float) -> float:
        if math.isinf(x):
            return 0.0
        return 1.0 / x


class SquareSubstitution(Substitution):
    """``x = origin + u²``, smoothing ``(x - origin)^(-1/2)`` behaviour.

    Attributes:
        origin: Location of the singular endpoint
    """

    def __init__(self, origin: float = 0.0):
        self.origin = origin

    def x(self, u):
        return self.origin + u * u

    def dxdu(self, u):
        return 2.0 * u

    def u(self, x: float) -> float:
        if x < self.origin:
            raise ValueError(
                f"SquareSubstitution requires x >= origin ({self.origin}), got {x}"
            )
        return math.sqrt(x - self.origin)


class SubstitutedIntegrand:
    """Callable ``g(u) = f(x(u)) * dxdu(u)``."""

    def __init__(self, func: Callable, substitution: Substitution):
        self.func = func
        self.substitution = substitution

    def __call__(self, u):
        return self.func(self.substitution.x(u)) * self.substitution.dxdu(u)


def substitute(
    func: Callable, a: float, b: float, substitution: Substitution
) -> tuple[SubstitutedIntegrand, float, float]:
    """Pull ``func`` on ``[a, b]`` back onto the transformed domain.

    Returns:
        ``(g, u(a), u(b))``
    """
    return (
        SubstitutedIntegrand(func, substitution),
        substitution.u(a),
        substitution.u(b),
    )
