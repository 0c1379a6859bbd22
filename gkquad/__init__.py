"""gkquad - adaptive Gauss-Kronrod quadrature with reusable workspaces."""

__version__ = "0.1.0"

from .quadrature import (
    AdaptiveIntegrator,
    Diagnostic,
    IntegrationResult,
    QuadratureConfig,
    WorkspacePool,
    integrate,
    integrate_substituted,
)

__all__ = [
    "AdaptiveIntegrator",
    "Diagnostic",
    "IntegrationResult",
    "QuadratureConfig",
    "WorkspacePool",
    "integrate",
    "integrate_substituted",
]
