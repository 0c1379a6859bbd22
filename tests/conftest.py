"""Pytest configuration and shared fixtures."""

# Add project root to path for imports
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from gkquad.quadrature import PoolConfig, QuadratureConfig, WorkspacePool  # noqa: E402


@pytest.fixture
def seed():
    """Set random seed for reproducibility."""
    seed_value = 42
    random.seed(seed_value)
    return seed_value


@pytest.fixture
def pool():
    """Fresh workspace pool, closed after the test."""
    with WorkspacePool() as workspace_pool:
        yield workspace_pool


@pytest.fixture
def small_pool():
    """Pool whose stores are small and start with a two-slot arena."""
    with WorkspacePool(PoolConfig(default_capacity=64, initial_allocation=2)) as p:
        yield p


@pytest.fixture
def quiet_config():
    """Default tolerances without QuadratureWarning."""
    return QuadratureConfig(warn=False)
