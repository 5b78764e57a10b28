"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Account stand-ins for formula tests
- Deterministic random source
"""

import random
from decimal import Decimal
from types import SimpleNamespace

import pytest


@pytest.fixture
def make_account():
    """
    Build an account stand-in with wallet balances.

    Returns:
        Callable creating a SimpleNamespace with the balance attributes
        the accrual formulas read
    """
    def _make(
        normal: str = "0",
        benefit: str = "0",
        initial_normal: str = "0",
        initial_benefit: str = "0",
        total_deposits: str = "0",
    ) -> SimpleNamespace:
        return SimpleNamespace(
            normal_balance=Decimal(normal),
            benefit_balance=Decimal(benefit),
            initial_normal_balance=Decimal(initial_normal),
            initial_benefit_balance=Decimal(initial_benefit),
            total_deposits=Decimal(total_deposits),
        )

    return _make


@pytest.fixture
def seeded_rng():
    """Deterministic random source."""
    return random.Random(42)
