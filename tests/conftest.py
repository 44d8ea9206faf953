import pytest

from core.data import build_catalog


class FixedRng:
    """Always returns the same relative position inside [low, high]."""

    def __init__(self, fraction: float):
        self.fraction = fraction

    def uniform(self, low, high):
        return low + (high - low) * self.fraction


class ZeroRng:
    """Zero noise; every range the generators draw from contains 0."""

    def uniform(self, low, high):
        return 0.0


@pytest.fixture
def zero_rng():
    return ZeroRng()


@pytest.fixture
def fixed_rng():
    return FixedRng


@pytest.fixture(scope="session")
def catalog():
    return build_catalog(seed=7)
