# tests/conftest.py
import pytest

from physunits.core.quantity import Quantity
from physunits.units.registry import DEFAULT_REGISTRY as _ureg
from physunits.units.registry import UnitsRegistry, _bootstrap_default_registry


@pytest.fixture(scope="session")
def ureg():
    return _ureg


@pytest.fixture()
def reg():
    """Fresh, fully-bootstrapped UnitsRegistry for isolation per test."""
    return _bootstrap_default_registry()


@pytest.fixture()
def empty_reg():
    """Registry with the SI base units only; tests add what they need."""
    r = UnitsRegistry()
    r.load("""
m    !
kg   !
s    !
K    !
radian !dimensionless
""")
    return r


@pytest.fixture()
def Q(ureg):
    def make(value, unit=""):
        return Quantity(value, unit, registry=ureg)
    return make
