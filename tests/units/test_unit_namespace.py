# pytest tests for physunits.units.registry.UnitNamespace

import pytest

from physunits.core.errors import UnitParseError
from physunits.core.unit import Unit
from physunits.units.registry import UnitNamespace


@pytest.fixture()
def ns(reg):
    """A UnitNamespace over an isolated registry."""
    return UnitNamespace(reg)


# ---------------------------------------------------------------------------
# Access styles: __call__, __getitem__, __getattr__
# ---------------------------------------------------------------------------

def test_call_parses_expressions(ns):
    v = ns("km/hr")
    assert isinstance(v, Unit)
    assert v.dimension == {"m": 1, "s": -1}


def test_call_casts_numbers_to_units(ns):
    u = ns("1|4")
    assert isinstance(u, Unit)
    assert u.factor == 0.25


def test_getitem_matches_call(ns):
    assert ns["N"] == ns("kg m/s^2")


def test_getattr_looks_up_single_tokens(ns, reg):
    assert ns.m is reg.units["m"]
    assert ns.km.factor == 1000
    assert ns.miles == ns.mile


def test_unknown_attribute_is_attribute_error(ns):
    with pytest.raises(AttributeError):
        _ = ns.furlong
    with pytest.raises(AttributeError):
        _ = ns._private


def test_unknown_expression_raises_parse_error(ns):
    with pytest.raises(UnitParseError):
        ns("m/furlong")


def test_contains(ns):
    assert "km" in ns
    assert "furlong" not in ns


def test_define_through_namespace(ns, reg):
    ns.define("smoot", "1.7018 m")
    assert "smoot" in reg.units
    assert ns.smoot.factor * 2 == ns("3.4036 m").factor


def test_define_reserved_name_rejected(ns):
    with pytest.raises(ValueError, match="conflicts"):
        ns.define("define", "1 m")


def test_dir_lists_units(ns):
    names = dir(ns)
    assert "m" in names and "tempC" in names
    assert "define" in names
    assert names == sorted(names)
