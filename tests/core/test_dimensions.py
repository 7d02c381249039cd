from fractions import Fraction

import pytest

from physunits.core.dimensions import DIM_0, Dimension
from physunits.core.errors import InvalidArgument


def test_zero_exponents_are_not_stored():
    d = Dimension({"m": 1, "s": 0})
    assert "s" not in d
    assert len(d) == 1
    assert d["s"] == 0  # absent keys read as 0


def test_equality_with_plain_dict():
    assert Dimension({"m": 1, "s": -1}) == {"m": 1, "s": -1}
    assert Dimension({"m": 1}) == {"m": 1, "kg": 0}
    assert Dimension({"m": 1}) != {"m": 2}


def test_hash_matches_equality():
    a = Dimension({"m": 1, "s": -2})
    b = Dimension([("s", -2), ("m", 1)])
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1


def test_mul_and_div_cancel_to_empty():
    v = Dimension({"m": 1, "s": -1})
    t = Dimension({"s": 1})
    assert v * t == {"m": 1}
    assert (v / v).is_empty
    assert v / v == DIM_0


def test_pow_scales_exponents():
    d = Dimension({"m": 1, "s": -1})
    assert d ** 2 == {"m": 2, "s": -2}
    assert d ** 0 == DIM_0
    assert d ** 2.0 == {"m": 2, "s": -2}


def test_rational_pow_keeps_exact_exponent():
    area = Dimension({"m": 2})
    assert area ** Fraction(1, 2) == {"m": 1}
    assert isinstance((area ** Fraction(1, 2))["m"], int)
    assert Dimension({"m": 1}) ** Fraction(1, 3) == {"m": Fraction(1, 3)}


def test_inverse():
    assert Dimension({"kg": 1, "s": -2}).inverse() == {"kg": -1, "s": 2}


def test_without_predicate_and_names():
    d = Dimension({"m": 1, "radian": 1, "pi": -1})
    assert d.without(["radian", "pi"]) == {"m": 1}
    assert d.without(lambda k: k == "pi") == {"m": 1, "radian": 1}


def test_bad_keys_and_exponents_rejected():
    with pytest.raises(InvalidArgument):
        Dimension({1: 1})
    with pytest.raises(InvalidArgument):
        Dimension({"m": "1"})
    with pytest.raises(TypeError):
        Dimension({"m": 1}) ** "2"


def test_non_mapping_shapes_rejected():
    assert Dimension([("m", 1), ("s", -1)]) == {"m": 1, "s": -1}
    for bad in ("foo", 5, [("m",)], [["m", 1]]):
        with pytest.raises(InvalidArgument):
            Dimension(bad)


def test_repr_is_dict_like():
    assert repr(Dimension({"m": 1, "s": -2})) == "{'m': 1, 's': -2}"
    assert repr(Dimension({"m": Fraction(1, 2)})) == "{'m': 1/2}"
