"""
physunits.core.utils
====================

Numeric helpers used by the unit algebra.

Factors are kept as exact rationals (`fractions.Fraction`) whenever the input
allows it; floats only appear once an irrational value (e.g. pi) or a
non-integral power enters the computation.
"""

from __future__ import annotations

from fractions import Fraction
from math import isclose
from numbers import Number, Rational
from typing import Any, Union

from physunits.core.errors import InvalidArgument

Exponent = Union[int, Fraction]


def is_number(x: Any) -> bool:
    """True for plain numbers (bool excluded)."""
    return isinstance(x, Number) and not isinstance(x, bool)


def simplify_fraction(x: Any) -> Any:
    """Collapse a Fraction with denominator 1 to an int; leave anything else alone."""
    if isinstance(x, Fraction) and x.denominator == 1:
        return int(x.numerator)
    return x


def exact(x: Any) -> Any:
    """Promote integers to `Fraction` so later division stays exact."""
    if isinstance(x, int) and not isinstance(x, bool):
        return Fraction(x)
    return x


def exact_div(a: Any, b: Any) -> Any:
    """Divide, keeping rational operands rational (1/3 stays 1/3)."""
    if isinstance(a, Rational) and isinstance(b, Rational):
        return Fraction(a) / Fraction(b)
    return a / b


def parse_decimal(text: str) -> Exponent:
    """Parse a decimal literal ("2.54", "1e-2", "12") into an exact rational."""
    return simplify_fraction(Fraction(text))


def as_numeric(x: Any) -> Any:
    """Coerce an exponent-like value to a plain number.

    Accepts numbers and dimensionless units (whose numeric value is used).
    """
    from physunits.core.unit import Unit

    if isinstance(x, Unit):
        x = x.to_numeric()
    if not is_number(x):
        raise InvalidArgument(f"not a number: {x!r}")
    return simplify_fraction(x)


def num_inspect(x: Any) -> str:
    """Short textual form for factors: 1000, 1/3, 0.3048."""
    if isinstance(x, Fraction):
        if x.denominator == 1:
            return str(x.numerator)
        return f"{x.numerator}/{x.denominator}"
    return repr(x)


def values_close(a: Any, b: Any, rel_tol: float = 1e-12) -> bool:
    """Exact equality for rationals, relative tolerance once floats are involved."""
    if isinstance(a, Rational) and isinstance(b, Rational):
        return a == b
    return a == b or isclose(a, b, rel_tol=rel_tol, abs_tol=0.0)


__all__ = [
    "Exponent",
    "is_number",
    "simplify_fraction",
    "exact",
    "exact_div",
    "parse_decimal",
    "as_numeric",
    "num_inspect",
    "values_close",
]
