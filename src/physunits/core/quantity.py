"""
physunits.core.quantity
=======================

Defines `Quantity`, a numeric value paired with a `Unit`.

The quantity delegates every unit decision to its unit:

- ``unit.convert(q)`` for changing units (affine shift included),
- ``unit.convert_scale(q)`` when adding or subtracting, so that
  ``Q(50, "tempF") + Q(10, "tempC")`` adds a temperature *difference*,
- unit algebra (``*``, ``/``, ``**``) for products, which refuses offset units.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Union

from physunits.core.errors import InvalidArgument
from physunits.core.unit import Unit
from physunits.core.utils import (
    as_numeric,
    exact,
    exact_div,
    is_number,
    simplify_fraction,
    values_close,
)

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from physunits.units.registry import UnitsRegistry

Number = Union[int, float, Any]


class Quantity:
    """
    A value expressed in a unit.

    Attributes
    ----------
    value : number
        Magnitude in `unit` (kept exact when given as int or Fraction).
    unit : Unit
        The unit of `value`.
    expr : str or None
        The unit expression the quantity was created with, if any.
    """
    __slots__ = ["value", "unit", "expr"]

    def __init__(self, value: Number, unit: Union[Unit, str, None] = None,
                 *, registry: Optional["UnitsRegistry"] = None):
        if not is_number(value):
            raise InvalidArgument(f"Quantity value must be a number, got {value!r}")
        self.value = value
        self.expr = unit if isinstance(unit, str) else None
        if isinstance(unit, Unit):
            self.unit = unit
        else:
            if registry is None:
                from physunits.units.registry import DEFAULT_REGISTRY as registry
            self.unit = registry.cast(registry.parse(unit))

    def _coerce(self, other: Any) -> "Quantity":
        if isinstance(other, Quantity):
            return other
        if is_number(other):
            return Quantity(other, self.unit.registry.cast(1))
        raise InvalidArgument(f"not a Quantity or number: {other!r}")

    # --- Conversion ---------------------------------------------------------
    def to(self, unit: Union[Unit, str]) -> "Quantity":
        """Return this quantity expressed in `unit`."""
        if not isinstance(unit, Unit):
            reg = self.unit.registry
            unit = reg.cast(reg.parse(unit))
        return Quantity(unit.convert(self), unit)

    want = to

    def to_base_unit(self) -> "Quantity":
        return Quantity(self.unit.convert_value_to_base_unit(self.value), self.unit.base_unit())

    def to_numeric(self) -> Any:
        return self.value * self.unit.to_numeric()

    def __float__(self) -> float:
        return float(self.to_numeric())

    # --- Comparison ---------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Quantity):
            if is_number(other) and self.unit.is_dimensionless:
                return values_close(self.to_numeric(), other)
            return NotImplemented
        if not self.unit.conformable(other):
            return False
        return values_close(self.value, self.unit.convert(other))

    __hash__ = None  # type: ignore[assignment]

    def _compare_value(self, other: Any) -> Any:
        return self.unit.convert(self._coerce(other))

    def __lt__(self, other: Any) -> bool:
        return self.value < self._compare_value(other)

    def __le__(self, other: Any) -> bool:
        return self.value <= self._compare_value(other)

    def __gt__(self, other: Any) -> bool:
        return self.value > self._compare_value(other)

    def __ge__(self, other: Any) -> bool:
        return self.value >= self._compare_value(other)

    # --- Arithmetic ---------------------------------------------------------
    def __add__(self, other: Any) -> "Quantity":
        # result keeps the left operand's unit
        return Quantity(self.value + self.unit.convert_scale(self._coerce(other)), self.unit)

    def __radd__(self, other: Any) -> "Quantity":
        return self._coerce(other) + self

    def __sub__(self, other: Any) -> "Quantity":
        return Quantity(self.value - self.unit.convert_scale(self._coerce(other)), self.unit)

    def __rsub__(self, other: Any) -> "Quantity":
        return self._coerce(other) - self

    def __neg__(self) -> "Quantity":
        return Quantity(-self.value, self.unit)

    def __pos__(self) -> "Quantity":
        return self

    def __mul__(self, other: Any) -> "Quantity":
        if is_number(other):
            return Quantity(self.value * other, self.unit)
        if isinstance(other, Unit):
            return Quantity(self.value, self.unit * other)
        if isinstance(other, Quantity):
            return Quantity(self.value * other.value, self.unit * other.unit)
        return NotImplemented

    def __rmul__(self, other: Any) -> "Quantity":
        if is_number(other):
            return Quantity(other * self.value, self.unit)
        return NotImplemented

    def __truediv__(self, other: Any) -> "Quantity":
        if is_number(other):
            return Quantity(exact_div(self.value, other), self.unit)
        if isinstance(other, Unit):
            return Quantity(self.value, self.unit / other)
        if isinstance(other, Quantity):
            return Quantity(exact_div(self.value, other.value), self.unit / other.unit)
        return NotImplemented

    def __rtruediv__(self, other: Any) -> "Quantity":
        if is_number(other):
            return Quantity(exact_div(other, self.value), self.unit.inverse())
        return NotImplemented

    def __pow__(self, n: Any) -> "Quantity":
        unit = self.unit ** n
        return Quantity(simplify_fraction(exact(self.value) ** as_numeric(n)), unit)

    def __repr__(self) -> str:
        unit = self.expr
        if unit is None:
            unit = self.unit.name or self.unit.unit_string()
        return f"<Quantity {self.value!r} {unit!r}>"


class QuantityFactory:
    """``Q[1, "km"]`` / ``Q(1, "km")`` shorthand bound to a registry."""

    def __init__(self, reg: Optional["UnitsRegistry"] = None) -> None:
        self._reg = reg

    def __call__(self, value: Number, unit: Union[Unit, str, None] = None) -> Quantity:
        return Quantity(value, unit, registry=self._reg)

    def __getitem__(self, args: Any) -> Quantity:
        if isinstance(args, tuple):
            return self(*args)
        return self(args)


__all__ = ["Quantity", "QuantityFactory"]
