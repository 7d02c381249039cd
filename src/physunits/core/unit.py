"""
physunits.core.unit
===================

Defines the `Unit` family: a conversion factor paired with a dimension over
the base units of a registry.

- `Unit` is the plain unit. It is either already resolved (factor and
  dimension known) or pending: it holds an unparsed expression that is parsed
  against its registry on first access and memoized.
- `BaseUnit` is an atomic unit whose dimension is ``{name: 1}``. It may be
  flagged dimensionless (angles) and carry a `dimension_value` (pi for the
  ``pi`` unit) that contributes to conversion factors.
- `OffsetUnit` adds an affine offset (temperature scales). It converts but is
  never operable: algebra on it raises `UnitOperationError`.

Examples
--------
>>> from physunits import U
>>> U["miles"] / U["hr"]
<Unit 1397/3125, {'m': 1, 's': -1}>
>>> U["hr"] + U["30 min"]
<Unit 5400, {'s': 1}>
>>> U["radian"].conformable(U["degree"])
True
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Union

from physunits.core.dimensions import DIM_0, Dimension, DimLike
from physunits.core.errors import (
    InvalidArgument,
    UnitConversionError,
    UnitOperationError,
    UnitParseError,
)
from physunits.core.utils import (
    as_numeric,
    exact,
    exact_div,
    is_number,
    num_inspect,
)

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from physunits.core.quantity import Quantity
    from physunits.units.registry import UnitsRegistry


# --- Resolution state ---------------------------------------------------------

@dataclass(frozen=True, slots=True)
class _Pending:
    expr: str


@dataclass(frozen=True, slots=True)
class _Resolving:
    expr: str


@dataclass(frozen=True, slots=True)
class _Resolved:
    factor: Any
    dimension: Dimension


_State = Union[_Pending, _Resolving, _Resolved]


class Unit:
    """A physical unit of measure: ``factor`` times ``dimension``.

    Parameters
    ----------
    arg : number | Unit | str
        - number: conversion factor, `extra` is an optional dimension mapping.
        - Unit: copy its factor and dimension, `extra` is the new name.
        - str: unit expression parsed on first use, `extra` is the name.
    extra : mapping | str, optional
    registry : UnitsRegistry, optional
        Registry used to look up base units and parse the expression.
        Defaults to the shared default registry.

    Raises
    ------
    InvalidArgument
        If `arg` is none of the accepted types.
    """

    operable: ClassVar[bool] = True

    def __init__(self, arg: Any, extra: Any = None, *, registry: Optional["UnitsRegistry"] = None) -> None:
        self._registry = registry
        self._expr: Optional[str] = None
        self.name: Optional[str] = None
        self._state: _State
        if isinstance(arg, Unit):
            self._state = _Resolved(arg.factor, arg.dimension)
            self.name = extra
            if registry is None:
                self._registry = arg._registry
        elif is_number(arg):
            self._state = _Resolved(exact(arg), Dimension(extra))
        elif isinstance(arg, str):
            self._state = _Pending(arg)
            self._expr = arg
            self.name = extra
        else:
            raise InvalidArgument(f"invalid argument: {arg!r}")

    # --- Registry binding & lazy resolution ----------------------------------
    @property
    def registry(self) -> "UnitsRegistry":
        if self._registry is not None:
            return self._registry
        from physunits.units.registry import DEFAULT_REGISTRY  # local import

        return DEFAULT_REGISTRY

    @property
    def is_resolved(self) -> bool:
        return isinstance(self._state, _Resolved)

    def resolve(self) -> "Unit":
        """Parse the pending expression once; no-op when already resolved.

        Raises
        ------
        UnitParseError
            If the expression does not evaluate to a Unit or a number, or if
            it refers back to this unit.
        """
        state = self._state
        if isinstance(state, _Resolved):
            return self
        if isinstance(state, _Resolving):
            raise UnitParseError(f"circular definition: {self.name or state.expr!r}")

        self._state = _Resolving(state.expr)
        try:
            result = self.registry.parse(state.expr)
            if isinstance(result, Unit):
                resolved = _Resolved(result.factor, result.dimension)
            elif is_number(result):
                resolved = _Resolved(exact(result), DIM_0)
            else:
                raise UnitParseError(f"parse error: {self!r} gave {result!r}")
        except Exception:
            self._state = state
            raise
        self._state = resolved
        return self

    @property
    def expr(self) -> Optional[str]:
        """Unit expression this unit was defined with, if any."""
        return self._expr

    @property
    def factor(self) -> Any:
        """Conversion factor excluding the dimension values."""
        self.resolve()
        return self._state.factor  # type: ignore[union-attr]

    @property
    def dimension(self) -> Dimension:
        """Dimension mapping, e.g. ``{'kg': 1, 'm': 1, 's': -2}`` for N."""
        self.resolve()
        return self._state.dimension  # type: ignore[union-attr]

    dim = dimension

    @property
    def dimension_value(self) -> Any:
        return 1

    @property
    def offset(self) -> Any:
        return None

    # --- Dimensionless handling & conformability -----------------------------
    def _base_entry(self, name: str) -> Optional["Unit"]:
        entry = self.registry.units.get(name)
        if entry is self:
            return None
        return entry

    def _is_dimensionless_key(self, name: str) -> bool:
        entry = self._base_entry(name)
        return entry is not None and entry.is_dimensionless

    @property
    def is_dimensionless(self) -> bool:
        return all(self._is_dimensionless_key(k) for k in self.dimension)

    @property
    def dimensionless_deleted(self) -> Dimension:
        return self.dimension.without(self._is_dimensionless_key)

    @property
    def is_scalar(self) -> bool:
        """No dimension at all (not even a dimensionless one) and factor 1."""
        return self.dimension.is_empty and self.factor == 1

    def same_dimension(self, other: "Unit") -> bool:
        return self.dimensionless_deleted == other.dimensionless_deleted

    def assert_dimensionless(self) -> None:
        if not self.is_dimensionless:
            raise UnitOperationError(f"Not dimensionless: {self!r}")

    def assert_same_dimension(self, other: "Unit") -> None:
        if not self.same_dimension(other):
            raise UnitConversionError(f"Different dimension: {self!r} and {other!r}")

    def conformable(self, x: Any) -> bool:
        """True if a value in the unit of `x` may be converted to this unit."""
        from physunits.core.quantity import Quantity  # local import

        if isinstance(x, Unit):
            return self.dimensionless_deleted == x.dimensionless_deleted
        if isinstance(x, Quantity):
            return self.dimensionless_deleted == x.unit.dimensionless_deleted
        if is_number(x):
            return self.is_dimensionless
        return False

    compatible = conformable

    # --- Conversion -----------------------------------------------------------
    @property
    def conversion_factor(self) -> Any:
        """Factor to base units, including dimension values of dimensionless bases."""
        f = self.factor
        for k, d in self.dimension.items():
            entry = self._base_entry(k)
            if entry is not None and entry.is_dimensionless:
                f = f * entry.dimension_value ** d
        return f

    def convert_value_to_base_unit(self, value: Any) -> Any:
        return value * self.conversion_factor

    def convert_value_from_base_unit(self, value: Any) -> Any:
        return exact_div(value, self.conversion_factor)

    def convert(self, quantity: Union["Quantity", Any]) -> Any:
        """Return the value of `quantity` expressed in this unit.

        A bare number is treated as a dimensionless value.

        Raises
        ------
        UnitConversionError
            If the quantity's unit has a different dimension.
        """
        from physunits.core.quantity import Quantity  # local import

        if isinstance(quantity, Quantity):
            self.assert_same_dimension(quantity.unit)
            v = quantity.unit.convert_value_to_base_unit(quantity.value)
            return self.convert_value_from_base_unit(v)
        return exact_div(quantity, self.to_numeric())

    def convert_scale(self, quantity: Union["Quantity", Any]) -> Any:
        """Convert only the scale of `quantity` (same as `convert` for linear units)."""
        return self.convert(quantity)

    def to_numeric(self) -> Any:
        """Numeric value of a dimensionless unit, i.e. its conversion factor."""
        self.assert_dimensionless()
        return self.conversion_factor

    def __float__(self) -> float:
        return float(self.to_numeric())

    def base_unit(self) -> "Unit":
        """Coherent unit (factor 1) with the dimensionless components removed."""
        return Unit(1, self.dimensionless_deleted, registry=self._registry)

    def unit_string(self) -> str:
        a = []
        if self.factor != 1:
            a.append(num_inspect(self.factor))
        for k, d in self.dimension.items():
            a.append(k if d == 1 else f"{k}^{num_inspect(d)}")
        return " ".join(a)

    # --- Algebra ----------------------------------------------------------------
    @property
    def is_operable(self) -> bool:
        return self.operable

    def check_operable(self) -> None:
        if not self.operable:
            raise UnitOperationError(f"non-operable for {self!r}")

    def check_operable2(self, other: "Unit") -> None:
        if not (self.operable and other.operable):
            raise UnitOperationError(f"non-operable: {self!r} and {other!r}")

    def _cast(self, x: Any) -> "Unit":
        if isinstance(x, Unit):
            return x
        return Unit(x, registry=self._registry)

    def _new(self, factor: Any, dimension: DimLike) -> "Unit":
        return Unit(factor, dimension, registry=self._registry)

    def __add__(self, x: Any) -> "Unit":
        x = self._cast(x)
        self.check_operable2(x)
        self.assert_same_dimension(x)
        return self._new(self.factor + x.factor, self.dimension)

    def __sub__(self, x: Any) -> "Unit":
        x = self._cast(x)
        self.check_operable2(x)
        self.assert_same_dimension(x)
        return self._new(self.factor - x.factor, self.dimension)

    def __neg__(self) -> "Unit":
        self.check_operable()
        return self._new(-self.factor, self.dimension)

    def __pos__(self) -> "Unit":
        return self

    def __mul__(self, x: Any) -> "Unit":
        x = self._cast(x)
        if self.is_scalar:
            return x
        if x.is_scalar:
            return self
        self.check_operable2(x)
        return self._new(self.factor * x.factor, self.dimension * x.dimension)

    def __truediv__(self, x: Any) -> "Unit":
        x = self._cast(x)
        if self.is_scalar:
            return x.inverse()
        if x.is_scalar:
            return self
        self.check_operable2(x)
        if x.factor == 0:
            raise UnitOperationError(f"Division by zero: {self!r} / {x!r}")
        return self._new(exact_div(self.factor, x.factor), self.dimension / x.dimension)

    def inverse(self) -> "Unit":
        self.check_operable()
        if self.factor == 0:
            raise UnitOperationError(f"Division by zero: inverse of {self!r}")
        return self._new(exact_div(1, self.factor), self.dimension.inverse())

    def __pow__(self, x: Any) -> "Unit":
        self.check_operable()
        m = as_numeric(x)
        return self._new(self.factor ** m, self.dimension ** m)

    # number on the left: promote it to a scalar unit first
    def __radd__(self, x: Any) -> "Unit":
        if not is_number(x):
            return NotImplemented
        return self._cast(x) + self

    def __rsub__(self, x: Any) -> "Unit":
        if not is_number(x):
            return NotImplemented
        return self._cast(x) - self

    def __rmul__(self, x: Any) -> "Unit":
        if not is_number(x):
            return NotImplemented
        return self._cast(x) * self

    def __rtruediv__(self, x: Any) -> "Unit":
        if not is_number(x):
            return NotImplemented
        return self._cast(x) / self

    def __eq__(self, x: object) -> bool:
        if is_number(x):
            x = self._cast(x)
        elif not isinstance(x, Unit):
            return NotImplemented
        return (
            self.factor == x.factor
            and self.dimension == x.dimension
            and self.offset == x.offset
            and self.dimension_value == x.dimension_value
        )

    def __hash__(self) -> int:
        return hash((self.factor, self.dimension, self.offset, self.dimension_value))

    @classmethod
    def func(cls, fn: str, x: Any, *, registry: Optional["UnitsRegistry"] = None) -> "Unit":
        """Apply ``math.<fn>`` to a dimensionless value and return a scalar unit."""
        if fn == "ln":
            fn = "log"
        f = getattr(math, fn, None)
        if f is None or not callable(f):
            raise UnitParseError(f"unknown function: {fn!r}")
        m = Unit(x, registry=registry).to_numeric()
        try:
            return Unit(f(m), registry=registry)
        except (ValueError, OverflowError) as exc:
            raise UnitOperationError(f"{fn}({num_inspect(m)}) failed: {exc}") from exc

    def __repr__(self) -> str:
        a = []
        state = self._state
        if isinstance(state, _Resolved):
            a += [num_inspect(state.factor), repr(state.dimension)]
        if self._expr is not None:
            a.append(f"expr={self._expr!r}")
        if self.offset is not None:
            a.append(f"offset={num_inspect(self.offset)}")
        if getattr(self, "dimensionless", False):
            a.append("dimensionless=True")
        if self.dimension_value != 1:
            a.append(f"dimension_value={self.dimension_value!r}")
        return f"<{type(self).__name__} {', '.join(a)}>"


class BaseUnit(Unit):
    """Atomic unit declared with ``!`` in the database (``m !``, ``radian !dimensionless``)."""

    def __init__(
        self,
        name: str,
        dimensionless: bool = False,
        dimension_value: Any = None,
        *,
        registry: Optional["UnitsRegistry"] = None,
    ) -> None:
        if not isinstance(name, str):
            raise InvalidArgument(f"BaseUnit name must be a string: {name!r}")
        self._registry = registry
        self._expr = None
        self.name = name
        self._state = _Resolved(exact(1), Dimension({name: 1}))
        self.dimensionless = bool(dimensionless)
        self._dimension_value = 1 if dimension_value is None else dimension_value

    @property
    def dimension_value(self) -> Any:
        """pi for the ``pi`` unit, 1 otherwise."""
        return self._dimension_value

    @property
    def is_dimensionless(self) -> bool:
        return self.dimensionless

    @property
    def dimensionless_deleted(self) -> Dimension:
        return DIM_0 if self.dimensionless else self.dimension

    @property
    def conversion_factor(self) -> Any:
        if self.dimensionless:
            return self.factor * self._dimension_value
        return self.factor


class OffsetUnit(Unit):
    """Unit with an additive offset to its base unit (tempC, tempF).

    Only conversions are allowed; every algebraic operation raises
    `UnitOperationError`.
    """

    operable: ClassVar[bool] = False

    def __init__(
        self,
        arg: Any,
        name: Optional[str] = None,
        offset: Any = None,
        *,
        registry: Optional["UnitsRegistry"] = None,
    ) -> None:
        if offset is None:
            raise InvalidArgument("offset is not supplied")
        if not is_number(offset):
            raise InvalidArgument(f"offset must be a number: {offset!r}")
        super().__init__(arg, registry=registry)
        self.name = name
        self._offset = exact(offset)

    @property
    def offset(self) -> Any:
        return self._offset

    def convert_scale(self, quantity: Union["Quantity", Any]) -> Any:
        """Linear rescale of `quantity` into this unit, ignoring both offsets."""
        from physunits.core.quantity import Quantity  # local import

        if not isinstance(quantity, Quantity):
            raise InvalidArgument(f"not a Quantity: {quantity!r}")
        self.assert_same_dimension(quantity.unit)
        v = quantity.value * quantity.unit.conversion_factor
        return exact_div(v, self.conversion_factor)

    def convert_value_to_base_unit(self, value: Any) -> Any:
        return value * self.conversion_factor + self._offset

    def convert_value_from_base_unit(self, value: Any) -> Any:
        return exact_div(value - self._offset, self.conversion_factor)


__all__ = ["Unit", "BaseUnit", "OffsetUnit"]
