"""
physunits.core.errors
=====================

Exception hierarchy shared by the unit algebra, the registry and the parser.

Every error raised by physunits derives from `UnitError`, so callers can catch
the whole family at once. `InvalidArgument` is also a `TypeError` because it
signals a wrong input type.
"""

from __future__ import annotations


class UnitError(Exception):
    """Base class for every unit related failure."""


class InvalidArgument(UnitError, TypeError):
    """A Unit constructor (or helper) received an unsupported input type."""


class UnitParseError(UnitError):
    """A unit expression could not be resolved to a Unit or a number."""


class UnitConversionError(UnitError):
    """Operands do not share a dimension (add, subtract, convert)."""


class UnitOperationError(UnitError):
    """Operation on a non-operable unit, or a dimensioned unit used as a number."""


__all__ = [
    "UnitError",
    "InvalidArgument",
    "UnitParseError",
    "UnitConversionError",
    "UnitOperationError",
]
