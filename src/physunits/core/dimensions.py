# physunits.core.dimensions

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from fractions import Fraction
from typing import Any, Callable, Optional, Union

from physunits.core.errors import InvalidArgument
from physunits.core.utils import Exponent, is_number, simplify_fraction

DimLike = Union["Dimension", Mapping[str, Exponent], Iterable[tuple[str, Exponent]], None]


class Dimension(Mapping[str, Exponent]):
    """
    Immutable mapping from base-unit name to a non-zero exponent.

    Missing base units read as exponent 0 and zero exponents are never stored,
    so two dimensions are equal exactly when their stored mappings are equal.
    Compares equal to a plain ``dict`` with the same entries.
    """

    __slots__ = ("_exps", "_hash")

    def __init__(self, data: DimLike = None) -> None:
        if isinstance(data, Dimension):
            exps = dict(data._exps)
        else:
            exps = {}
            if data is None:
                items = []
            elif isinstance(data, Mapping):
                items = list(data.items())
            elif isinstance(data, Iterable) and not isinstance(data, (str, bytes)):
                items = list(data)
            else:
                items = None
            if items is None or not all(isinstance(it, tuple) and len(it) == 2 for it in items):
                raise InvalidArgument(f"dimension must be a mapping or (name, exponent) pairs, got {data!r}")
            for name, exp in items:
                if not isinstance(name, str):
                    raise InvalidArgument(f"dimension key must be a base-unit name, got {name!r}")
                if not is_number(exp):
                    raise InvalidArgument(f"dimension exponent must be a number, got {exp!r}")
                exp = simplify_fraction(exp)
                if exp != 0:
                    exps[name] = exp
        self._exps: dict[str, Exponent] = exps
        self._hash: Optional[int] = None

    # --- Mapping protocol ---
    def __getitem__(self, name: str) -> Exponent:
        return self._exps.get(name, 0)

    def __contains__(self, name: object) -> bool:
        return name in self._exps

    def __iter__(self) -> Iterator[str]:
        return iter(self._exps)

    def __len__(self) -> int:
        return len(self._exps)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Dimension):
            return self._exps == other._exps
        if isinstance(other, Mapping):
            return self._exps == {k: v for k, v in other.items() if v != 0}
        return NotImplemented

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._exps.items()))
        return self._hash

    # --- Algebra (operator overloads) ---
    def _binop(self, other: DimLike, op: Callable[[Exponent, Exponent], Exponent]) -> "Dimension":
        o = other if isinstance(other, Dimension) else Dimension(other)
        keys = list(self._exps) + [k for k in o._exps if k not in self._exps]
        return Dimension((k, op(self[k], o[k])) for k in keys)

    def __mul__(self, other: DimLike) -> "Dimension":
        return self._binop(other, lambda a, b: a + b)

    def __truediv__(self, other: DimLike) -> "Dimension":
        return self._binop(other, lambda a, b: a - b)

    def __pow__(self, n: Any, modulo: Any = None) -> "Dimension":
        if modulo is not None:
            raise TypeError("Modulo exponentiation is not supported for Dimension.")
        if not is_number(n):
            raise InvalidArgument(f"Exponent must be a number, got {type(n).__name__}")
        if isinstance(n, float) and n.is_integer():
            n = int(n)
        return Dimension((k, e * n) for k, e in self._exps.items())

    def inverse(self) -> "Dimension":
        return Dimension((k, -e) for k, e in self._exps.items())

    def without(self, drop: Union[Callable[[str], bool], Iterable[str]]) -> "Dimension":
        """Copy without the base units selected by ``drop`` (predicate or names)."""
        if callable(drop):
            return Dimension((k, e) for k, e in self._exps.items() if not drop(k))
        names = set(drop)
        return Dimension((k, e) for k, e in self._exps.items() if k not in names)

    # --- Helpers ---
    @property
    def is_empty(self) -> bool:
        return not self._exps

    def as_dict(self) -> dict[str, Exponent]:
        return dict(self._exps)

    def __repr__(self) -> str:
        parts = []
        for k, e in self._exps.items():
            if isinstance(e, Fraction):
                e = f"{e.numerator}/{e.denominator}"
            parts.append(f"{k!r}: {e}")
        return "{" + ", ".join(parts) + "}"


DIM_0 = Dimension()

__all__ = ["Dimension", "DimLike", "DIM_0"]
