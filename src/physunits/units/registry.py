"""
physunits.units.registry
========================

The unit registry: named units, prefixes, and the lookup algorithm that turns
a token such as ``"km"``, ``"miles"`` or ``"kilometers"`` into a `Unit`.

Key points
----------
- Encapsulates registry state in a `UnitsRegistry` class; several registries
  can coexist (tests use fresh ones).
- Definitions are registered lazily: ``define`` stores a pending unit whose
  expression is parsed against this registry on first use.
- Redefinition never fails: a warning is logged and the last definition wins.
- Prefixes are split off by a single longest-first regex rebuilt after each
  database load.
- Clear public API: `define`, `define_offset`, `find_unit`, `parse`, `word`,
  `cast`, `load`, `load_file`.
"""
from __future__ import annotations

import logging
import math
import re
import threading
from fractions import Fraction
from importlib import resources
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional, Tuple, Union

from physunits.core.errors import UnitError, UnitParseError
from physunits.core.unit import BaseUnit, OffsetUnit, Unit
from physunits.core.utils import is_number
from physunits.units.config import Settings
from physunits.units.loader import DefinitionLoader, LoadSummary
from physunits.units.parser import extract_unit_expr

logger = logging.getLogger(__name__)

_ES_STEM_RE = re.compile(r"(.+(?:s|z|ch))es")
_S_STEM_RE = re.compile(r"(.{3,})s")


# ---------------------------------------------------------------------------
# Prefix matching
# ---------------------------------------------------------------------------
class PrefixResolver:
    """Split a token into ``(prefix, remainder)`` with the longest prefix tried first."""

    def __init__(self, prefixes: Iterable[str]) -> None:
        names = sorted((p for p in prefixes if p), key=lambda p: (-len(p), p))
        self.prefixes: Tuple[str, ...] = tuple(names)
        if names:
            alternation = "|".join(re.escape(p) for p in names)
            self.regex: Optional[re.Pattern[str]] = re.compile(f"({alternation})(.+)", re.DOTALL)
        else:
            self.regex = None

    def split(self, token: str) -> Optional[Tuple[str, str]]:
        if self.regex is None:
            return None
        m = self.regex.fullmatch(token)
        if not m:
            return None
        return m.group(1), m.group(2)


# ---------------------------------------------------------------------------
# Units registry
# ---------------------------------------------------------------------------
class UnitsRegistry:
    """Registry of named `Unit` objects and prefixes.

    The registry has two phases: while loading, ``define`` fills the maps and
    the prefix matcher is stale; after `rebuild_prefix_regex` (done by every
    load) lookups are read-only.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._units: Dict[str, Unit] = {}
        self._prefixes: Dict[str, Unit] = {}
        self._resolver: Optional[PrefixResolver] = None

    # -------------------------- state --------------------------------------
    @property
    def units(self) -> Mapping[str, Unit]:
        return self._units

    @property
    def prefixes(self) -> Mapping[str, Unit]:
        return self._prefixes

    @property
    def prefix_regex(self) -> Optional[re.Pattern[str]]:
        return None if self._resolver is None else self._resolver.regex

    def rebuild_prefix_regex(self) -> None:
        with self._lock:
            self._resolver = PrefixResolver(self._prefixes)

    def __contains__(self, symbol: str) -> bool:
        return self.find_unit(symbol) is not None

    def __getitem__(self, symbol: Any) -> Unit:
        unit = self.find_unit(symbol)
        if unit is None:
            raise UnitParseError(f"Unknown unit symbol: {symbol}")
        return unit

    def all(self) -> Mapping[str, Unit]:
        with self._lock:
            return dict(self._units)

    def as_namespace(self) -> UnitNamespace:
        return UnitNamespace(self)

    # -------------------------- definition ---------------------------------
    def define(self, name: str, expr: Any, dimension_value: Any = None) -> Unit:
        """Register a unit, a base unit (``expr`` starting with ``!``) or a prefix (``name`` ending in ``-``).

        An existing entry under the same name is replaced after a warning.
        """
        if not isinstance(name, str):
            raise UnitError(f"unit name should be a string: {name!r}")
        with self._lock:
            if name.endswith("-"):
                name = name[:-1]
                if name in self._prefixes:
                    logger.warning("multiply-defined prefix: %s", name)
                unit = self._new_unit(expr, name)
                self._prefixes[name] = unit
                return unit

            if name in self._units:
                logger.warning("multiply-defined unit: %s", name)
            if isinstance(expr, str) and expr.startswith("!"):
                dimensionless = expr == "!dimensionless"
                unit = BaseUnit(name, dimensionless, dimension_value, registry=self)
            else:
                unit = self._new_unit(expr, name)
            self._units[name] = unit
            return unit

    def define_offset(self, name: str, expr: Any, offset: Any) -> OffsetUnit:
        """Register an affine unit: ``value * factor(expr) + offset`` in base units."""
        with self._lock:
            if name in self._units:
                logger.warning("multiply-defined unit: %s", name)
            unit = OffsetUnit(expr, name, offset, registry=self)
            self._units[name] = unit
            return unit

    def _new_unit(self, expr: Any, name: str) -> Unit:
        if isinstance(expr, Unit):
            return Unit(expr, name, registry=self)
        if is_number(expr):
            unit = Unit(expr, registry=self)
            unit.name = name
            return unit
        return Unit(expr, name, registry=self)

    def load(self, data: Union[str, Iterable[str]], locale: Optional[str] = None,
             utf8: bool = True, check: bool = False) -> LoadSummary:
        """Load unit database text (or lines) into this registry."""
        return DefinitionLoader(self, locale=locale, utf8=utf8, check=check).load(data)

    def load_file(self, path: Union[str, Path], locale: Optional[str] = None,
                  utf8: bool = True, check: bool = False) -> LoadSummary:
        with open(path, encoding="utf-8") as f:
            return self.load(f, locale=locale, utf8=utf8, check=check)

    def check_definitions(self) -> list[str]:
        """Resolve every unit; log and return the names that fail."""
        failed = []
        for name, unit in self.all().items():
            try:
                unit.resolve()
            except UnitError as exc:
                logger.warning("Could not resolve %s: %r", name, exc)
                failed.append(name)
        return failed

    # -------------------------- lookup -------------------------------------
    def cast(self, x: Any) -> Unit:
        if isinstance(x, Unit):
            return x
        return Unit(x, registry=self)

    def numeric_unit(self, x: Any = None) -> Optional[Unit]:
        if is_number(x):
            return Unit(x, registry=self)
        if x is None or x == "":
            return Unit(1, registry=self)
        return None

    def find_unit(self, x: Any) -> Optional[Unit]:
        """Look up a single token; ``None`` when nothing matches.

        Order: number, empty token, unit name, prefix name, prefix + unit
        (with plural stemming of the remainder), plural stemming alone.
        """
        unit = self.numeric_unit(x)
        if unit is not None:
            return unit
        if isinstance(x, Unit):
            return x
        if not isinstance(x, str):
            return None
        with self._lock:
            unit = self._units.get(x)
            if unit is None:
                unit = self._prefixes.get(x)
            if unit is None:
                unit = self._find_prefix(x)
            if unit is None:
                unit = self.unit_stem(x)
            return unit

    def unit_stem(self, x: str) -> Optional[Unit]:
        """Plural fallback: "miles" -> "mile", "inches" -> "inch" (stems of 3+ characters)."""
        m = _ES_STEM_RE.fullmatch(x)
        if m and len(m.group(1)) >= 3:
            unit = self._units.get(m.group(1))
            if unit is not None:
                return unit
        m = _S_STEM_RE.fullmatch(x)
        if m:
            return self._units.get(m.group(1))
        return None

    def _find_prefix(self, x: str) -> Optional[Unit]:
        if self._resolver is None:
            return None
        split = self._resolver.split(x)
        if split is None:
            return None
        pre, post = split
        stem = self._units.get(post)
        if stem is None:
            stem = self.unit_stem(post)
        if stem is None or not stem.is_operable:
            return None
        return self._prefixes[pre] * stem

    def parse(self, x: Any) -> Union[Unit, Any]:
        """Single-token lookup first, then the full expression parser."""
        unit = self.find_unit(x)
        if unit is not None:
            return unit
        return extract_unit_expr(x, self)

    def word(self, x: Any) -> Unit:
        unit = self.find_unit(x)
        if unit is None:
            raise UnitParseError(f"Unknown unit '{x}'")
        return unit


class UnitNamespace:
    """Attribute, item and call access to a registry: ``u.m``, ``U["km"]``, ``U("m/s")``."""

    _reserved_names: ClassVar[set[str]] = set()

    def __init__(self, reg: "UnitsRegistry") -> None:
        self._reg = reg

    def __contains__(self, expr: str) -> bool:
        return expr in self._reg

    def define(self, name: str, expr: Any, dimension_value: Any = None) -> Unit:
        if name in getattr(UnitNamespace, "_reserved_names", ()):
            raise ValueError(
                f"Cannot define unit '{name}': "
                "name conflicts with UnitNamespace attribute/method."
            )
        return self._reg.define(name, expr, dimension_value)

    def __getitem__(self, expr: Any) -> Unit:
        return self(expr)

    def __call__(self, expr: Any) -> Unit:
        result = self._reg.parse(expr)
        return self._reg.cast(result)

    def __getattr__(self, name: str) -> Unit:
        if name.startswith("_"):
            raise AttributeError(name)
        unit = self._reg.find_unit(name)
        if unit is None:
            # Unknown symbol should look like a missing attribute
            raise AttributeError(name)
        return unit

    def __dir__(self) -> list[str]:
        """List all available unit symbols for autocomplete."""
        base_dir = set(super().__dir__())
        return sorted(base_dir | set(self._reg.all().keys()))


UnitNamespace._reserved_names = set(dir(UnitNamespace))


# ---------------------------------------------------------------------------
# Bootstrap a default registry from the bundled database
# ---------------------------------------------------------------------------

def _read_bundled_database() -> str:
    return resources.files("physunits.units").joinpath("data/units.dat").read_text(encoding="utf-8")


def _bootstrap_default_registry(settings: Optional[Settings] = None) -> UnitsRegistry:
    settings = settings or Settings.from_env()
    reg = UnitsRegistry()

    # Not expressible in the database format: a dimension value and offsets
    reg.define("pi", "!dimensionless", math.pi)

    if settings.units_file is not None:
        reg.load_file(settings.units_file, locale=settings.locale, check=settings.debug)
    else:
        reg.load(_read_bundled_database(), locale=settings.locale, check=settings.debug)

    celsius_zero = Fraction("273.15")
    fahrenheit_zero = Fraction("459.67") * Fraction(5, 9)
    for name in ("tempC", "degC", "celsius"):
        reg.define_offset(name, "K", celsius_zero)
    for name in ("tempF", "degF", "fahrenheit"):
        reg.define_offset(name, "5|9 K", fahrenheit_zero)

    return reg


# Public, shared default registry
DEFAULT_REGISTRY: UnitsRegistry = _bootstrap_default_registry()


__all__ = [
    "PrefixResolver",
    "UnitsRegistry",
    "UnitNamespace",
    "DEFAULT_REGISTRY",
]
