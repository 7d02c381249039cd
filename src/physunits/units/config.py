"""
physunits.units.config
======================

Environment-driven settings for bootstrapping the default registry.

Environment variables
---------------------
PHYSUNITS_LOCALE, LOCALE
    Locale used by ``!locale`` sections of the unit database (first one set wins).
PHYSUNITS_UNITS_FILE
    Path to a unit database that replaces the bundled ``units.dat``.
PHYSUNITS_DEBUG
    When truthy ("1", "true", "yes", "on"), every definition is resolved right
    after loading and failures are logged.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class Settings:
    locale: Optional[str] = None
    units_file: Optional[Path] = None
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        locale = env.get("PHYSUNITS_LOCALE") or env.get("LOCALE") or None
        units_file = env.get("PHYSUNITS_UNITS_FILE") or None
        debug = env.get("PHYSUNITS_DEBUG", "").strip().lower() in _TRUTHY
        return cls(
            locale=locale,
            units_file=Path(units_file) if units_file else None,
            debug=debug,
        )


__all__ = ["Settings"]
