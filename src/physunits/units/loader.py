"""
physunits.units.loader
======================

Interpreter for the line-oriented unit database format (``units.dat``).

Format
------
- ``#`` starts a comment that runs to the end of the line.
- A trailing backslash continues the definition on the next line; the two
  pieces are joined with a single space.
- ``<name> <expr>`` defines a unit. A name ending in ``-`` defines a prefix and
  an expression starting with ``!`` declares a base unit (``!dimensionless``
  for angle-like base units).
- Lines starting with ``!`` are directives:

  ``!set VAR VAL``   give VAR a value unless it already has one
  ``!var VAR [VAL]`` include the following section only if VAR == VAL (or,
                     without VAL, if VAR is set)
  ``!endvar``        end of a ``!var`` section
  ``!CMD [PARAM]``   when CMD is a variable (``locale``, ``utf8``), include the
                     section only if it equals PARAM (or is truthy without PARAM)
  ``!endCMD``        end of that section

Definitions are registered lazily: expressions are only parsed when a unit is
first used, so forward references inside the database are fine.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

if TYPE_CHECKING:  # pragma: no cover - typing aid only
    from physunits.units.registry import UnitsRegistry

logger = logging.getLogger(__name__)

_END_RE = re.compile(r"!\s*end(\w+)")
_SET_RE = re.compile(r"!\s*set\s+(\w+)\s+(\w+)")
_VAR_RE = re.compile(r"!\s*var\s+(\w+)(?:\s+(\w+))?")
_COMMAND_RE = re.compile(r"!\s*(\w+)(?:\s+(\w+))?")
_CONTINUATION_RE = re.compile(r"(.*)\\$")
_DEFINITION_RE = re.compile(r"([^\s()\[\]{}!*|/^#]+)\s+([^#]+)")


@dataclass
class LoadSummary:
    """Diagnostic counts for one load."""

    units: int
    prefixes: int
    definitions: int = 0
    skipped: int = 0
    unrecognized: int = 0

    def __str__(self) -> str:
        return f"{self.units} units, {self.prefixes} prefixes"


class DefinitionLoader:
    """Feed unit database lines into a registry.

    Parameters
    ----------
    registry : UnitsRegistry
        Target of every ``define`` call.
    locale : str, optional
        Initial value of the ``locale`` variable.
    utf8 : bool
        Initial value of the ``utf8`` variable.
    check : bool
        Resolve every unit after loading and log the ones that fail.
    """

    def __init__(
        self,
        registry: "UnitsRegistry",
        locale: Optional[str] = None,
        utf8: bool = True,
        check: bool = False,
    ) -> None:
        self.registry = registry
        self.variables: Dict[str, Any] = {"locale": locale, "utf8": utf8}
        self.skip: List[str] = []
        self.check = check
        self._buffer = ""
        self._definitions = 0
        self._skipped = 0
        self._unrecognized = 0

    @property
    def skipping(self) -> bool:
        return bool(self.skip)

    def load(self, data: Union[str, Iterable[str]]) -> LoadSummary:
        """Process a whole database, then rebuild the registry's prefix matcher."""
        lines = data.splitlines() if isinstance(data, str) else data
        for line in lines:
            self.feed_line(line)
        if self._buffer.strip():
            # dangling continuation at end of input
            self._complete(self._buffer)
        self._buffer = ""

        self.registry.rebuild_prefix_regex()
        if self.check:
            self.registry.check_definitions()

        summary = LoadSummary(
            units=len(self.registry.units),
            prefixes=len(self.registry.prefixes),
            definitions=self._definitions,
            skipped=self._skipped,
            unrecognized=self._unrecognized,
        )
        logger.debug("%s", summary)
        return summary

    def feed_line(self, line: str) -> None:
        line = line.rstrip("\r\n")
        if line.startswith("!"):
            self.control(line)
            return

        line = line.split("#", 1)[0]
        m = _CONTINUATION_RE.fullmatch(line)
        if m:
            self._buffer += m.group(1) + " "
            return
        text, self._buffer = self._buffer + line, ""
        self._complete(text)

    def _complete(self, text: str) -> None:
        if self.skipping:
            if text.strip():
                self._skipped += 1
            return
        m = _DEFINITION_RE.match(text)
        if m:
            name, expr = m.group(1), m.group(2).strip()
            self.registry.define(name, expr)
            self._definitions += 1
        elif text.strip():
            self._unrecognized += 1
            logger.debug("unrecognized definition: %r", text)

    def control(self, line: str) -> None:
        """Apply one ``!`` directive to the variable table and skip stack."""
        m = _END_RE.match(line)
        if m:
            name = m.group(1)
            if name in self.skip:
                # innermost marker with that name
                del self.skip[len(self.skip) - 1 - self.skip[::-1].index(name)]
            return

        m = _SET_RE.match(line)
        if m:
            if not self.skip and not self.variables.get(m.group(1)):
                self.variables[m.group(1)] = m.group(2)
            return

        m = _VAR_RE.match(line)
        if m:
            current, wanted = self.variables.get(m.group(1)), m.group(2)
            if (current != wanted) if wanted is not None else not current:
                self.skip.append("var")
            return

        m = _COMMAND_RE.match(line)
        if m:
            command, param = m.group(1), m.group(2)
            if command in self.variables:
                value = self.variables[command]
                if (value != param) if param is not None else not value:
                    self.skip.append(command)
            else:
                logger.debug("ignoring directive: %r", line)


__all__ = ["DefinitionLoader", "LoadSummary"]
