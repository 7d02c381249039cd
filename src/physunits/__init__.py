"""
physunits: dimensional analysis with exact conversion factors.

physunits resolves unit expressions such as ``"km/hr"`` or ``"kilometers"``
against a registry loaded from a GNU-units style database, and converts
quantities between conformable units, offset temperature scales included.
Heavy subsystems (the default registry and its bundled database) are loaded
lazily on first access to ``U`` or ``Q``.
"""

from importlib import metadata as _metadata


__license__ = "MIT"

# Try to read the installed package version first; fall back to a default for local dev.
try:
    __version__ = _metadata.version("physunits")
except _metadata.PackageNotFoundError:
    import tomllib
    with open("pyproject.toml", "rb") as f:
        __version__ = tomllib.load(f)["project"]["version"]

__all__ = ["__version__", "__license__"]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing aid only
    from physunits.units.registry import UnitsRegistry


def _get_default_registry() -> "UnitsRegistry":
    from physunits.units.registry import DEFAULT_REGISTRY  # local import
    return DEFAULT_REGISTRY


def __getattr__(name: str) -> Any:
    """
    Lazy attribute access: ``U`` is a namespace over the default registry,
    ``Q`` builds quantities in it (``Q[36, "km/hr"]`` or ``Q(36, "km/hr")``).
    """
    if name == "U":
        return _get_default_registry().as_namespace()
    if name == "Q":
        from physunits.core.quantity import QuantityFactory
        return QuantityFactory(_get_default_registry())
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + ["U", "Q"])
