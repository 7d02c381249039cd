"""
physunits.units
===============

The unit database side of physunits:

- `physunits.units.registry`: `UnitsRegistry`, prefix matching and the shared
  ``DEFAULT_REGISTRY``,
- `physunits.units.loader`: the ``units.dat`` interpreter,
- `physunits.units.parser`: unit expressions such as ``"kg m/s^2"``,
- `physunits.units.config`: environment settings for the default registry.

Nothing is imported here, so ``physunits.units.config`` and friends can be
used without loading the bundled database. Use ``physunits.U`` for lazy
access to the default registry.
"""
