from pathlib import Path

import pytest

from physunits.units.config import Settings


def test_defaults_from_empty_environment():
    s = Settings.from_env({})
    assert s == Settings()
    assert s.locale is None and s.units_file is None and s.debug is False


def test_physunits_locale_wins_over_locale():
    assert Settings.from_env({"LOCALE": "en_GB"}).locale == "en_GB"
    assert Settings.from_env({"PHYSUNITS_LOCALE": "en_US", "LOCALE": "en_GB"}).locale == "en_US"


def test_units_file_is_a_path():
    s = Settings.from_env({"PHYSUNITS_UNITS_FILE": "/tmp/units.dat"})
    assert s.units_file == Path("/tmp/units.dat")


@pytest.mark.parametrize("raw, expected", [
    ("1", True), ("true", True), ("YES", True), (" on ", True),
    ("0", False), ("", False), ("nope", False),
])
def test_debug_flag(raw, expected):
    assert Settings.from_env({"PHYSUNITS_DEBUG": raw}).debug is expected


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("PHYSUNITS_LOCALE", "en_GB")
    monkeypatch.delenv("PHYSUNITS_DEBUG", raising=False)
    s = Settings.from_env()
    assert s.locale == "en_GB"
    assert s.debug is False


def test_settings_are_frozen():
    with pytest.raises(AttributeError):
        Settings().locale = "en_GB"  # type: ignore[misc]


def test_debug_runs_definition_check(tmp_path, caplog):
    import logging

    from physunits.units.registry import _bootstrap_default_registry

    path = tmp_path / "broken.dat"
    path.write_text("m !\nbad 2 nothing\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="physunits.units.registry"):
        _bootstrap_default_registry(Settings(units_file=path, debug=True))
    assert "Could not resolve bad" in caplog.text
