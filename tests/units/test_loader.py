# tests/units/test_loader.py
import logging
from fractions import Fraction

import pytest

from physunits.units.loader import DefinitionLoader, LoadSummary
from physunits.units.registry import UnitsRegistry


@pytest.fixture()
def registry():
    return UnitsRegistry()


def load(registry, text, **kwargs):
    return DefinitionLoader(registry, **kwargs).load(text)


# ---------------------------------------------------------------------------
# Definitions, comments, continuation
# ---------------------------------------------------------------------------

def test_definitions_prefixes_and_base_units(registry):
    summary = load(registry, """
m       !
radian  !dimensionless
k-      1000
km2     k m
""")
    assert set(registry.units) == {"m", "radian", "km2"}
    assert set(registry.prefixes) == {"k"}
    assert registry.units["radian"].is_dimensionless
    assert registry["km2"].factor == 1000
    assert summary.definitions == 4


def test_comments_are_stripped(registry):
    load(registry, """
# a full-line comment
m      !          # length
foot   0.3048 m   # international foot
""")
    assert registry.units["foot"].expr == "0.3048 m"
    assert registry["foot"].factor == Fraction("0.3048")


def test_continuation_lines_are_joined_with_a_space(registry):
    load(registry, "m !\ns !\nc_light 299792458 m/\\\ns\n")
    assert registry.units["c_light"].expr == "299792458 m/ s"
    assert registry["c_light"].dimension == {"m": 1, "s": -1}


def test_backslash_followed_by_blanks_does_not_continue(registry):
    load(registry, "m !\nbig 1000 \\   \n m\n")
    # the backslash must be the last character of the line
    assert "big" in registry.units


def test_dangling_continuation_is_completed_at_end(registry):
    load(registry, "m !\nyard 0.9144 \\\n")
    assert registry.units["yard"].expr == "0.9144"


def test_unrecognized_lines_are_counted_and_logged(registry, caplog):
    with caplog.at_level(logging.DEBUG, logger="physunits.units.loader"):
        summary = load(registry, "m !\n(weird line)\n")
    assert summary.unrecognized == 1
    assert "unrecognized definition" in caplog.text
    assert set(registry.units) == {"m"}


def test_accepts_iterable_of_lines(registry):
    summary = load(registry, iter(["m !\n", "inch 0.0254 m\n"]))
    assert "inch" in registry.units
    assert summary.units == 2


def test_summary_string_and_debug_log(registry, caplog):
    with caplog.at_level(logging.DEBUG, logger="physunits.units.loader"):
        summary = load(registry, "m !\nk- 1000\nM- 1e6\n")
    assert isinstance(summary, LoadSummary)
    assert str(summary) == "1 units, 2 prefixes"
    assert "1 units, 2 prefixes" in caplog.text


def test_prefix_regex_rebuilt(registry):
    assert registry.prefix_regex is None
    load(registry, "m !\nk- 1000\n")
    assert registry["km"].factor == 1000


def test_check_option_resolves_everything(registry, caplog):
    with caplog.at_level(logging.WARNING, logger="physunits.units.registry"):
        load(registry, "m !\nbad 2 nothing\n", check=True)
    assert "Could not resolve bad" in caplog.text


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------

DB = """
m !
!set locale en_US
!locale en_US
gallon  3.785411784 m^3
!endlocale
!locale en_GB
gallon  4.54609 m^3
pint    1|8 gallon
!endlocale
"""


def test_locale_from_set(registry):
    summary = load(registry, DB)
    assert registry["gallon"].factor == Fraction("3.785411784")
    assert "pint" not in registry.units
    assert summary.skipped == 2


def test_locale_argument_wins_over_set(registry):
    load(registry, DB, locale="en_GB")
    assert registry["gallon"].factor == Fraction("4.54609")
    assert "pint" in registry.units


def test_set_first_assignment_wins():
    loader = DefinitionLoader(UnitsRegistry())
    loader.load("!set color red\n!set color blue\n")
    assert loader.variables["color"] == "red"


def test_set_inside_skipped_section_is_ignored():
    loader = DefinitionLoader(UnitsRegistry(), locale="en_GB")
    loader.load("!locale en_US\n!set color red\n!endlocale\n!set color blue\n")
    assert loader.variables["color"] == "blue"


def test_utf8_section(registry):
    text = "m !\n!utf8\nÅ 1e-10 m\n!endutf8\nangstrom 1e-10 m\n"
    load(registry, text)
    assert "Å" in registry.units
    other = UnitsRegistry()
    load(other, text, utf8=False)
    assert "Å" not in other.units and "angstrom" in other.units


def test_var_section(registry):
    text = """
m !
!set system imperial
!var system imperial
foot 0.3048 m
!endvar
!var system metric
decimeter 0.1 m
!endvar
!var undefined_variable
nothing 1 m
!endvar
"""
    load(registry, text)
    assert "foot" in registry.units
    assert "decimeter" not in registry.units
    assert "nothing" not in registry.units


def test_unknown_directive_is_ignored(registry, caplog):
    with caplog.at_level(logging.DEBUG, logger="physunits.units.loader"):
        load(registry, "m !\n!message hello\nfoot 0.3048 m\n")
    assert "foot" in registry.units
    assert "ignoring directive" in caplog.text


def test_nested_sections_and_end_removes_innermost():
    loader = DefinitionLoader(UnitsRegistry(), locale="en_GB", utf8=False)
    loader.feed_line("!locale en_US")
    loader.feed_line("!utf8")
    assert loader.skip == ["locale", "utf8"]
    loader.feed_line("!endlocale")
    assert loader.skip == ["utf8"]
    loader.feed_line("!endutf8")
    assert not loader.skipping


def test_end_without_open_section_is_harmless():
    loader = DefinitionLoader(UnitsRegistry())
    loader.feed_line("!endlocale")
    assert loader.skip == []


def test_matching_section_pushes_nothing():
    loader = DefinitionLoader(UnitsRegistry(), locale="en_US")
    loader.feed_line("!locale en_US")
    assert loader.skip == []


def test_skip_applies_when_a_continued_definition_completes():
    reg = UnitsRegistry()
    loader = DefinitionLoader(reg, locale="en_GB")
    loader.feed_line("m !")
    loader.feed_line("long 1000 \\")
    loader.feed_line("!locale en_US")
    loader.feed_line("m")
    loader.feed_line("!endlocale")
    assert "long" not in reg.units
