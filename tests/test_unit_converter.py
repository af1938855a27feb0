"""
Tests for receipt unit handling.
"""

import pytest

from larder.utils.unit_converter import is_package_type, normalize_unit, strip_size_tokens


@pytest.mark.parametrize(
    "unit, expected",
    [
        ("LBS", "lb"),
        ("#", "lb"),
        ("Fl. Oz", "fl oz"),
        ("FLOZ", "fl oz"),
        ("CS", "case"),
        ("ea", "each"),
        ("tray", "tray"),
        ("  ", None),
        (None, None),
    ],
)
def test_normalize_unit(unit, expected):
    assert normalize_unit(unit) == expected


def test_is_package_type():
    assert is_package_type("CS")
    assert is_package_type("btl")
    assert not is_package_type("lb")
    assert not is_package_type(None)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("chkn brst 5lb", "chkn brst"),
        ("napkins 12ct", "napkins"),
        ("tomato #10 can", "tomato can"),
        ("heavy cream 2 qt", "heavy cream"),
        ("olive oil 1.5 l", "olive oil"),
        ("eggs 4x", "eggs"),
        ("chicken breast", "chicken breast"),
    ],
)
def test_strip_size_tokens(text, expected):
    assert strip_size_tokens(text) == expected
