"""Tests for leaf literal parsing and the conversion policy."""

from __future__ import annotations

import math
from typing import Any

import pytest

from grundrisse_xtag.coerce import coerce_scalar, parse_scalar
from grundrisse_xtag.shapes import ScalarKind


@pytest.mark.parametrize(
    ("literal", "kind", "expected"),
    [
        ("true", ScalarKind.BOOL, True),
        ("false", ScalarKind.BOOL, False),
        ("-123", ScalarKind.INT, -123),
        ("+42", ScalarKind.INT, 42),
        ("007", ScalarKind.INT, 7),
        ("100", ScalarKind.UINT, 100),
        ("1.2345", ScalarKind.FLOAT, 1.2345),
        ("-.5", ScalarKind.FLOAT, -0.5),
        ("1e3", ScalarKind.FLOAT, 1000.0),
        ("2.5E-2", ScalarKind.FLOAT, 0.025),
        ("12", ScalarKind.FLOAT, 12.0),
        ("  padded  ", ScalarKind.STR, "  padded  "),
    ],
)
def test_parse_valid_literals(literal: str, kind: ScalarKind, expected: Any) -> None:
    """Canonical literals parse to their values."""
    assert parse_scalar(literal, kind) == expected


@pytest.mark.parametrize("literal", ["inf", "-Inf", "+infinity", "Infinity"])
def test_parse_infinities(literal: str) -> None:
    """Infinity spellings are case-insensitive and signed."""
    value = parse_scalar(literal, ScalarKind.FLOAT)
    assert math.isinf(value)
    assert (value < 0) == literal.startswith("-")


def test_parse_nan() -> None:
    """NaN is accepted in any case."""
    assert math.isnan(parse_scalar("NaN", ScalarKind.FLOAT))


@pytest.mark.parametrize(
    ("literal", "kind"),
    [
        ("True", ScalarKind.BOOL),
        ("TRUE", ScalarKind.BOOL),
        ("1", ScalarKind.BOOL),
        (" true", ScalarKind.BOOL),
        ("+5", ScalarKind.UINT),
        ("-5", ScalarKind.UINT),
        ("1_000", ScalarKind.INT),
        ("1 000", ScalarKind.INT),
        ("0x10", ScalarKind.INT),
        ("1.0", ScalarKind.INT),
        ("", ScalarKind.INT),
        ("1_0.5", ScalarKind.FLOAT),
        ("1.2.3", ScalarKind.FLOAT),
        ("e5", ScalarKind.FLOAT),
        ("infinite", ScalarKind.FLOAT),
    ],
)
def test_parse_rejects(literal: str, kind: ScalarKind) -> None:
    """Only the canonical literal forms are accepted."""
    with pytest.raises(ValueError):
        parse_scalar(literal, kind)


@pytest.mark.parametrize("kind", [ScalarKind.INT, ScalarKind.UINT, ScalarKind.FLOAT])
def test_empty_numeric_keeps_current(kind: ScalarKind) -> None:
    """Empty text never overwrites a number, required or not."""
    assert coerce_scalar("", kind, current=5, required=True) == 5


def test_empty_string_is_a_value() -> None:
    """Strings have no empty-text exception."""
    assert coerce_scalar("", ScalarKind.STR, current="old", required=True) == ""


def test_failure_on_optional_field_keeps_current() -> None:
    """A field that is not required swallows parse failures."""
    assert coerce_scalar("TRUE", ScalarKind.BOOL, current=False, required=False) is False
    assert coerce_scalar("abc", ScalarKind.INT, current=3, required=False) == 3


def test_failure_on_required_field_raises() -> None:
    """Required fields propagate parse failures."""
    with pytest.raises(ValueError, match="invalid bool literal"):
        coerce_scalar("yes", ScalarKind.BOOL, current=False, required=True)
