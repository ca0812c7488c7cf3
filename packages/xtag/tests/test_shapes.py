"""Tests for destination shape resolution and zero values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import pytest
from lxml import etree
from lxml.html import HtmlElement
from pydantic import BaseModel

from grundrisse_xtag import Capability, ShapeCache, UInt, UnsupportedTypeError, xpath_field
from grundrisse_xtag.shapes import ScalarKind


@dataclass
class Point:
    x: int = xpath_field("@x")
    y: int = xpath_field("@y")


class Hooked:
    def unmarshal_html(self, nodes: list) -> None:
        pass


class Model(BaseModel):
    label: str
    weight: float = 1.5


@pytest.fixture
def shapes() -> ShapeCache:
    return ShapeCache()


@pytest.mark.parametrize(
    ("annotation", "capability"),
    [
        (int, Capability.SCALAR),
        (Any, Capability.OPEN),
        (object, Capability.OPEN),
        (Point, Capability.RECORD),
        (Model, Capability.RECORD),
        (Hooked, Capability.CUSTOM),
        (list[int], Capability.GROWABLE_SEQUENCE),
        (list, Capability.GROWABLE_SEQUENCE),
        (tuple[int, ...], Capability.GROWABLE_SEQUENCE),
        (tuple[int, str], Capability.FIXED_SEQUENCE),
        (dict[str, int], Capability.UNSUPPORTED_MAPPING),
        (dict, Capability.UNSUPPORTED_MAPPING),
        (list[HtmlElement], Capability.RAW_CAPTURE),
        (list[etree._Element], Capability.RAW_CAPTURE),
    ],
)
def test_capabilities(shapes: ShapeCache, annotation: Any, capability: Capability) -> None:
    """Each supported annotation resolves to exactly one capability."""
    assert shapes.shape_of(annotation).capability is capability


def test_optional_wraps_inner_shape(shapes: ShapeCache) -> None:
    """Optional[X] keeps X's capability and marks the indirection."""
    shape = shapes.shape_of(Optional[Point])
    assert shape.capability is Capability.RECORD
    assert shape.optional
    assert shapes.shape_of(int | None).optional


def test_scalar_kinds(shapes: ShapeCache) -> None:
    """bool is not mistaken for int, and UInt is its own kind."""
    assert shapes.shape_of(bool).scalar is ScalarKind.BOOL
    assert shapes.shape_of(int).scalar is ScalarKind.INT
    assert shapes.shape_of(UInt).scalar is ScalarKind.UINT
    assert shapes.shape_of(float).scalar is ScalarKind.FLOAT
    assert shapes.shape_of(str).scalar is ScalarKind.STR


def test_unsupported_annotations(shapes: ShapeCache) -> None:
    """Unions of several types and unknown classes are rejected."""
    with pytest.raises(UnsupportedTypeError):
        shapes.shape_of(int | str)
    with pytest.raises(UnsupportedTypeError):
        shapes.shape_of(set[int])
    with pytest.raises(UnsupportedTypeError):
        shapes.shape_of(complex)


def test_zero_values(shapes: ShapeCache) -> None:
    """Zero values follow the shape, records are built without arguments."""
    assert shapes.zero(shapes.shape_of(int)) == 0
    assert shapes.zero(shapes.shape_of(bool)) is False
    assert shapes.zero(shapes.shape_of(str)) == ""
    assert shapes.zero(shapes.shape_of(Optional[int])) is None
    assert shapes.zero(shapes.shape_of(tuple[int, str])) == (0, "")
    assert shapes.zero(shapes.shape_of(tuple[int, ...])) == ()
    assert shapes.zero(shapes.shape_of(Point)) == Point(x=0, y=0)

    model = shapes.zero(shapes.shape_of(Model))
    assert model.label == ""
    assert model.weight == 1.5


def test_field_plans_are_cached(shapes: ShapeCache) -> None:
    """Field plans are computed once per record class."""
    first = shapes.fields(Point)
    assert first is shapes.fields(Point)
    assert [plan.name for plan in first] == ["x", "y"]
    assert first[0].directive.selector == "@x"
