"""Tests for field directive parsing."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

import pytest
from pydantic import BaseModel, Field

from grundrisse_xtag import Directive, DirectiveError, ShapeCache, xpath_field
from grundrisse_xtag.directive import REQUIRED_KEY, XPATH_KEY, parse_bool_literal


@dataclass
class BadRequired:
    name: str = dataclasses.field(default="", metadata={"xpath": ".//name", "xpath_required": "maybe"})


class ModelDirectives(BaseModel):
    title: str = Field("", json_schema_extra={"xpath": ".//h1", "xpath_required": "false"})
    skipped: str = Field("", json_schema_extra={"xpath": "-"})
    untagged: str = ""


def test_defaults_to_required() -> None:
    """Absent override means required."""
    directive = Directive.from_metadata({XPATH_KEY: ".//a"})
    assert directive == Directive(selector=".//a", required=True, ignored=False)
    assert Directive.from_metadata(None) == Directive()


def test_ignore_marker() -> None:
    """The '-' selector marks the field as ignored."""
    assert Directive.from_metadata({XPATH_KEY: "-"}).ignored


@pytest.mark.parametrize("raw", ["false", "False", "FALSE", "f", "F", "0", False])
def test_required_override_false(raw: object) -> None:
    """Boolean literals are accepted for the required override."""
    assert Directive.from_metadata({XPATH_KEY: ".//a", REQUIRED_KEY: raw}).required is False


def test_required_override_rejects_garbage() -> None:
    """A bad literal is an authoring error."""
    with pytest.raises(DirectiveError):
        Directive.from_metadata({XPATH_KEY: ".//a", REQUIRED_KEY: "maybe"})
    with pytest.raises(DirectiveError):
        parse_bool_literal(1)


def test_selector_predicates() -> None:
    """Index and text() suffixes drive single-value resolution."""
    assert Directive(selector="(.//li/@order)[1]").is_indexed
    assert Directive(selector=".//div/text()[2]").is_indexed
    assert not Directive(selector=".//li[@class='x']").is_indexed
    assert Directive(selector=".//div/text()").targets_text
    assert not Directive(selector=".//div/text()[1]").targets_text


def test_xpath_field_metadata() -> None:
    """The helper writes the bit-exact metadata keys."""
    fld = xpath_field(".//a", required=False, default="")
    assert fld.metadata[XPATH_KEY] == ".//a"
    assert fld.metadata[REQUIRED_KEY] == "false"
    assert fld.default == ""
    assert REQUIRED_KEY not in xpath_field(".//a").metadata


def test_field_plans_name_the_bad_field() -> None:
    """Directive errors surface with the offending field's name."""
    with pytest.raises(DirectiveError, match="BadRequired.name"):
        ShapeCache().fields(BadRequired)


def test_pydantic_field_directives() -> None:
    """Pydantic models declare directives through json_schema_extra; untagged scalars are left out."""
    plans = {plan.name: plan.directive for plan in ShapeCache().fields(ModelDirectives)}
    assert plans["title"] == Directive(selector=".//h1", required=False)
    assert plans["skipped"].ignored
    assert "untagged" not in plans
