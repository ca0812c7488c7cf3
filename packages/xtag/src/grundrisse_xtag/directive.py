"""
Directive - normalized per-field decoding metadata.

Fields are annotated through their metadata mapping:

    @dataclass
    class Resource:
        name: str = xpath_field(".//*[@class='name']", default="")
        order: int = xpath_field("@order", required=False, default=0)

or, on pydantic models, `Field(json_schema_extra={"xpath": ..., "xpath_required": "false"})`.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from grundrisse_xtag.errors import DirectiveError

XPATH_KEY = "xpath"
REQUIRED_KEY = "xpath_required"
IGNORE_MARKER = "-"

_INDEX_RE = re.compile(r"\[\d+\]$")
_TRUE_LITERALS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_LITERALS = {"0", "f", "F", "FALSE", "false", "False"}


@dataclass(frozen=True)
class Directive:
    selector: str = ""
    required: bool = True
    ignored: bool = False

    @property
    def is_indexed(self) -> bool:
        """Selector ends in a positional predicate such as `[1]`."""
        return bool(_INDEX_RE.search(self.selector))

    @property
    def targets_text(self) -> bool:
        return self.selector.endswith("text()")

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any] | None) -> Directive:
        metadata = metadata or {}
        selector = metadata.get(XPATH_KEY) or ""
        if not isinstance(selector, str):
            raise DirectiveError(f"{XPATH_KEY} must be a string, got {type(selector).__name__}")
        if selector == IGNORE_MARKER:
            return cls(selector=selector, ignored=True)

        required = True
        if REQUIRED_KEY in metadata and metadata[REQUIRED_KEY] not in (None, ""):
            required = parse_bool_literal(metadata[REQUIRED_KEY])
        return cls(selector=selector, required=required)


def parse_bool_literal(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        if raw in _TRUE_LITERALS:
            return True
        if raw in _FALSE_LITERALS:
            return False
    raise DirectiveError(f"{REQUIRED_KEY} must be a boolean literal, got {raw!r}")


def xpath_field(selector: str, *, required: bool | None = None, **kwargs: Any) -> Any:
    """`dataclasses.field` carrying decoding metadata; remaining kwargs pass through."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[XPATH_KEY] = selector
    if required is not None:
        metadata[REQUIRED_KEY] = "true" if required else "false"
    return dataclasses.field(metadata=metadata, **kwargs)
