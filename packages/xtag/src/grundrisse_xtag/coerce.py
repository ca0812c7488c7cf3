from __future__ import annotations

import re
from typing import Any

from grundrisse_xtag.shapes import ScalarKind

_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)", re.IGNORECASE)


def parse_scalar(literal: str, kind: ScalarKind) -> Any:
    """
    Parse an already trimmed literal.

    Raises `ValueError` when the literal is not valid for `kind`.
    """
    if kind is ScalarKind.STR:
        return literal
    if kind is ScalarKind.BOOL:
        if literal == "true":
            return True
        if literal == "false":
            return False
        raise ValueError(f"invalid bool literal {literal!r}: expected 'true' or 'false'")
    if kind is ScalarKind.INT:
        if not _INT_RE.fullmatch(literal):
            raise ValueError(f"invalid int literal {literal!r}")
        return int(literal)
    if kind is ScalarKind.UINT:
        if not _UINT_RE.fullmatch(literal):
            raise ValueError(f"invalid unsigned int literal {literal!r}")
        return int(literal)
    if kind is ScalarKind.FLOAT:
        if not _FLOAT_RE.fullmatch(literal):
            raise ValueError(f"invalid float literal {literal!r}")
        return float(literal)
    raise ValueError(f"unknown scalar kind {kind!r}")


def coerce_scalar(literal: str, kind: ScalarKind, *, current: Any, required: bool) -> Any:
    """
    Apply the leaf conversion policy.

    Empty literals leave numeric destinations at `current`; parse failures also
    keep `current` unless the field is required, in which case they propagate.
    """
    if kind in (ScalarKind.INT, ScalarKind.UINT, ScalarKind.FLOAT) and literal == "":
        return current
    try:
        return parse_scalar(literal, kind)
    except ValueError:
        if not required:
            return current
        raise
