"""Error taxonomy and diagnostic frames."""

from grundrisse_xtag.errors.chain import DecodeError, ErrorFrame, FrameChain, render, type_name, unwind
from grundrisse_xtag.errors.types import (
    DirectiveError,
    MultipleMatchesError,
    Reason,
    SelectorError,
    UnsupportedTypeError,
    XtagError,
)

__all__ = [
    "DecodeError",
    "DirectiveError",
    "ErrorFrame",
    "FrameChain",
    "MultipleMatchesError",
    "Reason",
    "SelectorError",
    "UnsupportedTypeError",
    "XtagError",
    "render",
    "type_name",
    "unwind",
]
