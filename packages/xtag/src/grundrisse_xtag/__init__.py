"""
Grundrisse XTag

Declarative decoding of HTML documents into typed records via XPath field annotations.
"""

__version__ = "0.1.0"

from grundrisse_xtag.decode import Ref, decode, decode_selection
from grundrisse_xtag.decoder import Decoder
from grundrisse_xtag.directive import IGNORE_MARKER, REQUIRED_KEY, XPATH_KEY, Directive, xpath_field
from grundrisse_xtag.errors import (
    DecodeError,
    DirectiveError,
    ErrorFrame,
    FrameChain,
    MultipleMatchesError,
    Reason,
    SelectorError,
    UnsupportedTypeError,
    XtagError,
    render,
    unwind,
)
from grundrisse_xtag.selection import Node, Selection
from grundrisse_xtag.shapes import Capability, ShapeCache, UInt, Unmarshaler, Unsigned

__all__ = [
    # Decoding
    "decode",
    "decode_selection",
    "Decoder",
    "Ref",
    # Declarations
    "Directive",
    "xpath_field",
    "XPATH_KEY",
    "REQUIRED_KEY",
    "IGNORE_MARKER",
    "UInt",
    "Unsigned",
    "Unmarshaler",
    "Capability",
    "ShapeCache",
    # Nodes
    "Node",
    "Selection",
    # Errors
    "XtagError",
    "DecodeError",
    "DirectiveError",
    "SelectorError",
    "UnsupportedTypeError",
    "MultipleMatchesError",
    "Reason",
    "ErrorFrame",
    "FrameChain",
    "unwind",
    "render",
]
