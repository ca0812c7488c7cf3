"""
Error taxonomy for declarative HTML decoding.

Document-shape failures are reported as `DecodeError`, which carries an
immutable chain of `ErrorFrame`s (see `chain.py`). Authoring mistakes in the
destination declarations are raised directly and never wrapped.
"""

from __future__ import annotations

from enum import Enum


class Reason(str, Enum):
    """Machine-interpretable failure reasons; values are the rendered reason texts."""

    NON_POINTER_TARGET = "destination is not a settable target"
    """Destination is neither a `Ref`, a record instance nor a custom-decodable instance."""

    NIL_TARGET = "destination is None"

    NODE_NOT_FOUND = "node not found in document"
    """A required field's selector matched nothing."""

    MULTIPLE_NODES_DETECTED = "multiple nodes detected for selector"
    """A single-valued field's selector matched more than one node."""

    ARRAY_LENGTH_MISMATCH = "array length does not match document elements found"

    UNSUPPORTED_MAPPING_TYPE = "mapping types are not supported"

    TYPE_CONVERSION_ERROR = "a type conversion error occurred"

    CUSTOM_HOOK_FAILURE = "a custom unmarshaler raised an error"


class XtagError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DirectiveError(XtagError, ValueError):
    """Field metadata could not be parsed (e.g. a bad `xpath_required` literal)."""


class SelectorError(XtagError, ValueError):
    """The XPath engine rejected a selector expression."""

    def __init__(self, selector: str, message: str):
        super().__init__(f"invalid selector {selector!r}: {message}")
        self.selector = selector


class UnsupportedTypeError(XtagError, TypeError):
    """A destination annotation falls outside the supported shapes."""


class MultipleMatchesError(XtagError):
    def __init__(self, selector: str, count: int):
        super().__init__(f"selector {selector!r} matched {count} nodes, expected at most one")
        self.selector = selector
        self.count = count
