"""
Immutable error frames and the path-reconstructing renderer.

Every level of the decode engine that sees a failure wraps the callee's frame in
a new `ErrorFrame` instead of mutating it, so the outermost frame is the head of
a linked chain that ends either in a frame with no cause or in a foreign
exception (the tail). Rendering is a pure function over that chain:

    could not unmarshal value "true" into 'Page.count' (type int): a type conversion error occurred tag: './/foo': ...
"""

from __future__ import annotations

import json
import types
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin

from grundrisse_xtag.errors.types import Reason, XtagError


@dataclass(frozen=True, eq=False)
class ErrorFrame:
    """One causal step of a decode failure."""

    reason: Reason
    cause: ErrorFrame | BaseException | None = None
    value: str = ""
    field_or_index: str | int | None = None
    target_type: Any = None
    selector: str = ""


@dataclass(frozen=True)
class FrameChain:
    frames: tuple[ErrorFrame, ...]
    value: str = ""
    tail: BaseException | None = None

    @property
    def root(self) -> ErrorFrame:
        return self.frames[0]

    @property
    def leaf(self) -> ErrorFrame:
        return self.frames[-1]

    def path(self) -> str:
        """Destination path in attribute/index notation, root to leaf."""
        nest = ""
        for frame in self.frames:
            step = frame.field_or_index
            if step is None:
                continue
            if isinstance(step, str):
                nest += f".{step}"
            else:
                nest += f"[{step}]"
        return nest


def unwind(frame: ErrorFrame) -> FrameChain:
    frames: list[ErrorFrame] = []
    value = ""
    current: ErrorFrame = frame
    while True:
        frames.append(current)
        if current.value:
            value = current.value
        cause = current.cause
        if cause is None:
            return FrameChain(frames=tuple(frames), value=value)
        if isinstance(cause, ErrorFrame):
            current = cause
            continue
        return FrameChain(frames=tuple(frames), value=value, tail=cause)


def render(chain: FrameChain) -> str:
    leaf = chain.leaf
    msg = "could not unmarshal "
    if chain.value:
        msg += f"value {json.dumps(chain.value, ensure_ascii=False)} "
    msg += (
        f"into '{type_name(chain.root.target_type)}{chain.path()}' "
        f"(type {type_name(leaf.target_type)}): {leaf.reason.value}"
    )
    if leaf.selector:
        msg += f" tag: '{leaf.selector}'"
    # A foreign error reported further down goes last.
    if chain.tail is not None:
        msg += f": {chain.tail}"
    return msg


def type_name(tp: Any) -> str:
    """Readable name for a destination annotation, e.g. `list[Resource]`."""
    if tp is None:
        return "unknown: invalid value"
    if tp is type(None):
        return "None"
    if tp is Any:
        return "Any"
    if tp is Ellipsis:
        return "..."
    origin = get_origin(tp)
    if origin is Annotated:
        return type_name(get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        return " | ".join(type_name(arg) for arg in get_args(tp))
    if origin is not None:
        args = get_args(tp)
        if not args:
            return f"{type_name(origin)}[()]"
        return f"{type_name(origin)}[{', '.join(type_name(arg) for arg in args)}]"
    if isinstance(tp, type):
        return tp.__name__
    return repr(tp)


class DecodeError(XtagError):
    """
    A document could not be decoded into its destination.

    `frame` is the outermost frame; walk `chain.frames` and compare their
    `reason` fields rather than matching on the message.
    """

    def __init__(self, frame: ErrorFrame):
        super().__init__(frame.reason.value)
        self.frame = frame

    @property
    def reason(self) -> Reason:
        return self.frame.reason

    @property
    def chain(self) -> FrameChain:
        return unwind(self.frame)

    def __str__(self) -> str:
        return render(self.chain)
