"""
Destination shapes.

A destination annotation is resolved once into a `Shape`, a closed variant over
the capabilities the decode engine knows how to fill:

    CUSTOM               class implementing `Unmarshaler`
    RECORD               dataclass or pydantic model
    GROWABLE_SEQUENCE    list[T], tuple[T, ...]
    FIXED_SEQUENCE       tuple[A, B, C]
    UNSUPPORTED_MAPPING  dict / Mapping (always rejected while decoding)
    OPEN                 Any / object (receives text)
    RAW_CAPTURE          list[lxml element] (receives nodes unconverted)
    SCALAR               bool, int, UInt, float, str

`Optional[X]` resolves to X's shape with `optional=True`.
"""

from __future__ import annotations

import dataclasses
import threading
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Protocol, Union, get_args, get_origin, runtime_checkable

from lxml import etree
from pydantic import BaseModel
from pydantic.fields import FieldInfo

from grundrisse_xtag.directive import Directive
from grundrisse_xtag.errors import DirectiveError, UnsupportedTypeError, type_name
from grundrisse_xtag.selection import Node


@dataclass(frozen=True)
class Unsigned:
    """Marks an `int` destination that rejects signed literals."""


UInt = Annotated[int, Unsigned()]


@runtime_checkable
class Unmarshaler(Protocol):
    """
    Custom-decodable destination.

    Receives the raw nodes selected for it and fills itself in; raising reports
    a failure, which is wrapped with `Reason.CUSTOM_HOOK_FAILURE`.
    """

    def unmarshal_html(self, nodes: list[Node]) -> None: ...


class Capability(str, Enum):
    CUSTOM = "custom"
    RECORD = "record"
    GROWABLE_SEQUENCE = "growable_sequence"
    FIXED_SEQUENCE = "fixed_sequence"
    UNSUPPORTED_MAPPING = "unsupported_mapping"
    OPEN = "open"
    RAW_CAPTURE = "raw_capture"
    SCALAR = "scalar"


class ScalarKind(str, Enum):
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    STR = "str"


_SCALAR_KINDS: dict[type, ScalarKind] = {
    bool: ScalarKind.BOOL,
    int: ScalarKind.INT,
    float: ScalarKind.FLOAT,
    str: ScalarKind.STR,
}

_SCALAR_ZEROS: dict[ScalarKind, Any] = {
    ScalarKind.BOOL: False,
    ScalarKind.INT: 0,
    ScalarKind.UINT: 0,
    ScalarKind.FLOAT: 0.0,
    ScalarKind.STR: "",
}


@dataclass(frozen=True)
class Shape:
    capability: Capability
    annotation: Any
    cls: type | None = None
    scalar: ScalarKind | None = None
    items: tuple[Shape, ...] = ()
    optional: bool = False

    @property
    def element(self) -> Shape:
        """Element shape of a growable sequence."""
        return self.items[0]


@dataclass(frozen=True)
class FieldPlan:
    name: str
    directive: Directive
    shape: Shape


def is_record_class(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def _field_annotation(info: FieldInfo) -> Any:
    # pydantic moves Annotated metadata (e.g. Unsigned) off the annotation.
    if info.metadata:
        return Annotated[(info.annotation, *info.metadata)]
    return info.annotation


def _is_node_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, etree._Element)


class ShapeCache:
    """
    Memoizes annotation shapes and record field plans.

    Owned by a top-level decode call or a `Decoder`; the lock makes it safe to
    share between threads, but nothing depends on it being warm.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._shapes: dict[Any, Shape] = {}
        self._fields: dict[type, tuple[FieldPlan, ...]] = {}
        self._hints: dict[type, dict[str, Any]] = {}

    def shape_of(self, annotation: Any) -> Shape:
        try:
            with self._lock:
                cached = self._shapes.get(annotation)
        except TypeError:  # unhashable Annotated metadata
            return self._classify(annotation)
        if cached is not None:
            return cached
        shape = self._classify(annotation)
        with self._lock:
            self._shapes.setdefault(annotation, shape)
        return shape

    def fields(self, cls: type) -> tuple[FieldPlan, ...]:
        with self._lock:
            cached = self._fields.get(cls)
        if cached is not None:
            return cached
        plans = tuple(self._plan_fields(cls))
        with self._lock:
            self._fields.setdefault(cls, plans)
        return plans

    def zero(self, shape: Shape) -> Any:
        """Zero value for a shape; optional shapes are `None`."""
        if shape.optional:
            return None
        return self.allocate(shape)

    def allocate(self, shape: Shape) -> Any:
        """Zero value for a shape, ignoring its optional indirection."""
        cap = shape.capability
        if cap is Capability.SCALAR:
            return _SCALAR_ZEROS[shape.scalar]
        if cap is Capability.GROWABLE_SEQUENCE:
            return shape.cls()
        if cap is Capability.FIXED_SEQUENCE:
            return tuple(self.zero(item) for item in shape.items)
        if cap is Capability.RAW_CAPTURE:
            return []
        if cap is Capability.UNSUPPORTED_MAPPING:
            return {}
        if cap in (Capability.RECORD, Capability.CUSTOM):
            return self._instantiate(shape.cls)
        return None

    def _type_hints(self, cls: type) -> dict[str, Any]:
        with self._lock:
            cached = self._hints.get(cls)
        if cached is not None:
            return cached
        if issubclass(cls, BaseModel):
            # BaseModel's own annotations only resolve under TYPE_CHECKING.
            hints = {name: _field_annotation(info) for name, info in cls.model_fields.items()}
        else:
            hints = typing.get_type_hints(cls, include_extras=True)
        with self._lock:
            self._hints.setdefault(cls, hints)
        return hints

    def _instantiate(self, cls: type) -> Any:
        if dataclasses.is_dataclass(cls):
            hints = self._type_hints(cls)
            kwargs = {
                f.name: self._field_zero(hints[f.name])
                for f in dataclasses.fields(cls)
                if f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
            }
            return cls(**kwargs)
        if issubclass(cls, BaseModel):
            hints = self._type_hints(cls)
            kwargs = {
                name: self._field_zero(hints[name])
                for name, info in cls.model_fields.items()
                if info.is_required()
            }
            return cls.model_construct(**kwargs)
        return cls()

    def _field_zero(self, annotation: Any) -> Any:
        try:
            return self.zero(self.shape_of(annotation))
        except UnsupportedTypeError:
            pass
        # Helper fields the decoder never fills: None if allowed, else the no-argument constructor.
        if type(None) in get_args(annotation):
            return None
        factory = get_origin(annotation) or annotation
        if isinstance(factory, type):
            try:
                return factory()
            except TypeError:
                return None
        return None

    def _plan_fields(self, cls: type) -> list[FieldPlan]:
        hints = self._type_hints(cls)
        if dataclasses.is_dataclass(cls):
            declared = [(f.name, f.metadata) for f in dataclasses.fields(cls)]
        else:
            declared = []
            for name, info in cls.model_fields.items():
                extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
                declared.append((name, extra))

        plans: list[FieldPlan] = []
        for name, metadata in declared:
            try:
                directive = Directive.from_metadata(metadata)
            except DirectiveError as exc:
                raise DirectiveError(f"{cls.__name__}.{name}: {exc.message}") from exc
            if directive.ignored:
                plans.append(FieldPlan(name=name, directive=directive, shape=Shape(Capability.OPEN, Any)))
                continue
            if not directive.selector:
                # Untagged fields only take part as embedded records or custom types.
                try:
                    shape = self.shape_of(hints[name])
                except UnsupportedTypeError:
                    continue
                if shape.capability in (Capability.RECORD, Capability.CUSTOM):
                    plans.append(FieldPlan(name=name, directive=directive, shape=shape))
                continue
            plans.append(FieldPlan(name=name, directive=directive, shape=self.shape_of(hints[name])))
        return plans

    def _classify(self, tp: Any) -> Shape:
        origin = get_origin(tp)

        if origin is Union or origin is types.UnionType:
            args = get_args(tp)
            members = [arg for arg in args if arg is not type(None)]
            if len(members) != 1 or len(members) == len(args):
                raise UnsupportedTypeError(f"cannot decode into union {type_name(tp)}")
            return dataclasses.replace(self.shape_of(members[0]), optional=True)

        if origin is Annotated:
            base, *extras = get_args(tp)
            if base is int and any(isinstance(extra, Unsigned) for extra in extras):
                return Shape(Capability.SCALAR, tp, scalar=ScalarKind.UINT)
            return self.shape_of(base)

        if tp is Any or tp is object:
            return Shape(Capability.OPEN, tp)

        if origin is not None:
            return self._classify_generic(tp, origin, get_args(tp))

        if isinstance(tp, type):
            if issubclass(tp, Unmarshaler):
                return Shape(Capability.CUSTOM, tp, cls=tp)
            if tp in _SCALAR_KINDS:
                return Shape(Capability.SCALAR, tp, scalar=_SCALAR_KINDS[tp])
            if tp is list or tp is tuple:
                return Shape(Capability.GROWABLE_SEQUENCE, tp, cls=tp, items=(self.shape_of(Any),))
            if issubclass(tp, Mapping):
                return Shape(Capability.UNSUPPORTED_MAPPING, tp, cls=tp)
            if is_record_class(tp):
                return Shape(Capability.RECORD, tp, cls=tp)

        raise UnsupportedTypeError(f"cannot decode into {type_name(tp)}")

    def _classify_generic(self, tp: Any, origin: Any, args: tuple[Any, ...]) -> Shape:
        if origin is list:
            element = args[0] if args else Any
            if _is_node_type(element):
                return Shape(Capability.RAW_CAPTURE, tp, cls=list)
            return Shape(Capability.GROWABLE_SEQUENCE, tp, cls=list, items=(self.shape_of(element),))

        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return Shape(Capability.GROWABLE_SEQUENCE, tp, cls=tuple, items=(self.shape_of(args[0]),))
            # tuple[()] spells its arguments as ((),) on older interpreters
            args = tuple(arg for arg in args if arg != ())
            return Shape(Capability.FIXED_SEQUENCE, tp, cls=tuple, items=tuple(self.shape_of(arg) for arg in args))

        if isinstance(origin, type) and issubclass(origin, Mapping):
            return Shape(Capability.UNSUPPORTED_MAPPING, tp, cls=origin)

        raise UnsupportedTypeError(f"cannot decode into {type_name(tp)}")
