"""
Decode engine.

Projects a parsed HTML tree into typed destinations:

    @dataclass
    class Resource:
        name: str = xpath_field(".//*[@class='name']", default="")

    @dataclass
    class Page:
        resources: list[Resource] = xpath_field(".//li[@class='resource']", default_factory=list)

    page = Page()
    decode(html_bytes, page)

Each level narrows the current Selection with the field's selector and either
recurses structurally or converts the leaf text. Failures are raised as
`DecodeError`, wrapped once per enclosing level so the rendered message spells
out the full destination path. Already decoded sibling fields are not rolled
back when a later field fails.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from grundrisse_xtag.coerce import coerce_scalar
from grundrisse_xtag.directive import Directive
from grundrisse_xtag.document import parse_document
from grundrisse_xtag.errors import DecodeError, ErrorFrame, MultipleMatchesError, Reason, type_name
from grundrisse_xtag.selection import Selection
from grundrisse_xtag.settings import Settings
from grundrisse_xtag.shapes import Capability, FieldPlan, Shape, ShapeCache, Unmarshaler, is_record_class

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TOP_LEVEL = Directive()


class Ref(Generic[T]):
    """
    Settable destination for shapes that cannot be filled in place.

        orders = Ref(list[int])
        decode(html_bytes, orders)
        orders.value  # [3, 1, 4, 2, 5]
    """

    def __init__(self, type_: Any, value: T | None = None):
        self.type_ = type_
        self.value = value

    def __repr__(self) -> str:
        return f"Ref({type_name(self.type_)}, value={self.value!r})"


def decode(data: bytes | str, target: Any, *, settings: Settings | None = None) -> None:
    """
    Parse `data` and decode the document into `target`.

    `target` is a record instance (dataclass or pydantic model), a
    custom-decodable instance, or a `Ref`. Target checks happen before parsing;
    parser errors pass through unwrapped.
    """
    binding = _bind(target)
    root = parse_document(data, settings=settings)
    _decode_bound(Selection.of(root), binding, ShapeCache())


def decode_selection(selection: Selection, target: Any, *, shapes: ShapeCache | None = None) -> None:
    """Decode an existing Selection into `target`; custom hooks use this to recurse."""
    binding = _bind(target)
    _decode_bound(selection, binding, shapes or ShapeCache())


def _bind(target: Any) -> tuple[Any, Any, Ref | None]:
    if target is None:
        raise DecodeError(ErrorFrame(reason=Reason.NIL_TARGET, target_type=type(None)))
    if isinstance(target, Ref):
        return target.type_, target.value, target
    if not isinstance(target, type) and (is_record_class(type(target)) or isinstance(target, Unmarshaler)):
        return type(target), target, None
    raise DecodeError(ErrorFrame(reason=Reason.NON_POINTER_TARGET, target_type=type(target)))


def _decode_bound(selection: Selection, binding: tuple[Any, Any, Ref | None], shapes: ShapeCache) -> None:
    annotation, current, ref = binding
    value = _decode_into(selection, shapes.shape_of(annotation), current, _TOP_LEVEL, shapes)
    if ref is not None:
        ref.value = value


def _wrap(
    exc: Exception,
    reason: Reason,
    target_type: Any,
    *,
    field_or_index: str | int | None = None,
    selector: str = "",
) -> DecodeError:
    cause = exc.frame if isinstance(exc, DecodeError) else exc
    return DecodeError(
        ErrorFrame(
            reason=reason,
            cause=cause,
            field_or_index=field_or_index,
            target_type=target_type,
            selector=selector,
        )
    )


def _decode_into(selection: Selection, shape: Shape, current: Any, directive: Directive, shapes: ShapeCache) -> Any:
    if current is None:
        if shape.optional and selection.is_empty() and not directive.required:
            return None
        current = shapes.allocate(shape)

    cap = shape.capability
    if cap is Capability.CUSTOM:
        return _call_hook(selection, shape, current)
    if cap is Capability.RAW_CAPTURE:
        current.extend(selection.nodes)
        return current
    if cap is Capability.RECORD:
        _decode_record(selection, shape, current, shapes)
        return current
    if cap is Capability.FIXED_SEQUENCE:
        return _decode_fixed(selection, shape, current, directive, shapes)
    if cap is Capability.GROWABLE_SEQUENCE:
        return _decode_growable(selection, shape, directive, shapes)
    if cap is Capability.UNSUPPORTED_MAPPING:
        raise DecodeError(
            ErrorFrame(
                reason=Reason.UNSUPPORTED_MAPPING_TYPE,
                target_type=shape.annotation,
                selector=directive.selector,
            )
        )
    if cap is Capability.OPEN:
        return selection.text().strip()
    return _decode_scalar(selection, shape, current, directive)


def _call_hook(selection: Selection, shape: Shape, instance: Any) -> Any:
    logger.debug("calling %s.unmarshal_html with %d nodes", type_name(shape.annotation), len(selection))
    try:
        instance.unmarshal_html(list(selection.nodes))
    except Exception as exc:
        raise _wrap(exc, Reason.CUSTOM_HOOK_FAILURE, shape.annotation) from exc
    return instance


def _decode_record(selection: Selection, shape: Shape, instance: Any, shapes: ShapeCache) -> None:
    for plan in shapes.fields(shape.cls):
        directive = plan.directive
        if directive.ignored:
            continue

        found = _select(selection, plan)
        if found.is_empty():
            if not directive.required:
                logger.debug("%s.%s: nothing matched %r", type_name(shape.annotation), plan.name, directive.selector)
                continue
            raise DecodeError(
                ErrorFrame(
                    reason=Reason.NODE_NOT_FOUND,
                    target_type=shape.annotation,
                    selector=directive.selector,
                )
            )

        try:
            value = _decode_into(found, plan.shape, getattr(instance, plan.name, None), directive, shapes)
        except DecodeError as exc:
            raise _wrap(
                exc,
                Reason.TYPE_CONVERSION_ERROR,
                shape.annotation,
                field_or_index=plan.name,
                selector=directive.selector,
            ) from exc
        setattr(instance, plan.name, value)


def _select(selection: Selection, plan: FieldPlan) -> Selection:
    directive = plan.directive
    if not directive.selector:
        return selection

    multiple = DecodeError(
        ErrorFrame(
            reason=Reason.MULTIPLE_NODES_DETECTED,
            target_type=plan.shape.annotation,
            selector=directive.selector,
        )
    )
    if directive.is_indexed and not directive.targets_text:
        try:
            return selection.narrow_one(directive.selector)
        except MultipleMatchesError as exc:
            raise multiple from exc

    found = selection.narrow(directive.selector)
    if plan.shape.capability is Capability.SCALAR and not directive.targets_text and len(found) > 1:
        raise multiple
    return found


def _decode_fixed(
    selection: Selection,
    shape: Shape,
    current: Any,
    directive: Directive,
    shapes: ShapeCache,
) -> tuple[Any, ...]:
    size = len(shape.items)
    if len(selection) != size:
        raise DecodeError(
            ErrorFrame(
                reason=Reason.ARRAY_LENGTH_MISMATCH,
                target_type=shape.annotation,
                selector=directive.selector,
            )
        )

    existing = current if isinstance(current, tuple) and len(current) == size else (None,) * size
    values = []
    for index, item in enumerate(shape.items):
        try:
            values.append(_decode_into(selection.at(index), item, existing[index], directive, shapes))
        except DecodeError as exc:
            raise _wrap(
                exc,
                Reason.TYPE_CONVERSION_ERROR,
                shape.annotation,
                field_or_index=index,
                selector=directive.selector,
            ) from exc
    return tuple(values)


def _decode_growable(selection: Selection, shape: Shape, directive: Directive, shapes: ShapeCache) -> Any:
    values = []
    for index in range(len(selection)):
        try:
            values.append(_decode_into(selection.at(index), shape.element, None, directive, shapes))
        except DecodeError as exc:
            raise _wrap(
                exc,
                Reason.TYPE_CONVERSION_ERROR,
                shape.annotation,
                field_or_index=index,
                selector=directive.selector,
            ) from exc
    return shape.cls(values)


def _decode_scalar(selection: Selection, shape: Shape, current: Any, directive: Directive) -> Any:
    literal = selection.text().strip()
    try:
        return coerce_scalar(literal, shape.scalar, current=current, required=directive.required)
    except ValueError as exc:
        raise DecodeError(
            ErrorFrame(
                reason=Reason.TYPE_CONVERSION_ERROR,
                cause=exc,
                value=literal,
                target_type=shape.annotation,
                selector=directive.selector,
            )
        ) from exc
