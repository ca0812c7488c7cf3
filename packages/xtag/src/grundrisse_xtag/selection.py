"""
Selection - an immutable, ordered node-set over one parsed document.

Nodes are lxml elements or lxml "smart strings" (attribute values and text
nodes returned by XPath, which remember their parent element). A Selection
never owns its nodes: it is only valid while the document it came from is alive,
and it must never mix nodes from two parses.
"""

from __future__ import annotations

import html
from collections.abc import Iterable, Iterator
from typing import Union

from lxml import etree

from grundrisse_xtag.errors import MultipleMatchesError, SelectorError

Node = Union[etree._Element, str]


class Selection:
    """
    Ordered, possibly empty set of nodes with read-only accessors.

    `narrow` evaluates XPath against the first node and returns a new Selection;
    no match yields an empty Selection rather than an error.
    """

    __slots__ = ("_nodes",)

    def __init__(self, nodes: Iterable[Node] = ()):
        self._nodes: tuple[Node, ...] = tuple(nodes)

    @classmethod
    def of(cls, node: Node) -> Selection:
        return cls((node,))

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __repr__(self) -> str:
        return f"Selection({len(self._nodes)} nodes)"

    def is_empty(self) -> bool:
        return not self._nodes

    def text(self) -> str:
        """
        Concatenated character data of every node and its descendants.

        Whitespace is kept exactly as parsed; comments and processing
        instructions contribute only their tails.
        """
        parts: list[str] = []
        for node in self._nodes:
            _collect_text(node, parts)
        return "".join(parts)

    def markup(self) -> str:
        """Serialized inner HTML of the first node."""
        if not self._nodes or not _is_element(self._nodes[0]):
            return ""
        first = self._nodes[0]
        out = [html.escape(first.text, quote=False)] if first.text else []
        for child in first:
            out.append(etree.tostring(child, encoding="unicode", method="html"))
        return "".join(out)

    def attribute(self, name: str) -> tuple[str, bool]:
        """Attribute of the first node as `(value, found)`."""
        if not self._nodes or not _is_element(self._nodes[0]):
            return "", False
        value = self._nodes[0].get(name)
        if value is None:
            return "", False
        return value, True

    def narrow(self, selector: str) -> Selection:
        """
        Evaluate `selector` relative to the first node.

        No match is not an error: the result is simply empty.
        """
        if not self._nodes or not _is_element(self._nodes[0]):
            return Selection()
        try:
            result = self._nodes[0].xpath(selector)
        except etree.XPathError as exc:
            raise SelectorError(selector, str(exc)) from exc
        return Selection(_as_nodes(result))

    def narrow_one(self, selector: str) -> Selection:
        """Like `narrow`, but more than one match raises `MultipleMatchesError`."""
        found = self.narrow(selector)
        if len(found) > 1:
            raise MultipleMatchesError(selector, len(found))
        return found

    def at(self, index: int) -> Selection:
        if index < 0:
            index += len(self._nodes)
        if index < 0 or index >= len(self._nodes):
            return Selection()
        return self.slice(index, index + 1)

    def slice(self, start: int, end: int | None = None) -> Selection:
        """Half-open slice; negative bounds count from the end, `end=None` means open."""
        size = len(self._nodes)
        if start < 0:
            start += size
        if end is None:
            end = size
        elif end < 0:
            end += size
        return Selection(self._nodes[start:end])


def _is_element(node: Node) -> bool:
    # Comments and PIs are elements to lxml too, but their tag is not a string.
    return isinstance(node, etree._Element) and isinstance(node.tag, str)


def _collect_text(node: Node, parts: list[str]) -> None:
    if isinstance(node, str):
        parts.append(str(node))
        return
    if not _is_element(node):
        return
    if node.text:
        parts.append(node.text)
    for child in node:
        _collect_text(child, parts)
        if child.tail:
            parts.append(child.tail)


def _as_nodes(result: object) -> list[Node]:
    if isinstance(result, list):
        return [node for node in result if isinstance(node, (etree._Element, str))]
    # Non node-set expressions: string(), count(), boolean() ...
    if isinstance(result, bool):
        return ["true" if result else "false"]
    if isinstance(result, float):
        if result.is_integer():
            return [str(int(result))]
        return [repr(result)]
    if isinstance(result, str):
        return [result]
    return []
