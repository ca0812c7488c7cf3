from __future__ import annotations

from typing import IO, Any

from lxml import etree

from grundrisse_xtag.decode import decode_selection
from grundrisse_xtag.document import parse_document
from grundrisse_xtag.selection import Selection
from grundrisse_xtag.settings import Settings
from grundrisse_xtag.shapes import ShapeCache


class Decoder:
    """
    Reader-style API: the source is read and parsed once at construction, and
    every `decode()` call projects the same document into a new destination.

    Parse failures are remembered and raised from each `decode()` call.
    """

    def __init__(self, source: bytes | str | IO[bytes], *, settings: Settings | None = None):
        self._root = None
        self._error: Exception | None = None
        self._shapes = ShapeCache()
        try:
            data = source.read() if hasattr(source, "read") else source
            self._root = parse_document(data, settings=settings)
        except (etree.LxmlError, ValueError) as exc:
            self._error = exc

    def decode(self, target: Any) -> None:
        if self._error is not None:
            raise self._error
        decode_selection(Selection.of(self._root), target, shapes=self._shapes)
