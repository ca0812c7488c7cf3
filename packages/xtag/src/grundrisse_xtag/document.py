from __future__ import annotations

import logging

import lxml.html

from grundrisse_xtag.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def build_parser(settings: Settings | None = None) -> lxml.html.HTMLParser:
    # lxml parser instances must not be shared across threads; build one per parse.
    settings = settings or get_settings()
    return lxml.html.HTMLParser(
        encoding=settings.parser_encoding,
        remove_comments=settings.remove_comments,
        remove_pis=settings.remove_pis,
        huge_tree=settings.huge_tree,
    )


def parse_document(data: bytes | str, *, settings: Settings | None = None) -> lxml.html.HtmlElement:
    """
    Parse raw HTML into the root `<html>` element.

    libxml2 recovers from malformed markup; an empty document raises
    `lxml.etree.ParserError`.
    """
    root = lxml.html.document_fromstring(data, parser=build_parser(settings))
    logger.debug("parsed %d bytes into <%s>", len(data), root.tag)
    return root
