"""
Command-line interface for declarative HTML decoding.

Usage:
    grundrisse-xtag decode page.html --model myapp.pages:ListingPage
    grundrisse-xtag decode https://example.org/list --model myapp.pages:ListingPage
    grundrisse-xtag select page.html "//li[@class='resource']/@order"
"""

from __future__ import annotations

import dataclasses
import importlib
import json
import logging
from pathlib import Path
from typing import Any

import httpx
import typer
from lxml import etree
from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from grundrisse_xtag.decode import Ref
from grundrisse_xtag.decode import decode as decode_document
from grundrisse_xtag.document import parse_document
from grundrisse_xtag.errors import DecodeError, SelectorError
from grundrisse_xtag.selection import Selection
from grundrisse_xtag.settings import get_settings

app = typer.Typer(name="grundrisse-xtag", help="Decode HTML documents into typed records via XPath annotations.")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log decoding steps."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _read_source(source: str) -> bytes:
    if source.startswith(("http://", "https://")):
        # Users may paste line-wrapped URLs.
        return _fetch("".join(source.split()))

    path = Path(source)
    if not path.is_file():
        raise typer.BadParameter(f"no such file: {source}")
    return path.read_bytes()


def _fetch(url: str) -> bytes:
    settings = get_settings()
    limit = settings.max_bytes
    headers = {"User-Agent": settings.user_agent}
    try:
        with httpx.Client(timeout=settings.request_timeout_s, headers=headers, follow_redirects=True) as client:
            with client.stream("GET", url) as resp:
                resp.raise_for_status()
                declared = resp.headers.get("Content-Length", "")
                if declared.isdigit() and int(declared) > limit:
                    raise typer.BadParameter(f"refusing {declared} bytes from {url} (max_bytes={limit})")
                chunks: list[bytes] = []
                size = 0
                for chunk in resp.iter_bytes():
                    size += len(chunk)
                    if size > limit:
                        raise typer.BadParameter(f"refusing more than {limit} bytes from {url}")
                    chunks.append(chunk)
    except httpx.HTTPError as exc:
        raise typer.BadParameter(f"could not fetch {url}: {exc}") from exc
    return b"".join(chunks)


def _load_model(dotted: str) -> type:
    module_name, _, attr = dotted.partition(":")
    if not module_name or not attr:
        raise typer.BadParameter(f"expected module:Class, got {dotted!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"cannot import {module_name}: {exc}") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise typer.BadParameter(f"{module_name} has no attribute {attr!r}") from exc


def _to_builtins(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return {name: _to_builtins(getattr(value, name)) for name in type(value).model_fields}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_builtins(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [_to_builtins(item) for item in value]
    if isinstance(value, etree._Element):
        return etree.tostring(value, encoding="unicode", method="html", with_tail=False)
    if isinstance(value, str):
        return str(value)
    return value


@app.command("decode")
def decode_command(
    source: str = typer.Argument(..., help="HTML file path or http(s) URL."),
    model: str = typer.Option(..., "--model", "-m", help="Destination record as module:Class."),
) -> None:
    """Decode SOURCE into a zero-valued MODEL and print it as JSON."""
    target = Ref(_load_model(model))
    try:
        decode_document(_read_source(source), target)
    except (DecodeError, etree.LxmlError) as exc:
        console.print(str(exc), style="red", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(_to_builtins(target.value), indent=2, ensure_ascii=False))


@app.command("select")
def select_command(
    source: str = typer.Argument(..., help="HTML file path or http(s) URL."),
    selector: str = typer.Argument(..., help="XPath expression evaluated against the document root."),
) -> None:
    """Preview what SELECTOR matches in SOURCE."""
    data = _read_source(source)
    try:
        root = parse_document(data)
    except etree.LxmlError as exc:
        console.print(str(exc), style="red", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)
    try:
        found = Selection.of(root).narrow(selector)
    except SelectorError as exc:
        console.print(exc.message, style="red", markup=False, soft_wrap=True)
        raise typer.Exit(code=2)

    table = Table(title=f"{len(found)} matches")
    table.add_column("#", justify="right")
    table.add_column("kind")
    table.add_column("text")
    for index, node in enumerate(found):
        table.add_row(str(index), _node_kind(node), Text(found.at(index).text().strip()))
    console.print(table)


def _node_kind(node: Any) -> str:
    if isinstance(node, etree._Element):
        return f"<{node.tag}>"
    if getattr(node, "is_attribute", False):
        return f"@{node.attrname}"
    if getattr(node, "is_text", False) or getattr(node, "is_tail", False):
        return "text"
    return "value"


if __name__ == "__main__":
    app()
