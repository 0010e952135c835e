from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from flatcompose.codec import parse, serialize
from flatcompose.models import ParseError
from flatcompose.resolve import SERVICES_KEY, new_diagnostics, resolve_registry
from flatcompose.settings import LineariseSettings
from flatcompose.tree import MappingNode, Node
from flatcompose.utils import read_document, resolve_base_dir

_log = logging.getLogger("flatcompose.linearise")


def trim_output(text: str, trim: Iterable[str]) -> str:
    """Strip each character set in turn from both ends of *text*."""
    for chars in trim:
        text = text.strip(chars)
    return text


def linearise_tree(
    root: Node,
    base_dir: str | Path | None,
    *,
    diagnostics: dict[str, Any] | None = None,
    source: str | Path | None = None,
) -> Node:
    """Return *root* with every ``extends`` resolved and inlined."""
    if diagnostics is None:
        diagnostics = new_diagnostics()
    label = str(source) if source is not None else "<string>"
    if not isinstance(root, MappingNode):
        raise ParseError(f"{label}: document root must be a mapping")

    base = resolve_base_dir(base_dir)
    if SERVICES_KEY in root:
        diagnostics["shape"] = "wrapped"
        services_key, raw_services = root.entries()[SERVICES_KEY]
        services = resolve_registry(
            base, raw_services, diagnostics=diagnostics, source=source
        )
        output = root.remove(SERVICES_KEY).set(services_key, services)
    else:
        diagnostics["shape"] = "flat"
        services = resolve_registry(base, root, diagnostics=diagnostics, source=source)
        output = services

    diagnostics["services"] = (
        services.keys() if isinstance(services, MappingNode) else []
    )
    _log.info(
        "linearised source=%s shape=%s services=%d extends=%d dangling=%d",
        label,
        diagnostics["shape"],
        len(diagnostics["services"]),
        len(diagnostics["extends"]),
        len(diagnostics["dangling_references"]),
    )
    return output


def linearise_with_diagnostics(
    text: str,
    base_dir: str | Path | None = "",
    *,
    settings: LineariseSettings | None = None,
    source: str | Path | None = None,
) -> tuple[str, dict[str, Any]]:
    if settings is None:
        settings = LineariseSettings()
    diagnostics = new_diagnostics()
    if source is not None:
        diagnostics["files"].append(str(source))

    root = parse(text, source=source)
    output = linearise_tree(root, base_dir, diagnostics=diagnostics, source=source)
    # The document start marker is what the default "-" trim set removes.
    rendered = serialize(output, explicit_start=True)
    return trim_output(rendered, settings.trim), diagnostics


def linearise(
    text: str,
    base_dir: str | Path | None = "",
    *,
    settings: LineariseSettings | None = None,
) -> str:
    """Linearise a document so that it no longer contains ``extends``.

    Relative ``extends.file`` references are resolved against *base_dir*
    (the current directory when empty). Raises :class:`ParseError` for
    malformed documents and :class:`FileAccessError` for unreadable
    referenced files; unknown local parents only produce warnings.
    """
    resolved, _ = linearise_with_diagnostics(text, base_dir, settings=settings)
    return resolved


def linearise_file(
    path: str | Path,
    *,
    settings: LineariseSettings | None = None,
    base_dir: str | Path | None = None,
) -> tuple[str, dict[str, Any]]:
    """Linearise a document on disk, relative to its own directory by default."""
    document = Path(path).expanduser().resolve()
    text = read_document(document)
    return linearise_with_diagnostics(
        text,
        document.parent if base_dir is None else base_dir,
        settings=settings,
        source=document,
    )
