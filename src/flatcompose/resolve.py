"""Resolution of ``extends`` references into self-contained service descriptions.

Services are resolved one at a time in document order and each result is
registered before the next service is looked at. A local ``extends`` only sees
services registered so far: a service that extends a sibling defined further
down the document resolves against an empty parent, and the miss is reported
as a dangling reference instead of raising. Cross-file references are resolved
by fully linearising the referenced document (relative to its own directory)
and picking the named service out of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from flatcompose.codec import parse
from flatcompose.merge import EXTENDS_KEY, merge_service
from flatcompose.models import DanglingReference, ExtendsEdge, ParseError
from flatcompose.tree import EMPTY_MAPPING, MappingNode, Node, ScalarNode
from flatcompose.utils import read_document, resolve_base_dir, resolve_relative

_log = logging.getLogger("flatcompose.resolve")

SERVICES_KEY = "services"
_NULL_TAG = "tag:yaml.org,2002:null"


def new_diagnostics() -> dict[str, Any]:
    return {"files": [], "warnings": [], "dangling_references": [], "extends": []}


def document_services(root: MappingNode) -> Node:
    """Return the services of a document in either wrapped or flat form."""
    if SERVICES_KEY in root:
        return root[SERVICES_KEY]
    return root


@dataclass
class _Registry:
    """Services resolved so far during one pass, in document order."""

    services: dict[str, tuple[ScalarNode, Node]] = field(default_factory=dict)

    def lookup(self, name: str) -> Node | None:
        entry = self.services.get(name)
        return entry[1] if entry is not None else None

    def register(self, key: ScalarNode, description: Node) -> None:
        self.services[key.value] = (key, description)

    def freeze(self) -> MappingNode:
        return MappingNode(tuple(self.services.values()))


def _reference_text(node: Node | None) -> str | None:
    if not isinstance(node, ScalarNode) or node.tag == _NULL_TAG:
        return None
    return node.value


def _source_label(source: str | Path | None) -> str | None:
    return str(source) if source is not None else None


def _record_extends(
    diagnostics: dict[str, Any],
    *,
    service: str,
    target: str | None,
    file: str | None,
    source: str | Path | None,
    resolved: bool,
) -> None:
    edge = ExtendsEdge(
        service=service,
        target=target,
        file=file,
        source=_source_label(source),
        resolved=resolved,
    )
    diagnostics["extends"].append(edge.to_json())
    if resolved:
        return
    dangling = DanglingReference(
        service=service, target=target, file=file, source=_source_label(source)
    )
    _log.warning(
        "dangling_extends service=%s target=%s file=%s source=%s",
        service,
        target,
        file,
        dangling.source,
    )
    diagnostics["warnings"].append(dangling.message)
    diagnostics["dangling_references"].append(dangling.to_json())


def load_service_from_file(
    file_ref: str,
    target: str,
    *,
    base_dir: Path,
    service: str,
    diagnostics: dict[str, Any],
    source: str | Path | None,
) -> Node | None:
    """Linearise another document and return one of its services, if present."""
    path = resolve_relative(base_dir, file_ref)
    origin = _source_label(source) or "<string>"
    text = read_document(
        path, context=f" (extends of service '{service}' in {origin})"
    )
    diagnostics["files"].append(str(path))
    _log.debug("extends_file_load service=%s target=%s file=%s", service, target, path)

    root = parse(text, source=path)
    if not isinstance(root, MappingNode):
        raise ParseError(f"{path}: document root must be a mapping")
    resolved = resolve_registry(
        path.parent,
        document_services(root),
        diagnostics=diagnostics,
        source=path,
    )
    if not isinstance(resolved, MappingNode):
        return None
    return resolved.get(target)


def _resolve_parent(
    service: str,
    reference: Node,
    registry: _Registry,
    *,
    base_dir: Path,
    diagnostics: dict[str, Any],
    source: str | Path | None,
) -> MappingNode:
    file_ref: str | None = None
    if isinstance(reference, MappingNode):
        target = _reference_text(reference.get("service"))
        file_ref = _reference_text(reference.get("file"))
    else:
        target = _reference_text(reference)

    parent: Node | None = None
    if target is not None:
        if file_ref is None:
            parent = registry.lookup(target)
        else:
            parent = load_service_from_file(
                file_ref,
                target,
                base_dir=base_dir,
                service=service,
                diagnostics=diagnostics,
                source=source,
            )

    _record_extends(
        diagnostics,
        service=service,
        target=target,
        file=file_ref,
        source=source,
        resolved=parent is not None,
    )
    if not isinstance(parent, MappingNode):
        return EMPTY_MAPPING
    return parent


def resolve_service(
    service: str,
    description: Node,
    registry: _Registry,
    *,
    base_dir: Path,
    diagnostics: dict[str, Any],
    source: str | Path | None = None,
) -> Node:
    if not isinstance(description, MappingNode) or EXTENDS_KEY not in description:
        return description
    parent = _resolve_parent(
        service,
        description[EXTENDS_KEY],
        registry,
        base_dir=base_dir,
        diagnostics=diagnostics,
        source=source,
    )
    _log.debug("service_resolved service=%s parent_fields=%d", service, len(parent))
    return merge_service(parent, description)


def resolve_registry(
    base_dir: str | Path | None,
    services: Node,
    *,
    diagnostics: dict[str, Any] | None = None,
    source: str | Path | None = None,
) -> Node:
    """Resolve every service of a services mapping.

    A *services* value that is not a mapping (for example an empty
    ``services:`` entry) has nothing to resolve and is returned as is.
    """
    if diagnostics is None:
        diagnostics = new_diagnostics()
    if not isinstance(services, MappingNode):
        return services

    base = resolve_base_dir(base_dir)
    registry = _Registry()
    for key, description in services.items:
        registry.register(
            key,
            resolve_service(
                key.value,
                description,
                registry,
                base_dir=base,
                diagnostics=diagnostics,
                source=source,
            ),
        )
    return registry.freeze()
