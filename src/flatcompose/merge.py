from __future__ import annotations

from flatcompose.tree import MappingNode, Node, SequenceNode

EXTENDS_KEY = "extends"


def combine(parent: Node, child: Node) -> Node:
    """Combine two values defined for the same field.

    Mappings are merged key by key (recursively for shared keys), sequences
    are concatenated parent-first with duplicates kept, and any other pairing,
    scalars or mismatched kinds included, resolves to the child's value.
    """
    if isinstance(parent, MappingNode) and isinstance(child, MappingNode):
        merged = parent.entries()
        for key, value in child.items:
            existing = merged.get(key.value)
            if existing is None:
                merged[key.value] = (key, value)
            else:
                merged[key.value] = (existing[0], combine(existing[1], value))
        return MappingNode(tuple(merged.values()))
    if isinstance(parent, SequenceNode) and isinstance(child, SequenceNode):
        return SequenceNode((*parent.items, *child.items))
    return child


def merge_service(parent: MappingNode, child: MappingNode) -> MappingNode:
    """Apply a child's own fields onto its resolved parent description."""
    merged = parent.entries()
    for key, value in child.items:
        if key.value == EXTENDS_KEY:
            continue
        existing = merged.get(key.value)
        if existing is None:
            merged[key.value] = (key, value)
        elif isinstance(value, (MappingNode, SequenceNode)):
            merged[key.value] = (existing[0], combine(existing[1], value))
        else:
            merged[key.value] = (existing[0], value)
    return MappingNode(tuple(merged.values()))
