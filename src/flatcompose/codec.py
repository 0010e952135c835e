"""YAML codec between document text and the tree in :mod:`flatcompose.tree`.

Works on PyYAML's representation graph (``yaml.compose`` / ``yaml.serialize``)
rather than on constructed Python objects so that key order, scalar text and
resolved tags are carried through a linearisation untouched.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from flatcompose.models import ParseError
from flatcompose.tree import MappingNode, Node, ScalarNode, SequenceNode

_STR_TAG = "tag:yaml.org,2002:str"
_SEQ_TAG = "tag:yaml.org,2002:seq"
_MAP_TAG = "tag:yaml.org,2002:map"


def _label(source: str | Path | None) -> str:
    return str(source) if source is not None else "<string>"


def _scalar(node: yaml.ScalarNode) -> ScalarNode:
    tag = None if node.tag == _STR_TAG else node.tag
    return ScalarNode(value=node.value, tag=tag, style=node.style or None)


def _from_yaml(node: yaml.Node, *, source: str | Path | None) -> Node:
    if isinstance(node, yaml.ScalarNode):
        return _scalar(node)
    if isinstance(node, yaml.SequenceNode):
        return SequenceNode(
            tuple(_from_yaml(item, source=source) for item in node.value)
        )
    if isinstance(node, yaml.MappingNode):
        pairs: list[tuple[ScalarNode, Node]] = []
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                raise ParseError(
                    f"{_label(source)}: mapping keys must be scalars "
                    f"(line {key_node.start_mark.line + 1})"
                )
            pairs.append((_scalar(key_node), _from_yaml(value_node, source=source)))
        return MappingNode.from_pairs(pairs)
    raise ParseError(f"{_label(source)}: unsupported YAML node {type(node).__name__}")


def parse(text: str, *, source: str | Path | None = None) -> Node:
    """Parse one YAML document into a tree.

    An empty document parses to an empty mapping. Malformed input raises
    :class:`ParseError` naming *source*.
    """
    try:
        composed = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as exc:
        raise ParseError(f"Failed parsing YAML '{_label(source)}': {exc}") from exc
    if composed is None:
        return MappingNode()
    return _from_yaml(composed, source=source)


def _to_yaml(node: Node) -> yaml.Node:
    if isinstance(node, ScalarNode):
        return yaml.ScalarNode(node.tag or _STR_TAG, node.value, style=node.style)
    if isinstance(node, SequenceNode):
        return yaml.SequenceNode(
            _SEQ_TAG, [_to_yaml(item) for item in node.items], flow_style=False
        )
    if isinstance(node, MappingNode):
        return yaml.MappingNode(
            _MAP_TAG,
            [(_to_yaml(key), _to_yaml(value)) for key, value in node.items],
            flow_style=False,
        )
    raise TypeError(f"not a tree node: {type(node).__name__}")


def serialize(node: Node, *, explicit_start: bool = False) -> str:
    """Render a tree as block-style YAML text."""
    return yaml.serialize(
        _to_yaml(node),
        Dumper=yaml.SafeDumper,
        allow_unicode=True,
        explicit_start=explicit_start,
    )
