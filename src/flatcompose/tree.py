"""Generic document tree: scalars, sequences and ordered mappings.

Nodes are immutable. Operations that change a mapping return a new
``MappingNode``; keys keep their first-seen position. Mapping keys are
scalar nodes so that their tag and quoting survive a round trip, while
lookups go by key text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Union


@dataclass(frozen=True)
class ScalarNode:
    value: str
    # Resolved YAML tag (e.g. ``tag:yaml.org,2002:int``); None means plain string.
    tag: str | None = None
    style: str | None = None


@dataclass(frozen=True)
class SequenceNode:
    items: tuple["Node", ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.items)


def as_key(key: "str | ScalarNode") -> ScalarNode:
    return key if isinstance(key, ScalarNode) else ScalarNode(key)


@dataclass(frozen=True)
class MappingNode:
    items: tuple[tuple[ScalarNode, "Node"], ...] = ()
    _index: dict[str, int] = field(
        default_factory=dict, init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        # Accept plain-text keys for convenience; store them as scalar nodes.
        items = tuple((as_key(key), value) for key, value in self.items)
        index: dict[str, int] = {}
        for position, (key, _) in enumerate(items):
            if key.value in index:
                raise ValueError(f"duplicate mapping key: {key.value!r}")
            index[key.value] = position
        object.__setattr__(self, "items", items)
        object.__setattr__(self, "_index", index)

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[tuple["str | ScalarNode", "Node"]]
    ) -> "MappingNode":
        """Build a mapping; a repeated key replaces the value in place."""
        merged: dict[str, tuple[ScalarNode, Node]] = {}
        for key, value in pairs:
            key_node = as_key(key)
            previous = merged.get(key_node.value)
            merged[key_node.value] = (
                previous[0] if previous is not None else key_node,
                value,
            )
        return cls(tuple(merged.values()))

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, ScalarNode):
            key = key.value
        return key in self._index

    def __getitem__(self, key: str) -> "Node":
        return self.items[self._index[key]][1]

    def get(self, key: str, default: "Node | None" = None) -> "Node | None":
        position = self._index.get(key)
        if position is None:
            return default
        return self.items[position][1]

    def keys(self) -> list[str]:
        return [key.value for key, _ in self.items]

    def entries(self) -> dict[str, tuple[ScalarNode, "Node"]]:
        """Key text to ``(key node, value)``, in mapping order."""
        return {key.value: (key, value) for key, value in self.items}

    def set(self, key: "str | ScalarNode", value: "Node") -> "MappingNode":
        key_node = as_key(key)
        position = self._index.get(key_node.value)
        if position is None:
            return MappingNode((*self.items, (key_node, value)))
        items = list(self.items)
        items[position] = (items[position][0], value)
        return MappingNode(tuple(items))

    def remove(self, key: str) -> "MappingNode":
        return MappingNode(
            tuple(
                (existing, value)
                for existing, value in self.items
                if existing.value != key
            )
        )


Node = Union[ScalarNode, SequenceNode, MappingNode]

EMPTY_MAPPING = MappingNode()
