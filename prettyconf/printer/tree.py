"""Format-agnostic value tree exchanged between synthesis and text encoders."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, Optional, Union


@dataclass
class ScalarNode:
    """Leaf value: string, number, boolean or null."""

    value: Any = None
    comment: str = ""


@dataclass
class SequenceNode:
    items: List["Node"] = field(default_factory=list)
    comment: str = ""


@dataclass
class MappingEntry:
    """Key/value pair; ``comment`` is rendered above the key."""

    key: str
    value: "Node"
    comment: str = ""


@dataclass
class MappingNode:
    """Ordered mapping; entry order is preserved by every encoder."""

    entries: List[MappingEntry] = field(default_factory=list)
    comment: str = ""

    def get(self, key: str) -> Optional[MappingEntry]:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def __contains__(self, key: object) -> bool:
        return any(entry.key == key for entry in self.entries)

    def __iter__(self) -> Iterator[MappingEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def keys(self) -> List[str]:
        return [entry.key for entry in self.entries]

    def set(self, key: str, value: "Node") -> MappingEntry:
        """Replace the value stored under ``key`` or append a new entry."""
        entry = self.get(key)
        if entry is None:
            entry = MappingEntry(key=key, value=value)
            self.entries.append(entry)
        else:
            entry.value = value
        return entry


Node = Union[ScalarNode, SequenceNode, MappingNode]


def from_data(data: Any) -> Node:
    """Build a value tree from decoded JSON/YAML data, keeping mapping order."""
    if isinstance(data, (ScalarNode, SequenceNode, MappingNode)):
        return data
    if isinstance(data, Mapping):
        return MappingNode(
            entries=[MappingEntry(key=str(key), value=from_data(value)) for key, value in data.items()]
        )
    if isinstance(data, (list, tuple)):
        return SequenceNode(items=[from_data(item) for item in data])
    return ScalarNode(value=data)


def to_data(node: Node) -> Any:
    """Return plain Python data for ``node``; comments are dropped."""
    if isinstance(node, MappingNode):
        return {entry.key: to_data(entry.value) for entry in node.entries}
    if isinstance(node, SequenceNode):
        return [to_data(item) for item in node.items]
    return node.value


__all__ = [
    "MappingEntry",
    "MappingNode",
    "Node",
    "ScalarNode",
    "SequenceNode",
    "from_data",
    "to_data",
]
