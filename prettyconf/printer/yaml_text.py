"""YAML text encoding of value trees and decoding of instance documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..errors import DocumentError
from .tree import MappingNode, Node, SequenceNode

_DOCUMENT_END = "\n..."


def dump_yaml(node: Node, *, indent: int = 2) -> str:
    """Render ``node`` as block-style YAML with comments above their keys.

    The root comment is separated from the document body by a blank line.
    """
    lines: List[str] = []
    if node.comment:
        lines.extend(_comment_lines(node.comment))
        lines.append("")
    if _is_block(node):
        lines.extend(_block_lines(node, indent, include_comment=False))
    else:
        lines.append(_inline(node))
    return "\n".join(lines) + "\n"


def format_scalar(value: Any) -> str:
    """Format a scalar as a single-line YAML token."""
    options: Dict[str, Any] = {
        "default_flow_style": True,
        "allow_unicode": True,
        "width": float("inf"),
    }
    if isinstance(value, str) and not value.isprintable():
        options["default_style"] = '"'
    text = yaml.safe_dump(value, **options).rstrip("\n")
    if text.endswith(_DOCUMENT_END):
        text = text[: -len(_DOCUMENT_END)]
    return text


def loads_document(text: str, *, format: str = "yaml") -> Dict[str, Any]:
    """Decode an instance document; the root must be a mapping.

    Raises:
      DocumentError: If the text cannot be parsed or its root is not a mapping.
    """
    try:
        if format == "json":
            data = json.loads(text) if text.strip() else None
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DocumentError(f"failed to parse instance document: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DocumentError("instance document root must be a mapping")
    return data


def load_document(path: Path) -> Dict[str, Any]:
    """Read and decode an instance document; ``.json`` files use the JSON decoder."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentError(f"cannot read instance document {path}: {exc}") from exc
    return loads_document(text, format="json" if path.suffix.lower() == ".json" else "yaml")


def _is_block(node: Node) -> bool:
    if isinstance(node, MappingNode):
        return bool(node.entries)
    if isinstance(node, SequenceNode):
        return bool(node.items)
    return False


def _inline(node: Node) -> str:
    if isinstance(node, MappingNode):
        return "{}"
    if isinstance(node, SequenceNode):
        return "[]"
    return format_scalar(node.value)


def _block_lines(node: Node, indent: int, *, include_comment: bool = True) -> List[str]:
    lines: List[str] = []
    if include_comment and node.comment:
        lines.extend(_comment_lines(node.comment))
    if isinstance(node, MappingNode):
        for entry in node.entries:
            if entry.comment:
                lines.extend(_comment_lines(entry.comment))
            key = format_scalar(entry.key)
            if _is_block(entry.value):
                lines.append(f"{key}:")
                lines.extend(_indent(_block_lines(entry.value, indent), indent))
            else:
                lines.append(f"{key}: {_inline(entry.value)}")
    elif isinstance(node, SequenceNode):
        for item in node.items:
            if not _is_block(item):
                if item.comment:
                    lines.extend(_comment_lines(item.comment))
                lines.append(f"- {_inline(item)}")
                continue
            child = _block_lines(item, indent)
            lines.append(f"- {child[0]}")
            lines.extend(_indent(child[1:], 2))
    return lines


def _indent(lines: List[str], width: int) -> List[str]:
    prefix = " " * width
    return [f"{prefix}{line}" if line else line for line in lines]


def _comment_lines(comment: str) -> List[str]:
    return [f"# {line}" if line else "#" for line in comment.split("\n")]


__all__ = ["dump_yaml", "format_scalar", "load_document", "loads_document"]
