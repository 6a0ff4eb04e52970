"""Merges extracted type metadata with a serialized instance tree."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Sequence, Tuple

from ..errors import CyclicType, FieldNotFound, UnsupportedFieldType
from ..loader.catalog import Catalog
from ..logging import get_logger
from ..models import (
    ArrayType,
    BasicType,
    FieldMetadata,
    MapType,
    PointerType,
    SliceType,
    StructType,
    TypeMetadata,
    TypeRef,
)
from .tree import MappingEntry, MappingNode, Node, ScalarNode, SequenceNode, from_data

_INTEGER_TYPES = frozenset(
    {
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "byte",
        "rune",
    }
)
_FLOAT_TYPES = frozenset({"float32", "float64"})


class AnnotatedTreeSynthesizer:
    """Zero-fills, documents and orders a value tree against a catalog."""

    def __init__(self, catalog: Catalog, *, logger: logging.Logger | None = None) -> None:
        self.catalog = catalog
        self.logger = logger or get_logger("printer")

    def synthesize(self, tree: MappingNode, root_type: TypeMetadata) -> MappingNode:
        """Complete ``tree`` in place and return it.

        Missing fields are filled with zero values first, then every entry is
        annotated with its field documentation and entries are put in field
        declaration order. The root type's doc becomes the root comment.

        Raises:
          FieldNotFound: If the tree holds a key that no field serializes to.
          UnsupportedFieldType: If a missing field has no zero value.
          CyclicType: If zero-filling would recurse into a record forever.
          TypeNotFound: If a referenced type is missing from the catalog.
        """
        self.zero_unset_fields(tree, root_type)
        if root_type.doc:
            tree.comment = root_type.doc
        self.annotate(tree, root_type)
        return tree

    # ------------------------------------------------------------------
    # Phase A: zero-fill

    def zero_unset_fields(
        self, node: MappingNode, record: TypeMetadata, path: Sequence[str] = ()
    ) -> None:
        path = (*path, record.qualified_name)
        for field in record.fields:
            if field.json_property in node:
                continue
            self.logger.debug("zero-filling %s.%s", record.name, field.json_property)
            node.set(field.json_property, from_data(self.zero_value(field)))

        for field in record.fields:
            entry = node.get(field.json_property)
            if entry is None:
                continue
            nested = self.catalog.record_type(field.type)
            if nested is not None:
                if isinstance(entry.value, ScalarNode) and entry.value.value is None:
                    entry.value = MappingNode()
                if isinstance(entry.value, MappingNode):
                    if nested.qualified_name in path:
                        raise CyclicType((*path, nested.qualified_name))
                    self.zero_unset_fields(entry.value, nested, path)
                continue
            element = self.catalog.element_record_type(field.type)
            if element is not None:
                # Element recursion is bounded by the instance data.
                for child in _mapping_children(entry.value):
                    self.zero_unset_fields(child, element)

    def zero_value(self, field: FieldMetadata) -> Any:
        """Return the zero value serialized for ``field``'s type."""
        return self._zero(field.type, field)

    def _zero(self, type_ref: TypeRef, field: FieldMetadata) -> Any:
        underlying = self.catalog.underlying(type_ref)
        if isinstance(underlying, PointerType):
            return self._zero(underlying.elem, field)
        if isinstance(underlying, BasicType):
            if underlying.name == "bool":
                return False
            if underlying.name in _INTEGER_TYPES:
                return 0
            if underlying.name in _FLOAT_TYPES:
                return 0.0
            if underlying.name == "string":
                return ""
        if isinstance(underlying, (SliceType, ArrayType)):
            return []
        if isinstance(underlying, (MapType, StructType)):
            return {}
        raise UnsupportedFieldType(field.name, field.type_name)

    # ------------------------------------------------------------------
    # Phase B: annotate and reorder

    def annotate(self, node: MappingNode, record: TypeMetadata) -> None:
        for entry in node.entries:
            field = record.field_by_property(entry.key)
            if field is None:
                raise FieldNotFound(record.qualified_name, entry.key)
            entry.comment = field_comment(field)

            nested = self.catalog.record_type(field.type)
            if nested is not None:
                if isinstance(entry.value, MappingNode):
                    self.annotate(entry.value, nested)
                continue
            element = self.catalog.element_record_type(field.type)
            if element is not None:
                for child in _mapping_children(entry.value):
                    self.annotate(child, element)
        node.entries = sort_entries(record.fields, node.entries)


def synthesize(tree: MappingNode, root_type: TypeMetadata, catalog: Catalog) -> MappingNode:
    """Convenience wrapper around :class:`AnnotatedTreeSynthesizer`."""
    return AnnotatedTreeSynthesizer(catalog).synthesize(tree, root_type)


def field_comment(field: FieldMetadata) -> str:
    """Return the field doc, leading with the serialized key instead of the Go name."""
    doc = field.doc
    if doc.startswith(field.name + " "):
        doc = field.json_property + doc[len(field.name) :]
    return doc


def sort_entries(
    fields: Iterable[FieldMetadata], entries: Sequence[MappingEntry]
) -> List[MappingEntry]:
    """Order entries by field declaration order; unknown keys keep their order at the end."""
    order = {}
    for index, field in enumerate(fields):
        order.setdefault(field.json_property, index)
    return sorted(entries, key=lambda entry: order.get(entry.key, len(order)))


def _mapping_children(node: Node) -> Tuple[MappingNode, ...]:
    if isinstance(node, SequenceNode):
        return tuple(item for item in node.items if isinstance(item, MappingNode))
    if isinstance(node, MappingNode):
        return tuple(entry.value for entry in node.entries if isinstance(entry.value, MappingNode))
    return ()


__all__ = [
    "AnnotatedTreeSynthesizer",
    "field_comment",
    "sort_entries",
    "synthesize",
]
