"""Extraction of record type metadata from package declarations."""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import replace
from typing import Deque, Dict, Iterable, List, Optional, Set

from ..errors import PackageNotFound, TypeResolutionError
from ..logging import get_logger
from ..models import (
    ArrayType,
    BasicType,
    FieldMetadata,
    MapType,
    NamedType,
    OpaqueType,
    PackageMetadata,
    PointerType,
    SliceType,
    StructType,
    TypeMetadata,
    TypeRef,
)
from .catalog import Catalog
from .declarations import (
    DeclarationProvider,
    FieldDeclaration,
    PackageDeclarations,
    TypeDeclaration,
    TypeExpr,
)
from .tags import parse_struct_tags

_BASIC_TYPES = frozenset(
    {
        "bool",
        "string",
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
        "float32",
        "float64",
        "complex64",
        "complex128",
    }
)

_PREDECLARED_INTERFACES = frozenset({"any", "error", "comparable"})

_VENDOR_PREFIX = re.compile(r"(?<![\w.~-])(?:[\w.~-]+/)*vendor/")

_OPTIONAL_MARKER = "+optional"

# Kinds that may declare a record: struct literals and defined types over one.
_RECORD_KINDS = frozenset({"struct", "ident", "qualified"})


class TypeMetadataExtractor:
    """Builds a catalog of exported record types from a declaration provider."""

    def __init__(
        self,
        provider: DeclarationProvider,
        *,
        tag_key: str = "json",
        logger: logging.Logger | None = None,
    ) -> None:
        self.provider = provider
        self.tag_key = tag_key
        self.logger = logger or get_logger("loader")

    def extract(self, package_paths: Iterable[str]) -> Catalog:
        """Extract metadata for every requested package.

        Named types referenced from extracted fields are resolved across
        packages; record types found that way are returned as catalog
        dependencies.

        Raises:
          PackageNotFound: If a requested package cannot be loaded.
          TypeResolutionError: If a field type cannot be resolved.
          MalformedAnnotation: If a field's struct tag cannot be unescaped.
        """
        return _ExtractionRun(self.provider, self.tag_key, self.logger).execute(package_paths)


def extract(
    package_paths: Iterable[str],
    provider: DeclarationProvider,
    *,
    tag_key: str = "json",
) -> Catalog:
    """Convenience wrapper around :class:`TypeMetadataExtractor`."""
    return TypeMetadataExtractor(provider, tag_key=tag_key).extract(package_paths)


class _ExtractionRun:
    """State of a single extraction pass."""

    def __init__(self, provider: DeclarationProvider, tag_key: str, logger: logging.Logger) -> None:
        self._provider = provider
        self._tag_key = tag_key
        self._logger = logger
        self._declarations: Dict[str, PackageDeclarations] = {}
        self._underlying: Dict[NamedType, TypeRef] = {}
        self._resolving: Set[NamedType] = set()
        self._records: Dict[NamedType, Optional[TypeMetadata]] = {}
        self._struct_origins: Dict[NamedType, NamedType] = {}
        self._pending: Deque[NamedType] = deque()

    def execute(self, package_paths: Iterable[str]) -> Catalog:
        packages: List[PackageMetadata] = []
        listed: Set[NamedType] = set()
        for path in dict.fromkeys(package_paths):
            self._logger.debug("parsing package %s", path)
            declarations = self._load(path)
            exported: List[TypeMetadata] = []
            for declaration in declarations.types:
                if not _is_record_declaration(declaration):
                    continue
                metadata = self._record(NamedType(path, declaration.name))
                if metadata is None:
                    continue
                exported.append(metadata)
                listed.add(metadata.key)
            if not exported:
                self._logger.debug("skipping package %s - no exported types", path)
                continue
            packages.append(PackageMetadata(path=path, types=tuple(exported), doc=declarations.doc))

        while self._pending:
            self._record(self._pending.popleft())

        grouped: Dict[str, List[TypeMetadata]] = {}
        for ref, metadata in self._records.items():
            if metadata is None or ref in listed:
                continue
            grouped.setdefault(ref.package, []).append(metadata)

        # Unexported records of a requested package stay with that package.
        for index, package in enumerate(packages):
            extras = grouped.pop(package.path, None)
            if extras:
                packages[index] = replace(package, types=package.types + tuple(extras))

        dependencies = [
            PackageMetadata(path=path, types=tuple(types), doc=self._declarations[path].doc)
            for path, types in grouped.items()
        ]
        return Catalog(packages, dependencies, self._underlying)

    # ------------------------------------------------------------------
    # Declarations

    def _load(self, path: str) -> PackageDeclarations:
        declarations = self._declarations.get(path)
        if declarations is None:
            declarations = self._provider.load(path)
            self._declarations[path] = declarations
        return declarations

    def _declaration(self, ref: NamedType, context: str) -> TypeDeclaration:
        try:
            declarations = self._load(ref.package)
        except PackageNotFound as exc:
            raise TypeResolutionError(ref.display(), context, str(exc)) from exc
        declaration = declarations.type_named(ref.name)
        if declaration is None:
            raise TypeResolutionError(ref.display(), context, "no such type")
        return declaration

    # ------------------------------------------------------------------
    # Records

    def _record(self, ref: NamedType) -> Optional[TypeMetadata]:
        if ref in self._records:
            return self._records[ref]
        context = f"type {ref.display()}"
        self._ensure_named(ref, context)
        declaration = self._declaration(ref, context)
        self._records[ref] = None
        if declaration.type_expr.kind != "struct":
            return self._defined_record(ref, declaration)

        self._logger.debug("loaded struct type %s", ref.display())
        fields: List[FieldMetadata] = []
        for field_declaration in declaration.type_expr.fields:
            for name in field_declaration.names:
                field = self._field(ref, name, field_declaration)
                if field is not None:
                    fields.append(field)

        if not fields:
            return None
        metadata = TypeMetadata(
            name=ref.name,
            package=ref.package,
            doc=declaration.doc.strip(),
            fields=tuple(fields),
        )
        self._records[ref] = metadata
        return metadata

    def _defined_record(self, ref: NamedType, declaration: TypeDeclaration) -> Optional[TypeMetadata]:
        # `type A B` over a struct B shares B's fields.
        origin = self._struct_origins.get(ref)
        if origin is None:
            return None
        source = self._record(origin)
        if source is None:
            return None
        metadata = TypeMetadata(
            name=ref.name,
            package=ref.package,
            doc=declaration.doc.strip(),
            fields=source.fields,
        )
        self._records[ref] = metadata
        return metadata

    def _field(
        self, owner: NamedType, name: str, declaration: FieldDeclaration
    ) -> Optional[FieldMetadata]:
        if not _is_exported(name):
            return None

        json_property = name
        required = True
        tag = parse_struct_tags(declaration.tag).get(self._tag_key)
        if tag is not None:
            split = tag.value.split(",")
            if split[0]:
                json_property = split[0]
            if "omitempty" in split[1:]:
                required = False

        if json_property == "-":
            self._logger.debug(
                "ignoring struct field as not serialized: %s.%s", owner.name, name
            )
            return None

        doc = declaration.doc.strip()
        for line in reversed(doc.split("\n")):
            if line.strip().startswith(_OPTIONAL_MARKER):
                required = False
                break

        type_ref = self._resolve(declaration.type_expr, owner.package, f"field {owner.name}.{name}")
        field = FieldMetadata(
            name=name,
            doc=doc,
            anonymous=declaration.embedded,
            json_required=required,
            json_property=json_property,
            type=type_ref,
            type_name=display_name(type_ref),
        )
        self._logger.debug(
            "adding struct field %s.%s (%s) as %s", owner.name, name, field.type_name, json_property
        )
        return field

    # ------------------------------------------------------------------
    # Type resolution

    def _ensure_named(self, ref: NamedType, context: str) -> None:
        if ref in self._underlying or ref in self._resolving:
            return
        declaration = self._declaration(ref, context)
        self._resolving.add(ref)
        try:
            expr = declaration.type_expr
            if expr.kind == "struct":
                self._underlying[ref] = StructType(expr.text)
                self._pending.append(ref)
                return
            target = self._resolve(expr, ref.package, context)
            if isinstance(target, NamedType):
                if target not in self._underlying:
                    raise TypeResolutionError(ref.display(), context, "invalid recursive type")
                if isinstance(self._underlying[target], StructType):
                    self._struct_origins[ref] = self._struct_origins.get(target, target)
                    self._pending.append(ref)
                target = self._underlying[target]
            self._underlying[ref] = target
        finally:
            self._resolving.discard(ref)

    def _resolve(self, expr: TypeExpr, package: str, context: str) -> TypeRef:
        kind = expr.kind
        if kind == "ident":
            if expr.name in _BASIC_TYPES:
                return BasicType(expr.name)
            if expr.name in _PREDECLARED_INTERFACES:
                return OpaqueType("interface", expr.name)
            return self._resolve_named(package, expr.name, expr.text, context, set())
        if kind == "qualified":
            if not expr.package:
                raise TypeResolutionError(
                    expr.text, context, f"unknown package qualifier {expr.qualifier}"
                )
            return self._resolve_named(expr.package, expr.name, expr.text, context, set())
        if kind == "pointer" and expr.elem is not None:
            return PointerType(self._resolve(expr.elem, package, context))
        if kind == "slice" and expr.elem is not None:
            return SliceType(self._resolve(expr.elem, package, context))
        if kind == "array" and expr.elem is not None:
            return ArrayType(expr.length, self._resolve(expr.elem, package, context))
        if kind == "map" and expr.key is not None and expr.elem is not None:
            return MapType(
                self._resolve(expr.key, package, context),
                self._resolve(expr.elem, package, context),
            )
        if kind == "struct":
            return StructType(expr.text)
        if kind in {"interface", "func", "chan", "generic"}:
            return OpaqueType(kind, expr.text)
        raise TypeResolutionError(expr.text, context, f"unsupported type expression {kind}")

    def _resolve_named(
        self, package: str, name: str, text: str, context: str, aliases: Set[NamedType]
    ) -> TypeRef:
        ref = NamedType(package, name)
        declaration = self._declaration(ref, context)
        if declaration.alias:
            if ref in aliases:
                raise TypeResolutionError(text, context, "invalid recursive type alias")
            aliases.add(ref)
            target = declaration.type_expr
            if target.kind == "ident" and target.name not in _BASIC_TYPES | _PREDECLARED_INTERFACES:
                return self._resolve_named(package, target.name, target.text, context, aliases)
            if target.kind == "qualified" and target.package:
                return self._resolve_named(target.package, target.name, target.text, context, aliases)
            return self._resolve(target, package, context)
        self._ensure_named(ref, context)
        return ref


def display_name(type_ref: TypeRef) -> str:
    """Return the canonical display string of a type with vendor prefixes removed."""
    return _VENDOR_PREFIX.sub("", type_ref.display())


def _is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def _is_record_declaration(declaration: TypeDeclaration) -> bool:
    return (
        _is_exported(declaration.name)
        and not declaration.alias
        and not declaration.generic
        and declaration.type_expr.kind in _RECORD_KINDS
    )


__all__ = ["TypeMetadataExtractor", "display_name", "extract"]
