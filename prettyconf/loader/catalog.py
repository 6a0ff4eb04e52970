"""Catalog of extracted record types keyed by package path and type name."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..errors import TypeNotFound
from ..models import (
    ArrayType,
    MapType,
    NamedType,
    PackageMetadata,
    PointerType,
    SliceType,
    StructType,
    TypeMetadata,
    TypeRef,
)


class Catalog:
    """Read-only result of one extraction run.

    ``packages`` holds the requested packages that export record types,
    together with the unexported records those types refer to.
    ``dependencies`` holds record types from other packages that extracted
    fields refer to. Field types keep ``NamedType`` references; they are
    resolved against this catalog on demand.
    """

    def __init__(
        self,
        packages: Iterable[PackageMetadata],
        dependencies: Iterable[PackageMetadata] = (),
        underlying: Mapping[NamedType, TypeRef] | None = None,
    ) -> None:
        self.packages: Tuple[PackageMetadata, ...] = tuple(packages)
        self.dependencies: Tuple[PackageMetadata, ...] = tuple(dependencies)
        self._types: Dict[NamedType, TypeMetadata] = {}
        for package in self.all_packages():
            for metadata in package.types:
                self._types[metadata.key] = metadata
        self._underlying: Dict[NamedType, TypeRef] = dict(underlying or {})

    def all_packages(self) -> Iterator[PackageMetadata]:
        yield from self.packages
        yield from self.dependencies

    def package(self, path: str) -> Optional[PackageMetadata]:
        for package in self.all_packages():
            if package.path == path:
                return package
        return None

    def lookup(self, package: str, name: str) -> Optional[TypeMetadata]:
        return self._types.get(NamedType(package, name))

    def require(self, package: str, name: str) -> TypeMetadata:
        metadata = self.lookup(package, name)
        if metadata is None:
            raise TypeNotFound(package, name)
        return metadata

    def underlying(self, ref: TypeRef) -> TypeRef:
        """Return the underlying type of ``ref``; non-named types are their own underlying."""
        if not isinstance(ref, NamedType):
            return ref
        try:
            return self._underlying[ref]
        except KeyError:
            raise TypeNotFound(ref.package, ref.name) from None

    def record_type(self, ref: TypeRef) -> Optional[TypeMetadata]:
        """Return the record metadata of a named struct, directly or behind one pointer.

        Structs without eligible fields have no catalog entry; they come back
        as metadata with no fields.
        """
        if isinstance(ref, PointerType):
            ref = ref.elem
        if not isinstance(ref, NamedType):
            return None
        if not isinstance(self.underlying(ref), StructType):
            return None
        metadata = self.lookup(ref.package, ref.name)
        if metadata is None:
            return TypeMetadata(name=ref.name, package=ref.package, doc="")
        return metadata

    def element_record_type(self, ref: TypeRef) -> Optional[TypeMetadata]:
        """Return the record metadata of the elements of a slice, array or map type."""
        container = self.underlying(ref.elem if isinstance(ref, PointerType) else ref)
        if isinstance(container, (SliceType, ArrayType)):
            return self.record_type(container.elem)
        if isinstance(container, MapType):
            return self.record_type(container.value)
        return None

    def as_dict(self) -> Dict[str, Any]:
        """Return a plain-data view suitable for YAML or JSON dumps."""
        return {
            "packages": [_package_to_dict(package) for package in self.packages],
            "dependencies": [_package_to_dict(package) for package in self.dependencies],
        }


def _package_to_dict(package: PackageMetadata) -> Dict[str, Any]:
    types: List[Dict[str, Any]] = []
    for metadata in package.types:
        types.append(
            {
                "name": metadata.name,
                "doc": metadata.doc,
                "fields": [
                    {
                        "name": field.name,
                        "property": field.json_property,
                        "required": field.json_required,
                        "anonymous": field.anonymous,
                        "type": field.type_name,
                        "doc": field.doc,
                    }
                    for field in metadata.fields
                ],
            }
        )
    return {"path": package.path, "doc": package.doc, "types": types}


__all__ = ["Catalog"]
