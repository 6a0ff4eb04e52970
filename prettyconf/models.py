"""Core data models shared across prettyconf components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


class TypeRef:
    """Resolved type identity of a field or of a named type's underlying type."""

    def display(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.display()


@dataclass(frozen=True)
class BasicType(TypeRef):
    """Predeclared scalar type such as ``int`` or ``string``."""

    name: str

    def display(self) -> str:
        return self.name


@dataclass(frozen=True)
class NamedType(TypeRef):
    """Reference to a declared type, resolved through the catalog by ``(package, name)``."""

    package: str
    name: str

    def display(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name


@dataclass(frozen=True)
class PointerType(TypeRef):
    elem: TypeRef

    def display(self) -> str:
        return f"*{self.elem.display()}"


@dataclass(frozen=True)
class SliceType(TypeRef):
    elem: TypeRef

    def display(self) -> str:
        return f"[]{self.elem.display()}"


@dataclass(frozen=True)
class ArrayType(TypeRef):
    length: str
    elem: TypeRef

    def display(self) -> str:
        return f"[{self.length}]{self.elem.display()}"


@dataclass(frozen=True)
class MapType(TypeRef):
    key: TypeRef
    value: TypeRef

    def display(self) -> str:
        return f"map[{self.key.display()}]{self.value.display()}"


@dataclass(frozen=True)
class StructType(TypeRef):
    """Struct shape; the fields of named structs live in the catalog."""

    text: str = "struct{}"

    def display(self) -> str:
        return self.text


@dataclass(frozen=True)
class OpaqueType(TypeRef):
    """Interface, function, channel or type-parameter types."""

    kind: str
    text: str

    def display(self) -> str:
        return self.text


@dataclass(frozen=True)
class FieldMetadata:
    """A serialized struct field and its documentation."""

    name: str
    doc: str
    anonymous: bool
    json_required: bool
    json_property: str
    type: TypeRef
    type_name: str


@dataclass(frozen=True)
class TypeMetadata:
    """An exported record type with its eligible fields in declaration order."""

    name: str
    package: str
    doc: str
    fields: Tuple[FieldMetadata, ...] = ()

    @property
    def key(self) -> NamedType:
        return NamedType(self.package, self.name)

    @property
    def qualified_name(self) -> str:
        return self.key.display()

    def field_by_property(self, json_property: str) -> FieldMetadata | None:
        for candidate in self.fields:
            if candidate.json_property == json_property:
                return candidate
        return None


@dataclass(frozen=True)
class PackageMetadata:
    """Documentation and record types of a single package."""

    path: str
    types: Tuple[TypeMetadata, ...] = field(default_factory=tuple)
    doc: str = ""

    def type_named(self, name: str) -> TypeMetadata | None:
        for candidate in self.types:
            if candidate.name == name:
                return candidate
        return None


__all__ = [
    "ArrayType",
    "BasicType",
    "FieldMetadata",
    "MapType",
    "NamedType",
    "OpaqueType",
    "PackageMetadata",
    "PointerType",
    "SliceType",
    "StructType",
    "TypeMetadata",
    "TypeRef",
]
