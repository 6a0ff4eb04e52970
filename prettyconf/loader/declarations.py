"""Declaration-level view of source packages consumed by the extractor."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

from ..errors import PackageNotFound


@dataclass(frozen=True)
class TypeExpr:
    """Syntactic type expression as written in a declaration.

    ``kind`` is one of ``ident``, ``qualified``, ``pointer``, ``slice``,
    ``array``, ``map``, ``struct``, ``interface``, ``func``, ``chan`` or
    ``generic``. Qualified expressions carry the import path the provider
    resolved from the declaring file; an empty ``package`` means the
    qualifier matched no import. Map expressions keep their value type in
    ``elem``.
    """

    kind: str
    text: str
    name: str = ""
    qualifier: str = ""
    package: str = ""
    length: str = ""
    elem: Optional["TypeExpr"] = None
    key: Optional["TypeExpr"] = None
    fields: Tuple["FieldDeclaration", ...] = ()

    @classmethod
    def ident(cls, name: str) -> "TypeExpr":
        return cls(kind="ident", text=name, name=name)

    @classmethod
    def qualified(cls, package: str, name: str, qualifier: str | None = None) -> "TypeExpr":
        alias = qualifier if qualifier is not None else package.rsplit("/", 1)[-1]
        return cls(kind="qualified", text=f"{alias}.{name}", name=name, qualifier=alias, package=package)

    @classmethod
    def pointer(cls, elem: "TypeExpr") -> "TypeExpr":
        return cls(kind="pointer", text=f"*{elem.text}", elem=elem)

    @classmethod
    def slice(cls, elem: "TypeExpr") -> "TypeExpr":
        return cls(kind="slice", text=f"[]{elem.text}", elem=elem)

    @classmethod
    def array(cls, length: str, elem: "TypeExpr") -> "TypeExpr":
        return cls(kind="array", text=f"[{length}]{elem.text}", length=length, elem=elem)

    @classmethod
    def map(cls, key: "TypeExpr", value: "TypeExpr") -> "TypeExpr":
        return cls(kind="map", text=f"map[{key.text}]{value.text}", key=key, elem=value)

    @classmethod
    def struct(cls, fields: Iterable["FieldDeclaration"], text: str = "struct{...}") -> "TypeExpr":
        return cls(kind="struct", text=text, fields=tuple(fields))


@dataclass(frozen=True)
class FieldDeclaration:
    """One field declaration line; several names may share a type, tag and doc."""

    names: Tuple[str, ...]
    type_expr: TypeExpr
    tag: str = ""
    doc: str = ""
    embedded: bool = False


@dataclass(frozen=True)
class TypeDeclaration:
    """Top-level type declaration with its documentation."""

    name: str
    type_expr: TypeExpr
    doc: str = ""
    alias: bool = False
    generic: bool = False


@dataclass(frozen=True)
class PackageDeclarations:
    """Top-level type declarations of a package, in source order."""

    path: str
    name: str
    doc: str = ""
    types: Tuple[TypeDeclaration, ...] = field(default_factory=tuple)

    def type_named(self, name: str) -> Optional[TypeDeclaration]:
        for declaration in self.types:
            if declaration.name == name:
                return declaration
        return None


class DeclarationProvider(ABC):
    """Contract for sources of package declarations."""

    @abstractmethod
    def load(self, package_path: str) -> PackageDeclarations:
        """Return the declarations of ``package_path``.

        Raises:
          PackageNotFound: If the package cannot be resolved.
        """


class StaticProvider(DeclarationProvider):
    """Serves declarations that were assembled in memory."""

    def __init__(self, packages: Iterable[PackageDeclarations] | Mapping[str, PackageDeclarations]) -> None:
        if isinstance(packages, Mapping):
            self._packages: Dict[str, PackageDeclarations] = dict(packages)
        else:
            self._packages = {package.path: package for package in packages}

    def load(self, package_path: str) -> PackageDeclarations:
        try:
            return self._packages[package_path]
        except KeyError:
            raise PackageNotFound(package_path) from None


__all__ = [
    "DeclarationProvider",
    "FieldDeclaration",
    "PackageDeclarations",
    "StaticProvider",
    "TypeDeclaration",
    "TypeExpr",
]
