"""Error types raised by extraction, synthesis and rendering."""

from __future__ import annotations

from typing import Sequence


class PrettyConfError(RuntimeError):
    """Base class for all prettyconf failures."""

    kind = "PrettyConfError"


class ConfigError(PrettyConfError):
    """Raised when the configuration file cannot be parsed."""

    kind = "ConfigError"


class PackageNotFound(PrettyConfError):
    """Raised when a declaration provider cannot resolve a package path."""

    kind = "PackageNotFound"

    def __init__(self, package: str, detail: str | None = None) -> None:
        self.package = package
        message = f"package {package} could not be found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TypeResolutionError(PrettyConfError):
    """Raised when a declared field type cannot be resolved to a type identity."""

    kind = "TypeResolutionError"

    def __init__(self, type_expr: str, context: str, detail: str | None = None) -> None:
        self.type_expr = type_expr
        self.context = context
        message = f"cannot resolve type {type_expr} of {context}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedAnnotation(PrettyConfError):
    """Raised when a struct tag value cannot be unescaped."""

    kind = "MalformedAnnotation"

    def __init__(self, tag: str, detail: str) -> None:
        self.tag = tag
        super().__init__(f"failed to parse struct tag `{tag}`: {detail}")


class TypeNotFound(PrettyConfError):
    """Raised when a record type is missing from the catalog."""

    kind = "TypeNotFound"

    def __init__(self, package: str, name: str) -> None:
        self.package = package
        self.name = name
        super().__init__(f"type {package}.{name} could not be found")


class FieldNotFound(PrettyConfError):
    """Raised when an instance key has no matching field in the type metadata."""

    kind = "FieldNotFound"

    def __init__(self, type_name: str, key: str) -> None:
        self.type_name = type_name
        self.key = key
        super().__init__(f"failed to find field {key} in type {type_name}")


class UnsupportedFieldType(PrettyConfError):
    """Raised when no zero value can be synthesized for a field type."""

    kind = "UnsupportedFieldType"

    def __init__(self, field: str, type_name: str) -> None:
        self.field = field
        self.type_name = type_name
        super().__init__(f"failed to set zero property value for {field}: unhandled field type {type_name}")


class CyclicType(PrettyConfError):
    """Raised when zero-filling re-enters a record type already on the current path."""

    kind = "CyclicType"

    def __init__(self, path: Sequence[str]) -> None:
        self.path = tuple(path)
        super().__init__(f"cyclic record type: {' -> '.join(self.path)}")


class DocumentError(PrettyConfError):
    """Raised when an instance document cannot be decoded."""

    kind = "DocumentError"


__all__ = [
    "ConfigError",
    "CyclicType",
    "DocumentError",
    "FieldNotFound",
    "MalformedAnnotation",
    "PackageNotFound",
    "PrettyConfError",
    "TypeNotFound",
    "TypeResolutionError",
    "UnsupportedFieldType",
]
