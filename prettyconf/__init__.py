"""Render Go configuration structs as documented YAML."""

from .errors import (
    ConfigError,
    CyclicType,
    DocumentError,
    FieldNotFound,
    MalformedAnnotation,
    PackageNotFound,
    PrettyConfError,
    TypeNotFound,
    TypeResolutionError,
    UnsupportedFieldType,
)
from .loader import Catalog, GoSourceProvider, StaticProvider, extract
from .printer import dump_yaml, render, synthesize

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "ConfigError",
    "CyclicType",
    "DocumentError",
    "FieldNotFound",
    "GoSourceProvider",
    "MalformedAnnotation",
    "PackageNotFound",
    "PrettyConfError",
    "StaticProvider",
    "TypeNotFound",
    "TypeResolutionError",
    "UnsupportedFieldType",
    "dump_yaml",
    "extract",
    "render",
    "synthesize",
]
