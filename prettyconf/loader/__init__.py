"""Type metadata extraction from Go declarations."""

from .catalog import Catalog
from .declarations import (
    DeclarationProvider,
    FieldDeclaration,
    PackageDeclarations,
    StaticProvider,
    TypeDeclaration,
    TypeExpr,
)
from .extractor import TypeMetadataExtractor, display_name, extract
from .go_source import GoSourceProvider, ModuleRoot, find_module
from .tags import StructTag, StructTags, parse_struct_tags

__all__ = [
    "Catalog",
    "DeclarationProvider",
    "FieldDeclaration",
    "GoSourceProvider",
    "ModuleRoot",
    "PackageDeclarations",
    "StaticProvider",
    "StructTag",
    "StructTags",
    "TypeDeclaration",
    "TypeExpr",
    "TypeMetadataExtractor",
    "display_name",
    "extract",
    "find_module",
    "parse_struct_tags",
]
