"""End-to-end rendering of an instance as an annotated YAML document."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, TextIO, Union

from ..errors import DocumentError
from ..loader.declarations import DeclarationProvider
from ..loader.extractor import TypeMetadataExtractor
from ..logging import get_logger
from .synthesizer import AnnotatedTreeSynthesizer
from .tree import MappingNode, from_data
from .yaml_text import dump_yaml

Sink = Union[TextIO, Path, None]

_LOGGER = get_logger("printer.render")


def render(
    instance: Union[Mapping[str, Any], MappingNode],
    provider: DeclarationProvider,
    sink: Sink,
    *,
    package: str,
    type_name: str,
    tag_key: str = "json",
    indent: int = 2,
    root_comment: bool = True,
) -> str:
    """Render ``instance`` of ``package.type_name`` with field documentation.

    The type metadata is extracted from ``package`` through ``provider``;
    missing fields are zero-filled and every key is annotated. The document
    is written to ``sink`` (a text stream or a path) only once it has been
    produced completely, and it is returned as well.
    """
    catalog = TypeMetadataExtractor(provider, tag_key=tag_key).extract([package])
    root_type = catalog.require(package, type_name)

    tree = from_data(instance)
    if not isinstance(tree, MappingNode):
        raise DocumentError("instance root must be a mapping")

    AnnotatedTreeSynthesizer(catalog).synthesize(tree, root_type)
    if not root_comment:
        tree.comment = ""
    text = dump_yaml(tree, indent=indent)

    if isinstance(sink, Path):
        _LOGGER.debug("writing %s to %s", root_type.qualified_name, sink)
        sink.write_text(text, encoding="utf-8")
    elif sink is not None:
        sink.write(text)
    return text


__all__ = ["render"]
