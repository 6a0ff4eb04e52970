"""Annotated YAML rendering of instance trees."""

from .render import render
from .synthesizer import AnnotatedTreeSynthesizer, synthesize
from .tree import MappingEntry, MappingNode, ScalarNode, SequenceNode, from_data, to_data
from .yaml_text import dump_yaml, load_document, loads_document

__all__ = [
    "AnnotatedTreeSynthesizer",
    "MappingEntry",
    "MappingNode",
    "ScalarNode",
    "SequenceNode",
    "dump_yaml",
    "from_data",
    "load_document",
    "loads_document",
    "render",
    "synthesize",
    "to_data",
]
