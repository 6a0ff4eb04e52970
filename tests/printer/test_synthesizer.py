"""Tests for prettyconf.printer.synthesizer."""

from __future__ import annotations

import copy
from dataclasses import replace

import pytest

from prettyconf.errors import CyclicType, FieldNotFound, UnsupportedFieldType
from prettyconf.loader.catalog import Catalog
from prettyconf.loader.declarations import (
    FieldDeclaration,
    PackageDeclarations,
    StaticProvider,
    TypeDeclaration,
    TypeExpr,
)
from prettyconf.loader.extractor import extract
from prettyconf.models import BasicType, FieldMetadata
from prettyconf.printer.synthesizer import (
    AnnotatedTreeSynthesizer,
    field_comment,
    sort_entries,
    synthesize,
)
from prettyconf.printer.tree import MappingEntry, MappingNode, ScalarNode, from_data, to_data

PKG = "example.com/pkg1"


def _field(name: str, type_expr: TypeExpr, tag: str = "", doc: str = "") -> FieldDeclaration:
    return FieldDeclaration(names=(name,), type_expr=type_expr, tag=tag, doc=doc)


def _catalog(*types: TypeDeclaration) -> Catalog:
    return extract([PKG], StaticProvider([PackageDeclarations(path=PKG, name="pkg1", types=types)]))


def _type1() -> TypeDeclaration:
    return TypeDeclaration(
        name="Type1",
        doc="Type1 is a normal type.",
        type_expr=TypeExpr.struct(
            [
                _field("Field1", TypeExpr.ident("int"), doc="Field1 counts things."),
                _field("Field2", TypeExpr.ident("string"), tag='json:"f2"'),
                _field(
                    "Field4",
                    TypeExpr.slice(TypeExpr.ident("string")),
                    tag='json:",omitempty"',
                    doc="Even more doc.",
                ),
            ]
        ),
    )


def test_synthesize_zero_fills_orders_and_annotates() -> None:
    catalog = _catalog(_type1())
    tree = from_data({"f2": "x", "Field1": 0})

    result = synthesize(tree, catalog.require(PKG, "Type1"), catalog)

    assert result is tree
    assert tree.keys() == ["Field1", "f2", "Field4"]
    assert to_data(tree) == {"Field1": 0, "f2": "x", "Field4": []}
    assert tree.comment == "Type1 is a normal type."
    assert [entry.comment for entry in tree] == ["Field1 counts things.", "", "Even more doc."]


def test_synthesize_unknown_key_raises() -> None:
    catalog = _catalog(_type1())
    tree = from_data({"Field1": 1, "bogus": True})

    with pytest.raises(FieldNotFound) as excinfo:
        synthesize(tree, catalog.require(PKG, "Type1"), catalog)

    assert excinfo.value.key == "bogus"
    assert str(excinfo.value) == f"failed to find field bogus in type {PKG}.Type1"


def test_zero_fill_is_idempotent() -> None:
    catalog = _catalog(_type1())
    synthesizer = AnnotatedTreeSynthesizer(catalog)
    record = catalog.require(PKG, "Type1")
    tree = from_data({"Field1": 3})

    synthesizer.zero_unset_fields(tree, record)
    once = copy.deepcopy(tree)
    synthesizer.zero_unset_fields(tree, record)

    assert tree == once
    assert to_data(tree) == {"Field1": 3, "f2": "", "Field4": []}


def test_zero_values_per_kind() -> None:
    catalog = _catalog(
        TypeDeclaration(name="Mode", type_expr=TypeExpr.ident("string")),
        TypeDeclaration(
            name="Kinds",
            type_expr=TypeExpr.struct(
                [
                    _field("B", TypeExpr.ident("bool")),
                    _field("U", TypeExpr.ident("uint16")),
                    _field("F", TypeExpr.ident("float64")),
                    _field("S", TypeExpr.pointer(TypeExpr.ident("string"))),
                    _field("M", TypeExpr.ident("Mode")),
                    _field("A", TypeExpr.array("3", TypeExpr.ident("int"))),
                    _field("Map", TypeExpr.map(TypeExpr.ident("string"), TypeExpr.ident("int"))),
                    _field("Anon", TypeExpr.struct([])),
                ]
            ),
        ),
    )
    tree = MappingNode()

    synthesize(tree, catalog.require(PKG, "Kinds"), catalog)

    assert to_data(tree) == {
        "B": False,
        "U": 0,
        "F": 0.0,
        "S": "",
        "M": "",
        "A": [],
        "Map": {},
        "Anon": {},
    }


def test_zero_fill_of_interface_field_raises() -> None:
    catalog = _catalog(
        TypeDeclaration(
            name="Holder",
            type_expr=TypeExpr.struct([_field("Value", TypeExpr.ident("any"))]),
        )
    )

    with pytest.raises(UnsupportedFieldType) as excinfo:
        synthesize(MappingNode(), catalog.require(PKG, "Holder"), catalog)

    assert excinfo.value.field == "Value"

    present = from_data({"Value": {"free": "form"}})
    synthesize(present, catalog.require(PKG, "Holder"), catalog)
    assert to_data(present) == {"Value": {"free": "form"}}


def _nested_catalog() -> Catalog:
    return _catalog(
        TypeDeclaration(
            name="Outer",
            doc="Outer doc.",
            type_expr=TypeExpr.struct(
                [
                    _field("Inner", TypeExpr.ident("Inner"), tag='json:"inner"', doc="Inner holds nested settings."),
                    _field("Ptr", TypeExpr.pointer(TypeExpr.ident("Inner")), tag='json:"ptr,omitempty"'),
                    _field(
                        "List",
                        TypeExpr.slice(TypeExpr.pointer(TypeExpr.ident("Inner"))),
                        tag='json:"list"',
                    ),
                    _field(
                        "ByName",
                        TypeExpr.map(TypeExpr.ident("string"), TypeExpr.ident("Inner")),
                        tag='json:"byName"',
                    ),
                ]
            ),
        ),
        TypeDeclaration(
            name="Inner",
            type_expr=TypeExpr.struct(
                [
                    _field("Name", TypeExpr.ident("string"), tag='json:"name"', doc="Name is the label."),
                    _field("Size", TypeExpr.ident("int"), tag='json:"size"'),
                ]
            ),
        ),
    )


def test_synthesize_recurses_into_records_and_elements() -> None:
    catalog = _nested_catalog()
    tree = from_data(
        {
            "list": [{"size": 2}],
            "byName": {"a": {"name": "x"}},
            "ptr": None,
        }
    )

    synthesize(tree, catalog.require(PKG, "Outer"), catalog)

    assert to_data(tree) == {
        "inner": {"name": "", "size": 0},
        "ptr": {"name": "", "size": 0},
        "list": [{"name": "", "size": 2}],
        "byName": {"a": {"name": "x", "size": 0}},
    }
    inner = tree.get("inner")
    assert inner.comment == "inner holds nested settings."
    assert inner.value.get("name").comment == "name is the label."
    assert tree.get("list").value.items[0].keys() == ["name", "size"]


def test_synthesize_rejects_unknown_nested_keys() -> None:
    catalog = _nested_catalog()
    tree = from_data({"list": [{"typo": 1}]})

    with pytest.raises(FieldNotFound) as excinfo:
        synthesize(tree, catalog.require(PKG, "Outer"), catalog)

    assert excinfo.value.type_name == f"{PKG}.Inner"


def test_self_referential_record_raises_cyclic_type() -> None:
    catalog = _catalog(
        TypeDeclaration(
            name="Node",
            type_expr=TypeExpr.struct(
                [
                    _field("Name", TypeExpr.ident("string")),
                    _field("Next", TypeExpr.pointer(TypeExpr.ident("Node"))),
                ]
            ),
        )
    )

    with pytest.raises(CyclicType) as excinfo:
        synthesize(MappingNode(), catalog.require(PKG, "Node"), catalog)

    assert excinfo.value.path == (f"{PKG}.Node", f"{PKG}.Node")


def test_self_referential_slices_are_bounded_by_data() -> None:
    catalog = _catalog(
        TypeDeclaration(
            name="Tree",
            type_expr=TypeExpr.struct(
                [
                    _field("Name", TypeExpr.ident("string")),
                    _field("Children", TypeExpr.slice(TypeExpr.ident("Tree"))),
                ]
            ),
        )
    )
    tree = from_data({"Children": [{"Name": "leaf"}]})

    synthesize(tree, catalog.require(PKG, "Tree"), catalog)

    assert to_data(tree) == {"Name": "", "Children": [{"Name": "leaf", "Children": []}]}


def test_field_comment_replaces_leading_go_name() -> None:
    field = FieldMetadata(
        name="Timeout",
        doc="Timeout bounds each request.",
        anonymous=False,
        json_required=True,
        json_property="timeout",
        type=BasicType("int"),
        type_name="int",
    )

    assert field_comment(field) == "timeout bounds each request."
    assert field_comment(replace(field, doc="Timeouts vary.")) == "Timeouts vary."


def test_sort_entries_is_stable_and_idempotent() -> None:
    catalog = _catalog(_type1())
    fields = catalog.require(PKG, "Type1").fields
    entries = [
        MappingEntry("Field4", ScalarNode([])),
        MappingEntry("extra", ScalarNode(1)),
        MappingEntry("Field1", ScalarNode(0)),
        MappingEntry("f2", ScalarNode("x")),
    ]

    ordered = sort_entries(fields, entries)

    assert [entry.key for entry in ordered] == ["Field1", "f2", "Field4", "extra"]
    assert sort_entries(fields, ordered) == ordered
