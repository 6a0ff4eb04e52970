"""Tests for prettyconf.loader.catalog."""

from __future__ import annotations

import pytest

from prettyconf.errors import TypeNotFound
from prettyconf.loader.declarations import (
    FieldDeclaration,
    PackageDeclarations,
    StaticProvider,
    TypeDeclaration,
    TypeExpr,
)
from prettyconf.loader.extractor import extract
from prettyconf.models import BasicType, MapType, NamedType, PointerType, SliceType

PKG = "example.com/app"


def _catalog():
    declarations = PackageDeclarations(
        path=PKG,
        name="app",
        doc="Package app.",
        types=(
            TypeDeclaration(
                name="Item",
                type_expr=TypeExpr.struct(
                    [FieldDeclaration(names=("ID",), type_expr=TypeExpr.ident("int"), tag='json:"id"')]
                ),
                doc="Item doc.",
            ),
            TypeDeclaration(
                name="Opaque",
                type_expr=TypeExpr.struct(
                    [FieldDeclaration(names=("hidden",), type_expr=TypeExpr.ident("int"))]
                ),
            ),
            TypeDeclaration(name="Items", type_expr=TypeExpr.slice(TypeExpr.ident("Item"))),
            TypeDeclaration(
                name="Config",
                type_expr=TypeExpr.struct(
                    [
                        FieldDeclaration(names=("One",), type_expr=TypeExpr.pointer(TypeExpr.ident("Item"))),
                        FieldDeclaration(names=("Many",), type_expr=TypeExpr.ident("Items")),
                        FieldDeclaration(
                            names=("ByName",),
                            type_expr=TypeExpr.map(TypeExpr.ident("string"), TypeExpr.ident("Item")),
                        ),
                        FieldDeclaration(names=("Blob",), type_expr=TypeExpr.ident("Opaque")),
                    ]
                ),
            ),
        ),
    )
    return extract([PKG], StaticProvider([declarations]))


def test_catalog_lookup_and_require() -> None:
    catalog = _catalog()

    assert catalog.lookup(PKG, "Item").doc == "Item doc."
    assert catalog.lookup(PKG, "Opaque") is None
    assert catalog.package(PKG).doc == "Package app."
    assert catalog.package("example.com/other") is None
    with pytest.raises(TypeNotFound) as excinfo:
        catalog.require(PKG, "Missing")
    assert str(excinfo.value) == f"type {PKG}.Missing could not be found"


def test_catalog_record_and_element_types() -> None:
    catalog = _catalog()
    item = catalog.require(PKG, "Item")

    assert catalog.record_type(NamedType(PKG, "Item")) == item
    assert catalog.record_type(PointerType(NamedType(PKG, "Item"))) == item
    assert catalog.record_type(BasicType("int")) is None
    assert catalog.record_type(NamedType(PKG, "Items")) is None
    assert catalog.record_type(NamedType(PKG, "Opaque")).fields == ()

    assert catalog.element_record_type(NamedType(PKG, "Items")) == item
    assert catalog.element_record_type(SliceType(NamedType(PKG, "Item"))) == item
    assert catalog.element_record_type(MapType(BasicType("string"), NamedType(PKG, "Item"))) == item
    assert catalog.element_record_type(SliceType(BasicType("int"))) is None


def test_catalog_underlying_types() -> None:
    catalog = _catalog()

    assert catalog.underlying(NamedType(PKG, "Items")) == SliceType(NamedType(PKG, "Item"))
    assert catalog.underlying(BasicType("bool")) == BasicType("bool")
    with pytest.raises(TypeNotFound):
        catalog.underlying(NamedType(PKG, "Unknown"))


def test_catalog_as_dict() -> None:
    data = _catalog().as_dict()

    assert data["dependencies"] == []
    package = data["packages"][0]
    assert package["path"] == PKG
    assert [entry["name"] for entry in package["types"]] == ["Item", "Config"]
    assert package["types"][0]["fields"] == [
        {
            "name": "ID",
            "property": "id",
            "required": True,
            "anonymous": False,
            "type": "int",
            "doc": "",
        }
    ]
