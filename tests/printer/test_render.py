"""Tests for prettyconf.printer.render."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from prettyconf.errors import FieldNotFound, TypeNotFound
from prettyconf.printer.render import render
from prettyconf.printer.tree import from_data
from tests._fixtures.go_sources import PKG1, TOP_LEVEL, TOP_LEVEL_RENDERED
from tests._fixtures.module_builder import ModuleBuilder

INSTANCE = {
    "a": {"enested": {"f": "somestring"}, "d": 5},
    "cnocomment": {"h": "something new"},
}


def test_render_top_level_document(module_builder: ModuleBuilder) -> None:
    module_builder.write({"config/types.go": TOP_LEVEL})
    sink = io.StringIO()

    text = render(
        INSTANCE,
        module_builder.provider(),
        sink,
        package=module_builder.package("config"),
        type_name="TopLevel",
    )

    assert text == TOP_LEVEL_RENDERED
    assert sink.getvalue() == TOP_LEVEL_RENDERED


def test_render_writes_path_sink_and_accepts_trees(
    tmp_path: Path, module_builder: ModuleBuilder
) -> None:
    module_builder.write({"config/types.go": TOP_LEVEL})
    output = tmp_path / "out.yaml"

    text = render(
        from_data(INSTANCE),
        module_builder.provider(),
        output,
        package=module_builder.package("config"),
        type_name="TopLevel",
        indent=4,
        root_comment=False,
    )

    assert output.read_text(encoding="utf-8") == text
    assert text.startswith("# a is field for AStruct.\na:\n    # enested comment.\n")


def test_render_pkg1_type_with_embedded_record(module_builder: ModuleBuilder) -> None:
    module_builder.write({"pkg1/file1.go": PKG1})

    text = render(
        {"Field1": 0, "f2": "x"},
        module_builder.provider(),
        None,
        package=module_builder.package("pkg1"),
        type_name="Type1",
    )

    lines = text.splitlines()
    assert lines[:3] == [
        "# Type1 is a normal type",
        "# with a single field and a description.",
        "",
    ]
    assert "# Some doc." in lines
    keys = [line.split(":", 1)[0] for line in lines if line and not line.startswith(("#", " "))]
    assert keys == ["Field1", "f2", "Field4", "f5", "Type5", "t5s"]
    assert "Field4: []" in lines
    assert lines[lines.index("Field4: []") - 1] == "# Even more doc."
    assert "  t5: 0" in lines


def test_render_unknown_type_writes_nothing(tmp_path: Path, module_builder: ModuleBuilder) -> None:
    module_builder.write({"config/types.go": TOP_LEVEL})
    output = tmp_path / "out.yaml"

    with pytest.raises(TypeNotFound):
        render({}, module_builder.provider(), output, package=module_builder.package("config"), type_name="Nope")

    assert not output.exists()


def test_render_unknown_field_writes_nothing(module_builder: ModuleBuilder) -> None:
    module_builder.write({"config/types.go": TOP_LEVEL})
    sink = io.StringIO()

    with pytest.raises(FieldNotFound):
        render(
            {"a": {"unknown": 1}},
            module_builder.provider(),
            sink,
            package=module_builder.package("config"),
            type_name="TopLevel",
        )

    assert sink.getvalue() == ""
