"""Tree-sitter powered Go declaration provider."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from ..errors import ConfigError, MalformedAnnotation, PackageNotFound
from ..logging import get_logger
from .build_constraints import BuildContext
from .declarations import (
    DeclarationProvider,
    FieldDeclaration,
    PackageDeclarations,
    TypeDeclaration,
    TypeExpr,
)
from .tags import unquote

_MODULE_DIRECTIVE = re.compile(r"^module\s+(\S+)", re.MULTILINE)
_DIRECTIVE = re.compile(r"^(line |extern |export |[a-z0-9]+:[a-z0-9])")
_MAJOR_VERSION = re.compile(r"^v[0-9]+$")
_IDENTIFIER_PREFIX = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*")

_TYPE_KINDS = {
    "interface_type": "interface",
    "function_type": "func",
    "channel_type": "chan",
    "generic_type": "generic",
}

_GO_LANGUAGE: Language | None = None


def _go_language() -> Language:
    global _GO_LANGUAGE
    if _GO_LANGUAGE is None:
        _GO_LANGUAGE = Language(tree_sitter_go.language())
    return _GO_LANGUAGE


@dataclass(frozen=True)
class ModuleRoot:
    """Maps an import path prefix to the directory holding its sources."""

    path: str
    directory: Path


@dataclass(frozen=True)
class _SourceFile:
    path: Path
    source: bytes
    root: Node
    package: str
    doc: str


def find_module(start: Path) -> ModuleRoot:
    """Locate the enclosing ``go.mod`` and return its module root."""
    current = start.expanduser().resolve()
    for candidate in (current, *current.parents):
        go_mod = candidate / "go.mod"
        if not go_mod.is_file():
            continue
        match = _MODULE_DIRECTIVE.search(go_mod.read_text(encoding="utf-8"))
        if match is None:
            raise ConfigError(f"{go_mod} has no module directive")
        return ModuleRoot(path=match.group(1).strip('"'), directory=candidate)
    raise ConfigError(f"no go.mod found in {start} or its parents")


class GoSourceProvider(DeclarationProvider):
    """Reads package declarations straight from ``.go`` source files."""

    def __init__(
        self,
        modules: Sequence[ModuleRoot],
        *,
        goroot: Path | None = None,
        vendor: bool = True,
        build: BuildContext | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.modules = sorted(modules, key=lambda module: len(module.path), reverse=True)
        self.goroot = goroot
        self.vendor = vendor
        self.build = build or BuildContext.default()
        self.logger = logger or get_logger("loader.go")
        self._parser: Parser | None = None
        self._packages: Dict[str, PackageDeclarations] = {}
        self._package_names: Dict[str, Optional[str]] = {}

    @classmethod
    def for_module(
        cls,
        directory: Path,
        *,
        goroot: Path | None = None,
        vendor: bool = True,
        build: BuildContext | None = None,
    ) -> "GoSourceProvider":
        return cls([find_module(directory)], goroot=goroot, vendor=vendor, build=build)

    def resolve_directory(self, package_path: str) -> Path:
        """Return the source directory of ``package_path``.

        Raises:
          PackageNotFound: If no module root, vendor tree or GOROOT holds it.
        """
        for module in self.modules:
            relative = _relative_to_module(package_path, module.path)
            if relative is None:
                continue
            candidate = module.directory / relative if relative else module.directory
            if _has_go_files(candidate):
                return candidate
        if self.vendor:
            for module in self.modules:
                candidate = module.directory / "vendor" / package_path
                if _has_go_files(candidate):
                    return candidate
        if self.goroot is not None:
            candidate = self.goroot / "src" / package_path
            if _has_go_files(candidate):
                return candidate
        raise PackageNotFound(package_path)

    def load(self, package_path: str) -> PackageDeclarations:
        cached = self._packages.get(package_path)
        if cached is not None:
            return cached

        directory = self.resolve_directory(package_path)
        self.logger.debug("parsing package %s from %s", package_path, directory)
        files = self._parse_directory(directory)
        package_name = _choose_package_name(package_path, files)
        package_doc = ""
        types: List[TypeDeclaration] = []
        for file in files:
            if file.package != package_name:
                self.logger.debug(
                    "skipping %s: package %s is not %s", file.path, file.package, package_name
                )
                continue
            if file.doc and not package_doc:
                package_doc = file.doc
            imports = self._imports(file.root, file.source)
            types.extend(self._type_declarations(file.root, file.source, imports))

        declarations = PackageDeclarations(
            path=package_path,
            name=package_name,
            doc=package_doc,
            types=tuple(types),
        )
        self._packages[package_path] = declarations
        return declarations

    # ------------------------------------------------------------------
    # Internal helpers

    def _get_parser(self) -> Parser:
        if self._parser is None:
            self._parser = Parser(_go_language())
        return self._parser

    def _parse_directory(self, directory: Path) -> List[_SourceFile]:
        """Parse the files of ``directory`` that belong to the target build."""
        files: List[_SourceFile] = []
        for path in _source_files(directory):
            if not self.build.matches_file_name(path.name):
                self.logger.debug("skipping %s: excluded by file name for %s", path, self._target())
                continue
            source = path.read_bytes()
            if not self.build.allows(source):
                self.logger.debug("skipping %s: excluded by build constraints for %s", path, self._target())
                continue
            self.logger.debug("parsing file %s", path)
            root = self._get_parser().parse(source).root_node
            name, doc = _package_clause(root, source)
            if not name:
                continue
            files.append(_SourceFile(path=path, source=source, root=root, package=name, doc=doc))
        return files

    def _target(self) -> str:
        return f"{self.build.goos}/{self.build.goarch}"

    def _package_name(self, package_path: str) -> Optional[str]:
        if package_path in self._package_names:
            return self._package_names[package_path]
        name: Optional[str] = None
        try:
            directory = self.resolve_directory(package_path)
        except PackageNotFound:
            directory = None
        if directory is not None:
            name = _choose_package_name(package_path, self._parse_directory(directory)) or None
        self._package_names[package_path] = name
        return name

    def _imports(self, root: Node, source: bytes) -> Dict[str, str]:
        imports: Dict[str, str] = {}
        unnamed: List[str] = []
        for declaration in root.named_children:
            if declaration.type != "import_declaration":
                continue
            for spec in _descendants_of_type(declaration, "import_spec"):
                path_node = spec.child_by_field_name("path")
                if path_node is None:
                    continue
                path = _string_literal(path_node, source)
                name_node = spec.child_by_field_name("name")
                if name_node is None:
                    unnamed.append(path)
                elif name_node.type == "package_identifier":
                    imports[_node_text(name_node, source)] = path
        for path in unnamed:
            name = self._package_name(path)
            candidates = [name] if name else _assumed_names(path)
            for candidate in candidates:
                imports.setdefault(candidate, path)
        return imports

    def _type_declarations(
        self, root: Node, source: bytes, imports: Dict[str, str]
    ) -> List[TypeDeclaration]:
        declarations: List[TypeDeclaration] = []
        for declaration in root.named_children:
            if declaration.type != "type_declaration":
                continue
            specs = [
                child
                for child in declaration.named_children
                if child.type in {"type_spec", "type_alias"}
            ]
            grouped = any(child.type == "(" for child in declaration.children)
            declaration_doc = _doc_comment(declaration, source)
            for spec in specs:
                name_node = spec.child_by_field_name("name")
                type_node = spec.child_by_field_name("type")
                if name_node is None or type_node is None:
                    continue
                doc = _doc_comment(spec, source) if grouped else ""
                if not doc and len(specs) == 1:
                    doc = declaration_doc
                declarations.append(
                    TypeDeclaration(
                        name=_node_text(name_node, source),
                        type_expr=self._type_expr(type_node, source, imports),
                        doc=doc,
                        alias=spec.type == "type_alias",
                        generic=spec.child_by_field_name("type_parameters") is not None,
                    )
                )
        return declarations

    def _type_expr(self, node: Node, source: bytes, imports: Dict[str, str]) -> TypeExpr:
        kind = node.type
        text = " ".join(_node_text(node, source).split())
        if kind == "type_identifier":
            return TypeExpr(kind="ident", text=text, name=text)
        if kind == "qualified_type":
            package_node = node.child_by_field_name("package")
            name_node = node.child_by_field_name("name")
            qualifier = _node_text(package_node, source) if package_node else ""
            return TypeExpr(
                kind="qualified",
                text=text,
                name=_node_text(name_node, source) if name_node else "",
                qualifier=qualifier,
                package=imports.get(qualifier, ""),
            )
        if kind in {"pointer_type", "parenthesized_type"}:
            inner = _type_children(node)
            if not inner:
                return TypeExpr(kind=kind, text=text)
            elem = self._type_expr(inner[0], source, imports)
            return TypeExpr.pointer(elem) if kind == "pointer_type" else elem
        if kind in {"slice_type", "array_type", "implicit_length_array_type"}:
            element = node.child_by_field_name("element")
            if element is None:
                return TypeExpr(kind=kind, text=text)
            elem = self._type_expr(element, source, imports)
            if kind == "slice_type":
                return TypeExpr.slice(elem)
            length = node.child_by_field_name("length")
            return TypeExpr.array(_node_text(length, source) if length else "...", elem)
        if kind == "map_type":
            key = node.child_by_field_name("key")
            value = node.child_by_field_name("value")
            if key is None or value is None:
                return TypeExpr(kind=kind, text=text)
            return TypeExpr.map(
                self._type_expr(key, source, imports),
                self._type_expr(value, source, imports),
            )
        if kind == "struct_type":
            fields: Tuple[FieldDeclaration, ...] = ()
            for child in node.named_children:
                if child.type == "field_declaration_list":
                    fields = tuple(self._field_declarations(child, source, imports))
            return TypeExpr.struct(fields, text=text)
        return TypeExpr(kind=_TYPE_KINDS.get(kind, kind), text=text)

    def _field_declarations(
        self, field_list: Node, source: bytes, imports: Dict[str, str]
    ) -> List[FieldDeclaration]:
        fields: List[FieldDeclaration] = []
        for child in field_list.named_children:
            if child.type != "field_declaration":
                continue
            type_node = child.child_by_field_name("type")
            if type_node is None:
                continue
            type_expr = self._type_expr(type_node, source, imports)
            names = tuple(_node_text(name, source) for name in child.children_by_field_name("name"))
            embedded = not names
            if embedded:
                if any(token.type == "*" for token in child.children):
                    type_expr = TypeExpr.pointer(type_expr)
                names = (_embedded_name(type_expr),)
            tag_node = child.child_by_field_name("tag")
            fields.append(
                FieldDeclaration(
                    names=names,
                    type_expr=type_expr,
                    tag=_tag_value(tag_node, source) if tag_node is not None else "",
                    doc=_doc_comment(child, source),
                    embedded=embedded,
                )
            )
        return fields


def _relative_to_module(package_path: str, module_path: str) -> Optional[str]:
    if not module_path:
        return package_path
    if package_path == module_path:
        return ""
    if package_path.startswith(module_path + "/"):
        return package_path[len(module_path) + 1 :]
    return None


def _choose_package_name(package_path: str, files: Sequence[_SourceFile]) -> str:
    """Pick the package clause shared by the files that make up the package.

    ``documentation`` files never decide. A name matching the import path
    wins, then the name most files declare, then the first one seen.
    """
    counts = Counter(file.package for file in files if file.package != "documentation")
    if not counts:
        return ""
    for name in _assumed_names(package_path):
        if name in counts:
            return name
    return counts.most_common(1)[0][0]


def _source_files(directory: Path) -> List[Path]:
    return sorted(
        path
        for path in directory.glob("*.go")
        if path.is_file() and not path.name.endswith("_test.go")
    )


def _has_go_files(directory: Path) -> bool:
    return directory.is_dir() and bool(_source_files(directory))


def _node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _type_children(node: Node) -> List[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def _descendants_of_type(node: Node, node_type: str) -> List[Node]:
    found: List[Node] = []
    for child in node.named_children:
        if child.type == node_type:
            found.append(child)
        else:
            found.extend(_descendants_of_type(child, node_type))
    return found


def _package_clause(root: Node, source: bytes) -> Tuple[str, str]:
    for child in root.named_children:
        if child.type != "package_clause":
            continue
        for identifier in child.named_children:
            if identifier.type == "package_identifier":
                return _node_text(identifier, source), _doc_comment(child, source)
        return "", _doc_comment(child, source)
    return "", ""


def _string_literal(node: Node, source: bytes) -> str:
    text = _node_text(node, source)
    if node.type == "raw_string_literal":
        return text[1:-1].replace("\r", "")
    return unquote(text)


def _tag_value(node: Node, source: bytes) -> str:
    try:
        return _string_literal(node, source)
    except ValueError as exc:
        raise MalformedAnnotation(_node_text(node, source), str(exc)) from exc


def _embedded_name(type_expr: TypeExpr) -> str:
    if type_expr.kind == "pointer" and type_expr.elem is not None:
        type_expr = type_expr.elem
    if type_expr.name:
        return type_expr.name
    base = type_expr.text.lstrip("*").split("[", 1)[0]
    return base.rsplit(".", 1)[-1]


def _assumed_names(package_path: str) -> List[str]:
    segments = package_path.split("/")
    names = [segments[-1]]
    if _MAJOR_VERSION.match(segments[-1]) and len(segments) > 1:
        names.append(segments[-2])
    assumed: List[str] = []
    for name in names:
        name = name[3:] if name.startswith("go-") else name
        match = _IDENTIFIER_PREFIX.match(name)
        if match:
            assumed.append(match.group(0))
    return assumed


def _doc_comment(node: Node, source: bytes) -> str:
    """Return the text of the comment group directly above ``node``."""
    comments: List[Node] = []
    expected_row = node.start_point[0]
    sibling = node.prev_named_sibling
    while sibling is not None and sibling.type == "comment" and sibling.end_point[0] == expected_row - 1:
        comments.append(sibling)
        expected_row = sibling.start_point[0]
        sibling = sibling.prev_named_sibling
    # A comment sharing its line with an earlier token, such as the previous
    # field or an opening brace, is a line comment and not part of the doc.
    if comments:
        previous = comments[-1].prev_sibling
        # Newline terminators end on the following row.
        while previous is not None and previous.type == "\n":
            previous = previous.prev_sibling
        if previous is not None and previous.end_point[0] == comments[-1].start_point[0]:
            comments.pop()
    comments.reverse()
    return comment_text([_node_text(comment, source) for comment in comments])


def comment_text(comments: Sequence[str]) -> str:
    """Strip comment markers the way Go's ``CommentGroup.Text`` does."""
    lines: List[str] = []
    for raw in comments:
        if raw.startswith("//"):
            body = raw[2:]
            if _DIRECTIVE.match(body):
                continue
            if body.startswith(" "):
                body = body[1:]
            lines.append(body)
        elif raw.startswith("/*"):
            lines.extend(raw[2:-2].split("\n"))
    cleaned: List[str] = []
    for line in lines:
        line = line.rstrip()
        if not line and (not cleaned or not cleaned[-1]):
            continue
        cleaned.append(line)
    while cleaned and not cleaned[-1]:
        cleaned.pop()
    return "\n".join(cleaned)


__all__ = ["GoSourceProvider", "ModuleRoot", "comment_text", "find_module"]
