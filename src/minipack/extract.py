# src/minipack/extract.py
"""Turn one JavaScript source file into dependency specifiers plus a
CommonJS body that can run inside a module factory.

The file is parsed with esprima. Only top-level import and export
declarations are touched, and they are edited by character range, so
comments, strings and template literals come out exactly as written.

Bindings stay live the way ES module bindings do:
- every export becomes a getter on `exports`, defined before the body runs
- every use of an imported name reads through the required module object

Files without import/export declarations are plain scripts (or CommonJS)
and come back unchanged with no specifiers.
"""

import json
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any, NamedTuple

import esprima
from esprima.error_handler import Error as EsprimaError

from .asset import ExtractedAsset
from .errors import ExtractionError
from .logs import get_app_logger


ESM_PROLOGUE = (
    '"use strict";\n'
    'Object.defineProperty(exports, "__esModule", { value: true });\n'
)

EXPORT_GETTER = (
    "Object.defineProperty(exports, {name}, "
    "{{ enumerable: true, get: function () {{ return {expr}; }} }});"
)

EXPORT_STAR = """\
Object.keys({tmp}).forEach(function (key) {{
  if (key === "default" || key === "__esModule") return;
  if (Object.prototype.hasOwnProperty.call(exports, key)) return;
  Object.defineProperty(exports, key, {{
    enumerable: true,
    get: function () {{ return {tmp}[key]; }},
  }});
}});"""

DEFAULT_LOCAL = "__minipack_default"
IMPORT_LOCAL_PREFIX = "__minipack_import_"

EXPORT_DEFAULT_HEAD = re.compile(r"export\s+default\b")

MODULE_DECLARATIONS = frozenset(
    {
        "ImportDeclaration",
        "ExportAllDeclaration",
        "ExportDefaultDeclaration",
        "ExportNamedDeclaration",
    }
)
FUNCTIONS = frozenset(
    {"FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"}
)
LOOPS_WITH_HEAD = frozenset({"ForStatement", "ForInStatement", "ForOfStatement"})


class _Edit(NamedTuple):
    start: int
    end: int
    text: str


class _Export(NamedTuple):
    name: str
    expr: str
    local: bool  # expr is a binding name of this module


def _q(value: str) -> str:
    """JS string literal for value."""
    return json.dumps(value)


# --- AST helpers ------------------------------------------------------------------


def _is_node(value: Any) -> bool:
    return isinstance(getattr(value, "type", None), str)


def _children(node: Any) -> Iterator[Any]:
    for value in vars(node).values():
        if isinstance(value, list):
            yield from (item for item in value if _is_node(item))
        elif _is_node(value):
            yield value


def _pattern_names(pattern: Any) -> Iterator[str]:
    """Names bound by a declaration target (identifier or destructuring)."""
    if pattern is None:
        return
    kind = pattern.type
    if kind == "Identifier":
        yield pattern.name
    elif kind == "ObjectPattern":
        for prop in pattern.properties:
            target = prop.argument if prop.type == "RestElement" else prop.value
            yield from _pattern_names(target)
    elif kind == "ArrayPattern":
        for element in pattern.elements:
            yield from _pattern_names(element)
    elif kind == "AssignmentPattern":
        yield from _pattern_names(pattern.left)
    elif kind == "RestElement":
        yield from _pattern_names(pattern.argument)


def _declared_names(declaration: Any) -> list[str]:
    if declaration.type == "VariableDeclaration":
        return [
            name
            for declarator in declaration.declarations
            for name in _pattern_names(declarator.id)
        ]
    return [declaration.id.name]


def _lexical_names(statements: list[Any]) -> set[str]:
    """let/const/class/function names declared directly in a statement list."""
    names: set[str] = set()
    for stmt in statements:
        if stmt.type == "VariableDeclaration" and stmt.kind != "var":
            names.update(_declared_names(stmt))
        elif stmt.type in ("FunctionDeclaration", "ClassDeclaration") and stmt.id:
            names.add(stmt.id.name)
    return names


def _var_names(node: Any) -> set[str]:
    """`var` names hoisted out of `node`, not looking into nested functions."""
    names: set[str] = set()
    stack = list(_children(node))
    while stack:
        child = stack.pop()
        if child.type in FUNCTIONS:
            continue
        if child.type == "VariableDeclaration" and child.kind == "var":
            names.update(_declared_names(child))
        stack.extend(_children(child))
    return names


def _scope_names(node: Any) -> set[str]:  # noqa: PLR0911
    """Names a node declares for everything beneath it."""
    kind = node.type
    if kind in FUNCTIONS:
        names = {n for param in node.params for n in _pattern_names(param)}
        if kind == "FunctionExpression" and node.id is not None:
            names.add(node.id.name)
        if node.body.type == "BlockStatement":
            names |= _lexical_names(node.body.body) | _var_names(node.body)
        return names
    if kind == "BlockStatement":
        return _lexical_names(node.body)
    if kind == "SwitchStatement":
        return _lexical_names([s for case in node.cases for s in case.consequent])
    if kind == "CatchClause":
        return set(_pattern_names(node.param))
    if kind in LOOPS_WITH_HEAD:
        head = node.init if kind == "ForStatement" else node.left
        if head is not None and head.type == "VariableDeclaration":
            return set(_declared_names(head)) if head.kind != "var" else set()
        return set()
    if kind == "ClassExpression" and node.id is not None:
        return {node.id.name}
    return set()


# --- rewriting --------------------------------------------------------------------


class _ModuleRewriter:
    """Rewrite the module declarations of one parsed ES module."""

    def __init__(self, path: Path, source: str) -> None:
        self.path = path
        self.source = source
        self.specifiers: list[str] = []
        self.requires: list[str] = []
        self.exports: list[_Export] = []
        # imported local name → expression that reads it
        self.bindings: dict[str, str] = {}
        self.edits: list[_Edit] = []
        self._tmp_counter = 0

    def _tmp(self) -> str:
        self._tmp_counter += 1
        return f"{IMPORT_LOCAL_PREFIX}{self._tmp_counter}"

    def _require(self, spec: str) -> str:
        self.specifiers.append(spec)
        return f"require({_q(spec)})"

    def _require_into_tmp(self, spec: str) -> str:
        tmp = self._tmp()
        self.requires.append(f"var {tmp} = {self._require(spec)};")
        return tmp

    def _remove(self, node: Any) -> None:
        start, end = node.range
        before = self.source[:start].rstrip()
        # keep a separator so the previous statement cannot run into the next one
        text = "" if not before or before[-1] in ";}" else ";"
        self.edits.append(_Edit(start, end, text))

    # --- module declarations ---

    def _import(self, stmt: Any) -> None:
        self._remove(stmt)
        spec = stmt.source.value
        if not stmt.specifiers:
            self.requires.append(f"{self._require(spec)};")
            return

        tmp = self._require_into_tmp(spec)
        for specifier in stmt.specifiers:
            local = specifier.local.name
            if specifier.type == "ImportNamespaceSpecifier":
                self.bindings[local] = tmp
            elif specifier.type == "ImportDefaultSpecifier":
                self.bindings[local] = f'({tmp}.__esModule ? {tmp}["default"] : {tmp})'
            else:
                self.bindings[local] = f"{tmp}[{_q(specifier.imported.name)}]"

    def _export_all(self, stmt: Any) -> None:
        self._remove(stmt)
        tmp = self._require_into_tmp(stmt.source.value)
        self.requires.append(EXPORT_STAR.format(tmp=tmp))

    def _export_named(self, stmt: Any) -> None:
        if stmt.source is not None:
            self._remove(stmt)
            tmp = self._require_into_tmp(stmt.source.value)
            for specifier in stmt.specifiers:
                expr = f"{tmp}[{_q(specifier.local.name)}]"
                self.exports.append(_Export(specifier.exported.name, expr, local=False))
            return

        if stmt.declaration is None:
            self._remove(stmt)
            for specifier in stmt.specifiers:
                self.exports.append(
                    _Export(specifier.exported.name, specifier.local.name, local=True)
                )
            return

        declaration = stmt.declaration
        self.edits.append(_Edit(stmt.range[0], declaration.range[0], ""))
        for name in _declared_names(declaration):
            self.exports.append(_Export(name, name, local=True))

    def _export_default(self, stmt: Any) -> None:
        declaration = stmt.declaration
        start, end = stmt.range
        if (
            declaration.type in ("FunctionDeclaration", "ClassDeclaration")
            and declaration.id is not None
        ):
            self.edits.append(_Edit(start, declaration.range[0], ""))
            self.exports.append(_Export("default", declaration.id.name, local=True))
            return

        head = EXPORT_DEFAULT_HEAD.match(self.source, start)
        head_end = head.end() if head else declaration.range[0]
        self.edits.append(_Edit(start, head_end, f"var {DEFAULT_LOCAL} ="))
        if not self.source[start:end].rstrip().endswith(";"):
            self.edits.append(_Edit(end, end, ";"))
        self.exports.append(_Export("default", DEFAULT_LOCAL, local=True))

    # --- use sites of imported names ---

    def _reference(self, ident: Any, shadowed: frozenset[str], *, call: bool) -> None:
        name = ident.name
        if name not in self.bindings or name in shadowed:
            return
        expr = self.bindings[name]
        # (0, f)() so an imported function is not called with the module as `this`
        text = f"(0, {expr})" if call else expr
        self.edits.append(_Edit(ident.range[0], ident.range[1], text))

    def _walk(self, node: Any, shadowed: frozenset[str]) -> None:  # noqa: C901, PLR0911, PLR0912
        declared = _scope_names(node) & self.bindings.keys()
        if declared:
            shadowed = shadowed | declared
        kind = node.type

        if kind == "Identifier":
            self._reference(node, shadowed, call=False)
            return
        if kind in ("BreakStatement", "ContinueStatement", "MetaProperty"):
            return
        if kind == "LabeledStatement":
            self._walk(node.body, shadowed)
            return
        if kind == "MemberExpression" and not node.computed:
            self._walk(node.object, shadowed)
            return
        if kind == "Property":
            value = node.value
            if (
                node.shorthand
                and value.type == "Identifier"
                and value.name in self.bindings
                and value.name not in shadowed
            ):
                start, end = node.range
                text = f"{value.name}: {self.bindings[value.name]}"
                self.edits.append(_Edit(start, end, text))
                return
            if node.computed:
                self._walk(node.key, shadowed)
            self._walk(value, shadowed)
            return
        if kind == "MethodDefinition":
            if node.computed:
                self._walk(node.key, shadowed)
            self._walk(node.value, shadowed)
            return
        if kind == "CallExpression" and node.callee.type == "Identifier":
            self._reference(node.callee, shadowed, call=True)
            for argument in node.arguments:
                self._walk(argument, shadowed)
            return
        if kind == "TaggedTemplateExpression" and node.tag.type == "Identifier":
            self._reference(node.tag, shadowed, call=True)
            self._walk(node.quasi, shadowed)
            return

        for child in _children(node):
            self._walk(child, shadowed)

    # --- output ---

    def _apply_edits(self) -> str:
        parts: list[str] = []
        pos = 0
        for edit in sorted(self.edits, key=lambda e: (e.start, e.end)):
            if edit.start < pos:
                xmsg = f"overlapping rewrites at offset {edit.start}"
                raise ExtractionError(self.path, xmsg)
            parts.append(self.source[pos : edit.start])
            parts.append(edit.text)
            pos = edit.end
        parts.append(self.source[pos:])
        return "".join(parts)

    def rewrite(self, program: Any) -> str:
        handlers = {
            "ImportDeclaration": self._import,
            "ExportAllDeclaration": self._export_all,
            "ExportNamedDeclaration": self._export_named,
            "ExportDefaultDeclaration": self._export_default,
        }
        # all declarations first: imports are hoisted, so any statement may use them
        for stmt in program.body:
            if stmt.type in handlers:
                handlers[stmt.type](stmt)

        for stmt in program.body:
            if stmt.type in ("ImportDeclaration", "ExportAllDeclaration"):
                continue
            if stmt.type in MODULE_DECLARATIONS:
                if stmt.declaration is not None:
                    self._walk(stmt.declaration, frozenset())
                continue
            self._walk(stmt, frozenset())

        getters = [
            EXPORT_GETTER.format(
                name=_q(export.name),
                expr=self.bindings.get(export.expr, export.expr)
                if export.local
                else export.expr,
            )
            for export in self.exports
        ]
        header = "\n".join([*getters, *self.requires])
        body = self._apply_edits()
        return ESM_PROLOGUE + (header + "\n" if header else "") + body


def transform_source(path: Path, source: str) -> ExtractedAsset:
    """Rewrite ES module syntax in `source` to CommonJS.

    Source that is not a valid module is retried as a classic script, which
    passes through untouched. Source that is neither raises.

    Raises:
        ExtractionError: when the source does not parse.
    """
    if source.startswith("\ufeff"):
        source = source[1:]

    try:
        program = esprima.parseModule(source, {"range": True})
    except EsprimaError as module_error:
        try:
            esprima.parseScript(source)
        except EsprimaError:
            xmsg = f"malformed source: {module_error}"
            raise ExtractionError(path, xmsg) from module_error
        return ExtractedAsset(specifiers=[], code=source)

    if not any(stmt.type in MODULE_DECLARATIONS for stmt in program.body):
        return ExtractedAsset(specifiers=[], code=source)

    rewriter = _ModuleRewriter(path, source)
    code = rewriter.rewrite(program)
    return ExtractedAsset(specifiers=rewriter.specifiers, code=code)


def extract_asset(path: Path) -> ExtractedAsset:
    """Read `path` and return its specifiers and CommonJS body.

    Raises:
        ExtractionError: when the file cannot be read or decoded, or does
            not parse as JavaScript.
    """
    logger = get_app_logger()
    try:
        source = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ExtractionError(path, "file not found") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(path, f"cannot read file: {e}") from e

    extracted = transform_source(Path(path), source)
    logger.trace(
        f"[extract] {path}: {len(extracted.specifiers)} specifier(s)"
        f" {extracted.specifiers}"
    )
    return extracted
