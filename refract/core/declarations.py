"""Source declarations of service callables.

:class:`DeclarationResolver` correlates a runtime :class:`ServiceCallable`
with the ``def`` statement that declared it and extracts its parameter and
result field groups, their comments and the leading documentation.
:func:`expand_field` turns field groups into one-name-per-field records.

Correlation is a structured comparison of ``(enclosing qualname, bare
name)``: a method of ``Foo`` never matches a same-named method of
``FooBar``.
"""

from __future__ import annotations

import ast
import io
import linecache
import logging
import re
import tokenize
from dataclasses import dataclass, field
from typing import Any, Iterable

from refract.core.callables import ServiceCallable
from refract.core.docstrings import Docstring, parse_docstring
from refract.core.errors import DeclarationNotFound

logger = logging.getLogger("refract.declarations")

_QUALIFIER_RE = re.compile(r"\b(?:[A-Za-z_]\w*\.)+(?=[A-Za-z_])")


@dataclass
class FieldGroup:
    """One declared parameter or result position.

    Python declares every parameter separately, so parsed parameters carry a
    single name; results are never named.
    """

    names: list[str] = field(default_factory=list)
    annotation: ast.expr | None = None
    type_text: str = "Any"
    comment: str = ""
    doc: str = ""
    has_default: bool = False
    variadic: bool = False

    @property
    def is_pointer(self) -> bool:
        return _is_optional_node(self.annotation)


@dataclass
class NamedField:
    name: str
    group: FieldGroup


@dataclass
class DeclarationRecord:
    """Parsed metadata of one ``def``."""

    name: str
    qualname: str
    source_file: str
    lineno: int
    params: list[FieldGroup] = field(default_factory=list)
    results: list[FieldGroup] = field(default_factory=list)
    doc: str = ""
    source: str = ""

    @property
    def enclosing_qualname(self) -> str:
        return self.qualname.rpartition(".")[0]

    @property
    def summary(self) -> str:
        return self.doc.strip().split("\n", 1)[0].strip() if self.doc else ""


# ----------------------------------------------------------------------
# Field expansion
# ----------------------------------------------------------------------


def strip_qualifiers(text: str) -> str:
    """Drop module qualifiers: ``Optional[geometry.Circle]`` -> ``Optional[Circle]``."""
    return _QUALIFIER_RE.sub("", text)


def expand_field(group: FieldGroup | None, *, strip_pointer_qualifiers: bool = False) -> list[NamedField]:
    """Expand *group* into one :class:`NamedField` per declared name.

    A group without names yields a single field named after its printed
    type.
    """
    if group is None:
        return []
    if group.names:
        return [NamedField(name, group) for name in group.names]
    name = group.type_text
    if strip_pointer_qualifiers and group.is_pointer:
        name = strip_qualifiers(name)
    return [NamedField(name, group)]


def expand_fields(groups: Iterable[FieldGroup], *, strip_pointer_qualifiers: bool = False) -> list[NamedField]:
    out: list[NamedField] = []
    for group in groups:
        out.extend(expand_field(group, strip_pointer_qualifiers=strip_pointer_qualifiers))
    return out


# ----------------------------------------------------------------------
# Annotation helpers
# ----------------------------------------------------------------------


def _literal_annotation(node: ast.expr | None) -> ast.expr | None:
    """Parse string annotations (``"Optional[X]"``) into expressions."""
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            return ast.parse(node.value, mode="eval").body
        except SyntaxError:
            return node
    return node


def _annotation_text(node: ast.expr | None) -> str:
    if node is None:
        return "Any"
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return ast.unparse(node)


def _head_name(node: ast.expr) -> str:
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Name):
        return node.id
    return ""


def _is_none_node(node: ast.expr | None) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _is_optional_node(node: ast.expr | None) -> bool:
    node = _literal_annotation(node)
    if isinstance(node, ast.Subscript):
        return _head_name(node.value) == "Optional"
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _is_none_node(node.left) or _is_none_node(node.right) or _is_optional_node(node.left)
    return False


def _tuple_elements(node: ast.expr) -> list[ast.expr] | None:
    """Elements of a fixed-length ``tuple[...]`` annotation, else ``None``."""
    if not isinstance(node, ast.Subscript) or _head_name(node.value) not in ("tuple", "Tuple"):
        return None
    inner = node.slice
    elements = list(inner.elts) if isinstance(inner, ast.Tuple) else [inner]
    if any(isinstance(e, ast.Constant) and e.value is Ellipsis for e in elements):
        return None
    return elements


def _is_staticmethod(node: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
    return any(_head_name(d) == "staticmethod" for d in node.decorator_list)


# ----------------------------------------------------------------------
# Source parsing
# ----------------------------------------------------------------------

FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


class _FunctionIndexer(ast.NodeVisitor):
    """Index every ``def`` by ``(enclosing qualname, name)``; first wins."""

    def __init__(self) -> None:
        self.scope: list[str] = []
        self.in_class: list[bool] = [False]
        self.found: dict[tuple[str, str], tuple[FunctionNode, bool]] = {}

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self.scope.append(node.name)
        self.in_class.append(True)
        self.generic_visit(node)
        self.in_class.pop()
        self.scope.pop()

    def _visit_function(self, node: FunctionNode) -> None:
        self.found.setdefault((".".join(self.scope), node.name), (node, self.in_class[-1]))
        self.scope.extend([node.name, "<locals>"])
        self.in_class.append(False)
        self.generic_visit(node)
        self.in_class.pop()
        del self.scope[-2:]

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function


@dataclass
class _ParsedSource:
    path: str
    lines: list[str]
    functions: dict[tuple[str, str], tuple[FunctionNode, bool]]
    comments: dict[int, tuple[int, str]]

    def _is_full_line(self, lineno: int) -> bool:
        entry = self.comments.get(lineno)
        return entry is not None and not self.lines[lineno - 1][:entry[0]].strip()

    def comments_above(self, lineno: int, floor: int = 0) -> str:
        """Contiguous full-line comments directly above *lineno*."""
        collected: list[str] = []
        cursor = lineno - 1
        while cursor > floor and self._is_full_line(cursor):
            collected.append(self.comments[cursor][1])
            cursor -= 1
        return "\n".join(reversed(collected))

    def trailing_comment(self, arg: ast.arg, following: ast.arg | None) -> str:
        """Comment after *arg* when only its comma separates them."""
        line = arg.end_lineno or arg.lineno
        if following is not None and following.lineno == line:
            return ""
        entry = self.comments.get(line)
        end = arg.end_col_offset or 0
        if entry is None or entry[0] < end:
            return ""
        if self.lines[line - 1][end:entry[0]].strip() not in ("", ","):
            return ""
        return entry[1]

    def leading_comment(self, arg: ast.arg, func: FunctionNode) -> str:
        if arg.lineno == func.lineno or self.lines[arg.lineno - 1][:arg.col_offset].strip():
            return ""
        return self.comments_above(arg.lineno, floor=func.lineno)


def _scan_comments(source: str) -> dict[int, tuple[int, str]]:
    comments: dict[int, tuple[int, str]] = {}
    try:
        for tok in tokenize.generate_tokens(io.StringIO(source).readline):
            if tok.type == tokenize.COMMENT:
                comments[tok.start[0]] = (tok.start[1], tok.string.lstrip("#").strip())
    except (tokenize.TokenError, SyntaxError):
        logger.debug("Comment scan stopped early", exc_info=True)
    return comments


class DeclarationResolver:
    """Resolve :class:`DeclarationRecord` values for runtime callables.

    Parsed files are memoised for the lifetime of the resolver; create one
    per document build.
    """

    def __init__(self) -> None:
        self._sources: dict[str, _ParsedSource | None] = {}

    def resolve(self, call: ServiceCallable) -> DeclarationRecord:
        """Return the declaration of *call* or raise :class:`DeclarationNotFound`.

        The error is marked ``synthetic`` when the callable was compiled from
        a pseudo-file such as ``<string>``.
        """
        code = getattr(call.function, "__code__", None)
        if code is None:
            raise DeclarationNotFound(call.qualname, "callable has no code object")
        path = code.co_filename
        synthetic = path.startswith("<") and path.endswith(">")

        parsed = self._load(path, getattr(call.function, "__globals__", None))
        if parsed is None:
            raise DeclarationNotFound(call.qualname, f"source of {path} is unavailable", synthetic=synthetic)
        entry = parsed.functions.get((call.enclosing_qualname, call.bare_name))
        if entry is None:
            raise DeclarationNotFound(call.qualname, f"no declaration in {path}", synthetic=synthetic)
        node, in_class = entry
        return self._record(call.qualname, parsed, node, drop_receiver=in_class and not _is_staticmethod(node))

    def _load(self, path: str, module_globals: dict[str, Any] | None) -> _ParsedSource | None:
        if path in self._sources:
            return self._sources[path]
        parsed = None
        lines = linecache.getlines(path, module_globals)
        if lines:
            source = "".join(lines)
            try:
                tree = ast.parse(source, filename=path)
            except SyntaxError:
                logger.debug("Could not parse %s", path, exc_info=True)
            else:
                indexer = _FunctionIndexer()
                indexer.visit(tree)
                parsed = _ParsedSource(path, lines, indexer.found, _scan_comments(source))
                logger.debug("Parsed %s (%d functions)", path, len(indexer.found))
        self._sources[path] = parsed
        return parsed

    def _record(self, qualname: str, parsed: _ParsedSource, node: FunctionNode, *, drop_receiver: bool) -> DeclarationRecord:
        docstring = ast.get_docstring(node)
        sections = parse_docstring(docstring)
        if docstring is None:
            first = min([d.lineno for d in node.decorator_list] + [node.lineno])
            docstring = parsed.comments_above(first)
        return DeclarationRecord(
            name=node.name,
            qualname=qualname,
            source_file=parsed.path,
            lineno=node.lineno,
            params=_param_groups(parsed, node, sections, drop_receiver),
            results=_result_groups(node, sections),
            doc=docstring,
            source=ast.unparse(node),
        )


def _param_groups(parsed: _ParsedSource, node: FunctionNode, sections: Docstring, drop_receiver: bool) -> list[FieldGroup]:
    args = node.args
    positional = [*args.posonlyargs, *args.args]
    first_default = len(positional) - len(args.defaults)

    entries: list[tuple[ast.arg, bool, bool]] = [
        (arg, i >= first_default, False) for i, arg in enumerate(positional)
    ]
    if args.vararg is not None:
        entries.append((args.vararg, False, True))
    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        entries.append((arg, default is not None, False))
    if args.kwarg is not None:
        entries.append((args.kwarg, False, True))

    ordered = sorted((e[0] for e in entries), key=lambda a: (a.lineno, a.col_offset))
    following = {id(a): b for a, b in zip(ordered, ordered[1:])}

    if drop_receiver and positional:
        entries = entries[1:]

    groups: list[FieldGroup] = []
    for arg, has_default, variadic in entries:
        groups.append(FieldGroup(
            names=[arg.arg],
            annotation=arg.annotation,
            type_text=_annotation_text(arg.annotation),
            comment=parsed.trailing_comment(arg, following.get(id(arg))),
            doc=parsed.leading_comment(arg, node) or sections.params.get(arg.arg, ""),
            has_default=has_default,
            variadic=variadic,
        ))
    return groups


def _result_groups(node: FunctionNode, sections: Docstring) -> list[FieldGroup]:
    returns = node.returns
    if returns is None:
        return [FieldGroup(doc=sections.returns)]
    expr = _literal_annotation(returns)
    if _is_none_node(expr):
        return []
    elements = _tuple_elements(expr)
    if elements is None:
        return [FieldGroup(annotation=returns, type_text=_annotation_text(returns), doc=sections.returns)]
    return [
        FieldGroup(annotation=e, type_text=_annotation_text(e), doc=sections.returns)
        for e in elements
    ]
