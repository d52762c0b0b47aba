"""Declaration index built from Python source.

The index is the reflection context for extraction: it parses every module
under a source root with :mod:`ast`, records module-level classes and type
aliases by their declared name, and answers lookups by exact name. Nothing
is imported or executed.

Field documentation is read the way Sphinx reads attribute documentation:
the string literal directly after a field, or a block of ``#:`` comments
directly above it. Tags use reST field syntax::

    port: int
    \"\"\"Port to listen on.

    :example: 8080
    :default: 8000
    \"\"\"
"""

from __future__ import annotations

import ast
import inspect
import logging
import re
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Union

from .errors import TypeNotFoundError

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"^:(?P<name>[\w-]+):(?:\s+(?P<text>.*))?$")
_ENUM_BASES = {"Enum", "StrEnum", "IntEnum", "Flag", "IntFlag"}
_SKIPPED_ANNOTATIONS = {"ClassVar", "KW_ONLY"}
_FIELD_CALLS = {"field", "Field"}
_BUILTIN_TYPES = {
    "str",
    "int",
    "float",
    "bool",
    "bytes",
    "list",
    "dict",
    "set",
    "frozenset",
    "tuple",
    "type",
    "object",
}


@dataclass
class DocComment:
    """Documentation attached to a class or field."""

    text: str | None = None
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ModuleDecl:
    """A parsed source file."""

    path: Path
    lines: list[str]
    imports: dict[str, str] = field(default_factory=dict)

    def resolve(self, name: str) -> str:
        """Map a local (possibly renamed) import to its declared name."""
        return self.imports.get(name, name)


@dataclass
class FieldDecl:
    """An annotated field in a class body."""

    name: str
    annotation: ast.expr
    module: ModuleDecl
    doc: DocComment
    value: ast.expr | None = None


@dataclass
class ClassDecl:
    """A module-level class declaration."""

    name: str
    module: ModuleDecl
    doc: DocComment
    bases: list[str]
    fields: list[FieldDecl]
    members: list[tuple[str, ast.expr]]


@dataclass
class AliasDecl:
    """A module-level type alias."""

    name: str
    module: ModuleDecl
    value: ast.expr


Declaration = Union[ClassDecl, AliasDecl]


class SchemaIndex:
    """Declarations found under a source root, keyed by declared name."""

    def __init__(self, declarations: dict[str, Declaration] | None = None) -> None:
        self.declarations: dict[str, Declaration] = dict(declarations or {})

    def add(self, declaration: Declaration) -> None:
        """Record *declaration*; the first one wins, except a class beats an alias."""
        existing = self.declarations.get(declaration.name)
        if isinstance(existing, AliasDecl) and isinstance(declaration, ClassDecl):
            logger.debug(
                "Class %s in %s replaces the alias in %s",
                declaration.name,
                declaration.module.path,
                existing.module.path,
            )
        elif existing is not None:
            logger.debug(
                "Ignoring %s in %s, already declared in %s",
                declaration.name,
                declaration.module.path,
                existing.module.path,
            )
            return
        self.declarations[declaration.name] = declaration

    def lookup(self, name: str) -> Declaration | None:
        """Return the declaration named *name*, if any."""
        return self.declarations.get(name)

    def find_type(self, name: str) -> ClassDecl:
        """Return the class declared as *name*.

        An alias whose value is a bare class name is followed. Raises
        :class:`TypeNotFoundError` when nothing matches.
        """
        seen: set[str] = set()
        current = name
        while current not in seen:
            seen.add(current)
            declaration = self.lookup(current)
            if isinstance(declaration, ClassDecl):
                logger.debug("Found type %s in source file %s", name, declaration.module.path)
                return declaration
            if isinstance(declaration, AliasDecl) and isinstance(declaration.value, ast.Name):
                current = declaration.module.resolve(declaration.value.id)
                continue
            break
        raise TypeNotFoundError(name)

    def is_enum(self, decl: ClassDecl) -> bool:
        """Whether *decl* derives from one of the :mod:`enum` base classes."""
        pending, seen = list(decl.bases), {decl.name}
        while pending:
            base = pending.pop()
            if base in _ENUM_BASES:
                return True
            parent = self.lookup(base)
            if isinstance(parent, ClassDecl) and parent.name not in seen:
                seen.add(parent.name)
                pending.extend(parent.bases)
        return False

    def enum_members(self, decl: ClassDecl) -> list[tuple[str, ast.expr]]:
        """Return the ``(name, value)`` pairs of an enum class."""
        return [(name, value) for name, value in decl.members if not name.startswith("_")]

    def iter_fields(self, decl: ClassDecl) -> Iterator[FieldDecl]:
        """Yield the fields of *decl*, inherited fields first."""
        ordered: dict[str, FieldDecl] = {}
        for fld in self._collect_fields(decl, set()):
            ordered[fld.name] = fld
        yield from ordered.values()

    def _collect_fields(self, decl: ClassDecl, active: set[str]) -> list[FieldDecl]:
        active = active | {decl.name}
        collected: list[FieldDecl] = []
        for base in decl.bases:
            parent = self.lookup(base)
            if isinstance(parent, ClassDecl) and parent.name not in active:
                collected.extend(self._collect_fields(parent, active))
        collected.extend(decl.fields)
        return collected


def load_index(source_root: str | Path) -> SchemaIndex:
    """Parse every Python module under *source_root* into a :class:`SchemaIndex`."""
    root = Path(source_root)
    if not root.is_dir():
        raise NotADirectoryError(f"source root '{root}' is not a directory")

    index = SchemaIndex()
    paths = sorted(root.rglob("*.py"))
    for path in paths:
        source = path.read_text(encoding="utf-8")
        for declaration in parse_module(source, path):
            index.add(declaration)
    logger.debug("Indexed %d declarations from %d files", len(index.declarations), len(paths))
    return index


def parse_module(source: str, path: str | Path = "<string>") -> list[Declaration]:
    """Return the module-level declarations in *source*."""
    tree = ast.parse(source, filename=str(path))
    module = ModuleDecl(path=Path(path), lines=source.splitlines())
    declarations: list[Declaration] = []

    for node in tree.body:
        if isinstance(node, ast.ImportFrom):
            for alias in node.names:
                if alias.asname:
                    module.imports[alias.asname] = alias.name
        elif isinstance(node, ast.ClassDef):
            declarations.append(_class_decl(node, module))
        elif isinstance(node, ast.Assign):
            if len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
                value = _alias_value(node.value)
                if value is not None:
                    declarations.append(AliasDecl(node.targets[0].id, module, value))
        elif isinstance(node, ast.AnnAssign):
            if (
                isinstance(node.target, ast.Name)
                and node.value is not None
                and _terminal_name(node.annotation) == "TypeAlias"
            ):
                declarations.append(AliasDecl(node.target.id, module, node.value))
        elif _is_type_statement(node):
            declarations.append(AliasDecl(node.name.id, module, node.value))

    return declarations


def parse_doc_comment(raw: str | None) -> DocComment:
    """Split documentation text into its description and reST field tags.

    A line ``:name: text`` starts a tag; indented lines after it continue the
    tag. The first occurrence of each tag wins.
    """
    if raw is None or not raw.strip():
        return DocComment()

    text_lines: list[str] = []
    tag_lines: dict[str, list[str]] = {}
    current: list[str] | None = None
    for line in inspect.cleandoc(raw).splitlines():
        match = _TAG_RE.match(line)
        if match:
            name = match["name"]
            if name in tag_lines:
                current = []
            else:
                current = tag_lines[name] = [match["text"] or ""]
            continue
        if current is not None and line[:1].isspace():
            current.append(line)
            continue
        current = None
        text_lines.append(line)

    tags = {name: _dedent_tag(lines) for name, lines in tag_lines.items()}
    text = "\n".join(text_lines).strip()
    return DocComment(text=text or None, tags=tags)


def field_call(value: ast.expr | None) -> ast.Call | None:
    """Return *value* if it is a ``field(...)`` or ``Field(...)`` call."""
    if isinstance(value, ast.Call) and _terminal_name(value.func) in _FIELD_CALLS:
        return value
    return None


def _dedent_tag(lines: list[str]) -> str:
    first, rest = lines[0], textwrap.dedent("\n".join(lines[1:]))
    return "\n".join(part for part in (first, rest) if part).strip()


def _class_decl(node: ast.ClassDef, module: ModuleDecl) -> ClassDecl:
    bases = [
        module.resolve(name)
        for name in (_terminal_name(base) for base in node.bases)
        if name is not None
    ]
    fields: list[FieldDecl] = []
    members: list[tuple[str, ast.expr]] = []
    body = node.body
    for position, stmt in enumerate(body):
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            if _terminal_name(_unsubscript(stmt.annotation)) in _SKIPPED_ANNOTATIONS:
                continue
            doc = _attribute_doc(body, position, module)
            fields.append(
                FieldDecl(
                    name=stmt.target.id,
                    annotation=stmt.annotation,
                    module=module,
                    doc=doc,
                    value=stmt.value,
                )
            )
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                if isinstance(target, ast.Name):
                    members.append((target.id, stmt.value))

    return ClassDecl(
        name=node.name,
        module=module,
        doc=parse_doc_comment(ast.get_docstring(node)),
        bases=bases,
        fields=fields,
        members=members,
    )


def _attribute_doc(body: list[ast.stmt], position: int, module: ModuleDecl) -> DocComment:
    if position + 1 < len(body):
        following = body[position + 1]
        if (
            isinstance(following, ast.Expr)
            and isinstance(following.value, ast.Constant)
            and isinstance(following.value.value, str)
        ):
            return parse_doc_comment(following.value.value)

    comment: list[str] = []
    lineno = body[position].lineno - 2
    while lineno >= 0:
        stripped = module.lines[lineno].strip()
        if not stripped.startswith("#:"):
            break
        comment.insert(0, stripped[2:])
        lineno -= 1
    if comment:
        return parse_doc_comment("\n".join(comment))
    return DocComment()


def _alias_value(value: ast.expr) -> ast.expr | None:
    if isinstance(value, (ast.Subscript, ast.BinOp)) and _is_type_expression(value):
        return value
    if isinstance(value, ast.Call) and _terminal_name(value.func) == "NewType":
        if len(value.args) == 2:
            return value.args[1]
    return None


def _is_type_expression(node: ast.expr) -> bool:
    """Whether *node* reads like a type, as opposed to a module constant.

    ``TIMEOUT = 60 * 5`` or ``URL = settings["url"]`` are not aliases.
    """
    if isinstance(node, ast.Constant):
        return node.value is None
    if isinstance(node, ast.BinOp):
        return (
            isinstance(node.op, ast.BitOr)
            and _is_type_expression(node.left)
            and _is_type_expression(node.right)
        )
    if isinstance(node, ast.Subscript):
        return _is_type_expression(node.value)
    name = _terminal_name(node)
    return name is not None and _is_type_name(name)


def _is_type_name(name: str) -> bool:
    if name in _BUILTIN_TYPES:
        return True
    # CapWords; ALL_CAPS names are constants
    return name[0].isupper() and not name.isupper()


def _is_type_statement(node: ast.stmt) -> bool:
    type_alias = getattr(ast, "TypeAlias", None)
    return type_alias is not None and isinstance(node, type_alias)


def _unsubscript(node: ast.expr) -> ast.expr:
    return node.value if isinstance(node, ast.Subscript) else node


def _terminal_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None
