"""Classification of field annotations into documentable shapes."""

from __future__ import annotations

import ast
import json
from dataclasses import dataclass
from typing import Mapping

from . import model
from .schema import AliasDecl, ClassDecl, ModuleDecl, SchemaIndex

PRIMITIVES = {
    "str": "string",
    "int": "number",
    "float": "number",
    "bool": "boolean",
    "None": "null",
    "NoneType": "null",
}
MAPPINGS = {"dict", "Dict", "Mapping", "MutableMapping", "OrderedDict", "object"}
SEQUENCES = {
    "list",
    "List",
    "Sequence",
    "MutableSequence",
    "Iterable",
    "tuple",
    "Tuple",
    "set",
    "Set",
    "frozenset",
    "FrozenSet",
}
WRAPPERS = {"Annotated", "Required", "NotRequired", "ReadOnly", "Final"}


@dataclass(frozen=True)
class Classification:
    """A classified annotation and the class names it references, in order."""

    type_info: model.TypeInfo
    referenced: tuple[str, ...] = ()


def classify(
    annotation: ast.expr,
    module: ModuleDecl,
    index: SchemaIndex,
    generic_fallbacks: Mapping[str, str] | None = None,
) -> Classification:
    """Classify *annotation* as declared in *module*.

    Classes found in *index* become :class:`model.ObjectRef` values and are
    reported in :attr:`Classification.referenced` so the caller can document
    them. Subscripted generics that cannot be destructured map through
    *generic_fallbacks* (origin name to fixed section name).
    """
    classifier = _Classifier(index, generic_fallbacks or {})
    return classifier.classify(annotation, module)


class _Classifier:
    def __init__(self, index: SchemaIndex, generic_fallbacks: Mapping[str, str]) -> None:
        self.index = index
        self.generic_fallbacks = generic_fallbacks
        self.referenced: list[str] = []
        self._aliases: set[str] = set()

    def classify(self, annotation: ast.expr, module: ModuleDecl) -> Classification:
        type_info = self._classify(annotation, module)
        return Classification(type_info, tuple(self.referenced))

    def _classify(self, node: ast.expr, module: ModuleDecl) -> model.TypeInfo:
        if isinstance(node, ast.Constant):
            if node.value is None:
                return model.Primitive("null")
            if isinstance(node.value, str):
                return self._forward_ref(node.value, module)
            return model.Unknown()
        if isinstance(node, ast.Subscript):
            return self._subscript(node, module)
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            return _union([self._classify(node.left, module), self._classify(node.right, module)])
        name = _name_of(node, module)
        if name is None:
            return model.Unknown()
        return self._named(name)

    def _named(self, name: str) -> model.TypeInfo:
        if name in PRIMITIVES:
            return model.Primitive(PRIMITIVES[name])

        declaration = self.index.lookup(name)
        if isinstance(declaration, ClassDecl):
            if self.index.is_enum(declaration):
                return self._enum(declaration)
            if declaration.name not in self.referenced:
                self.referenced.append(declaration.name)
            return model.ObjectRef(model.canonical_name(declaration.name))
        if isinstance(declaration, AliasDecl):
            if name in self._aliases:
                return model.Unknown()
            self._aliases.add(name)
            try:
                return self._classify(declaration.value, declaration.module)
            finally:
                self._aliases.discard(name)

        if name in MAPPINGS:
            return model.Primitive("object")
        if name in SEQUENCES:
            return model.Primitive("array")
        return model.Unknown()

    def _subscript(self, node: ast.Subscript, module: ModuleDecl) -> model.TypeInfo:
        origin = _name_of(node.value, module)
        args = _subscript_args(node)

        if origin == "Literal":
            return _union([_literal(arg) for arg in args])
        if origin in {"Union", "Optional"}:
            members = [self._classify(arg, module) for arg in args]
            if origin == "Optional":
                members.append(model.Primitive("null"))
            return _union(members)
        if origin in WRAPPERS and args:
            return self._classify(args[0], module)
        if origin in MAPPINGS or origin in SEQUENCES:
            # element classes still get sections of their own
            for arg in args:
                self._classify(arg, module)
            return model.Primitive("object" if origin in MAPPINGS else "array")
        if origin is not None and origin in self.generic_fallbacks:
            return model.ObjectRef(self.generic_fallbacks[origin])
        return model.Unknown()

    def _enum(self, decl: ClassDecl) -> model.TypeInfo:
        members: list[model.TypeInfo] = []
        for name, value in self.index.enum_members(decl):
            if isinstance(value, ast.Constant):
                members.append(model.Literal(json.dumps(value.value)))
            else:
                members.append(model.Literal(json.dumps(name)))
        return _union(members)

    def _forward_ref(self, text: str, module: ModuleDecl) -> model.TypeInfo:
        try:
            expression = ast.parse(text.strip(), mode="eval")
        except SyntaxError:
            return model.Unknown()
        return self._classify(expression.body, module)


def _literal(node: ast.expr) -> model.TypeInfo:
    try:
        value = ast.literal_eval(node)
    except ValueError:
        return model.Unknown()
    if value is None or isinstance(value, (str, int, float, bool)):
        return model.Literal(json.dumps(value))
    return model.Unknown()


def _union(members: list[model.TypeInfo]) -> model.TypeInfo:
    flat: list[model.TypeInfo] = []
    for member in members:
        if isinstance(member, model.Union):
            flat.extend(member.members)
        else:
            flat.append(member)
    if not flat:
        return model.Unknown()
    if len(flat) == 1:
        return flat[0]
    return model.Union(tuple(flat))


def _subscript_args(node: ast.Subscript) -> list[ast.expr]:
    if isinstance(node.slice, ast.Tuple):
        return list(node.slice.elts)
    return [node.slice]


def _name_of(node: ast.expr, module: ModuleDecl) -> str | None:
    if isinstance(node, ast.Name):
        return module.resolve(node.id)
    if isinstance(node, ast.Attribute):
        return node.attr
    return None
