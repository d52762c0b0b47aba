"""Extraction of documentation sections from a root class."""

from __future__ import annotations

import ast
import json
import logging
from dataclasses import dataclass, field
from typing import Mapping

from .classify import classify
from .model import Field, Section, TypeInfo, canonical_name
from .schema import ClassDecl, FieldDecl, SchemaIndex, field_call

logger = logging.getLogger(__name__)


@dataclass
class TraversalContext:
    """State of one extraction run."""

    index: SchemaIndex
    generic_fallbacks: Mapping[str, str] = field(default_factory=dict)
    infer_defaults: bool = True
    visited: set[str] = field(default_factory=set)
    sections: list[Section] = field(default_factory=list)


def extract_sections(
    index: SchemaIndex,
    root_name: str,
    generic_fallbacks: Mapping[str, str] | None = None,
    infer_defaults: bool = True,
) -> list[Section]:
    """Return the sections for *root_name* and every class it reaches.

    Sections are ordered depth-first by first encounter, starting with the
    root. Each class is documented once, so self-referencing and mutually
    referencing classes terminate.
    """
    root = index.find_type(root_name)
    context = TraversalContext(
        index=index,
        generic_fallbacks=dict(generic_fallbacks or {}),
        infer_defaults=infer_defaults,
    )
    _visit(root, context)
    return context.sections


def _visit(decl: ClassDecl, context: TraversalContext) -> None:
    if decl.name in context.visited:
        return
    context.visited.add(decl.name)

    section = Section(name=canonical_name(decl.name), description=decl.doc.text)
    logger.debug("Adding reference section for type %s -> %s", decl.name, section.name)
    context.sections.append(section)

    for decl_field in context.index.iter_fields(decl):
        classification = classify(
            decl_field.annotation,
            decl_field.module,
            context.index,
            context.generic_fallbacks,
        )
        section.fields.append(_build_field(decl_field, classification.type_info, context))
        for name in classification.referenced:
            _visit(context.index.find_type(name), context)


def _build_field(
    decl_field: FieldDecl, type_info: TypeInfo, context: TraversalContext
) -> Field:
    doc = decl_field.doc
    call = field_call(decl_field.value)

    description = doc.text
    example = doc.tags.get("example")
    default = doc.tags.get("default")

    if call is not None:
        if description is None:
            description = _string_keyword(call, "description")
        if example is None:
            example = _first_example(call)
    if default is None and context.infer_defaults:
        default = _inferred_default(decl_field.value, call)

    return Field(
        name=decl_field.name,
        type=type_info,
        description=description,
        example=example,
        default=default,
    )


def _string_keyword(call: ast.Call, name: str) -> str | None:
    for keyword in call.keywords:
        if (
            keyword.arg == name
            and isinstance(keyword.value, ast.Constant)
            and isinstance(keyword.value.value, str)
        ):
            return keyword.value.value
    return None


def _first_example(call: ast.Call) -> str | None:
    for keyword in call.keywords:
        if keyword.arg == "examples" and isinstance(keyword.value, (ast.List, ast.Tuple)):
            if keyword.value.elts:
                first = keyword.value.elts[0]
                if isinstance(first, ast.Constant) and isinstance(first.value, str):
                    return first.value
                return ast.unparse(first)
    return None


def _inferred_default(value: ast.expr | None, call: ast.Call | None) -> str | None:
    if value is None:
        return None
    if call is None:
        return _default_text(value)
    for keyword in call.keywords:
        if keyword.arg == "default":
            return _default_text(keyword.value)
    # pydantic's Field takes the default positionally; Ellipsis marks a required field
    if call.args and not (
        isinstance(call.args[0], ast.Constant) and call.args[0].value is Ellipsis
    ):
        return _default_text(call.args[0])
    return None


def _default_text(node: ast.expr) -> str:
    # constants render like literal types: "info", true, null
    if isinstance(node, ast.Constant) and (
        node.value is None or isinstance(node.value, (str, int, float, bool))
    ):
        return json.dumps(node.value)
    return ast.unparse(node)
