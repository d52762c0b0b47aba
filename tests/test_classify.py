"""Tests for annotation classification."""

from __future__ import annotations

import ast
from textwrap import dedent

from schema_refdoc import model
from schema_refdoc.classify import Classification, classify
from schema_refdoc.schema import ModuleDecl, SchemaIndex, parse_module

SOURCE = '''
from typing import Literal, TypedDict
from .other import HecConfigSchema as Hec

Level = Literal["debug", "info"]
Cycle = Union[Cycle2, int]
Cycle2 = Union[Cycle, str]

class HecConfigSchema(TypedDict):
    url: str

class Mode(str, Enum):
    FAST = "fast"
    SLOW = "slow"
'''


def _classify(annotation: str, fallbacks: dict[str, str] | None = None) -> Classification:
    declarations = parse_module(dedent(SOURCE), "config.py")
    index = SchemaIndex({decl.name: decl for decl in declarations})
    module = declarations[0].module
    node = ast.parse(annotation, mode="eval").body
    return classify(node, module, index, fallbacks)


def test_string_literal_union_keeps_declared_order() -> None:
    result = _classify('Literal["debug", "info"]')
    assert result.type_info == model.Union((model.Literal('"debug"'), model.Literal('"info"')))
    assert result.referenced == ()


def test_single_literal_is_not_a_union() -> None:
    assert _classify('Literal["debug"]').type_info == model.Literal('"debug"')
    assert _classify("Literal[3]").type_info == model.Literal("3")


def test_primitives() -> None:
    assert _classify("str").type_info == model.Primitive("string")
    assert _classify("int").type_info == model.Primitive("number")
    assert _classify("float").type_info == model.Primitive("number")
    assert _classify("bool").type_info == model.Primitive("boolean")
    assert _classify("None").type_info == model.Primitive("null")


def test_unions_are_flattened_but_not_deduplicated() -> None:
    result = _classify("Union[str, Optional[int]] | str")
    assert result.type_info == model.Union(
        (
            model.Primitive("string"),
            model.Primitive("number"),
            model.Primitive("null"),
            model.Primitive("string"),
        )
    )


def test_alias_resolves_to_its_value() -> None:
    result = _classify("Level | None")
    assert result.type_info == model.Union(
        (model.Literal('"debug"'), model.Literal('"info"'), model.Primitive("null"))
    )


def test_named_class_is_referenced_by_declared_name() -> None:
    result = _classify("Hec")
    assert result.type_info == model.ObjectRef("Hec")
    assert result.referenced == ("HecConfigSchema",)


def test_forward_reference_string_is_classified() -> None:
    result = _classify('"HecConfigSchema | None"')
    assert result.type_info == model.Union((model.ObjectRef("Hec"), model.Primitive("null")))
    assert result.referenced == ("HecConfigSchema",)


def test_enum_classifies_as_literal_union() -> None:
    result = _classify("Mode")
    assert result.type_info == model.Union((model.Literal('"fast"'), model.Literal('"slow"')))
    assert result.referenced == ()


def test_anonymous_shapes() -> None:
    assert _classify("dict[str, int]").type_info == model.Primitive("object")
    assert _classify("dict").type_info == model.Primitive("object")
    assert _classify("list[HecConfigSchema]").type_info == model.Primitive("array")
    assert _classify("list[HecConfigSchema]").referenced == ("HecConfigSchema",)
    assert _classify("dict[str, Hec]").referenced == ("HecConfigSchema",)
    assert _classify("NotRequired[str]").type_info == model.Primitive("string")
    assert _classify("Annotated[int, 'port']").type_info == model.Primitive("number")


def test_generic_fallback_is_a_fixed_reference() -> None:
    result = _classify("Partial[HecConfigSchema]", {"Partial": "Hec"})
    assert result.type_info == model.ObjectRef("Hec")
    assert result.referenced == ()
    assert _classify("Partial[HecConfigSchema]").type_info == model.Unknown()


def test_unresolvable_annotations_are_unknown() -> None:
    assert _classify("Any").type_info == model.Unknown()
    assert _classify("Missing").type_info == model.Unknown()


def test_alias_cycles_degrade_to_unknown() -> None:
    assert _classify("Cycle").type_info == model.Union(
        (model.Unknown(), model.Primitive("string"), model.Primitive("number"))
    )
