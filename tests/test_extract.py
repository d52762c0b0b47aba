"""Tests for section extraction."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from schema_refdoc import model
from schema_refdoc.errors import TypeNotFoundError
from schema_refdoc.extract import extract_sections
from schema_refdoc.model import canonical_name
from schema_refdoc.schema import load_index


def _extract(tmp_path: Path, source: str, root: str, **kwargs) -> list[model.Section]:
    (tmp_path / "config.py").write_text(dedent(source))
    return extract_sections(load_index(tmp_path), root, **kwargs)


def test_mutual_references_terminate(tmp_path: Path) -> None:
    sections = _extract(
        tmp_path,
        """
        class A:
            b: B

        class B:
            a: A
        """,
        "A",
    )

    assert [section.name for section in sections] == ["A", "B"]
    assert sections[1].fields[0].name == "a"
    assert sections[1].fields[0].type == model.ObjectRef("A")


def test_self_reference_is_a_link(tmp_path: Path) -> None:
    sections = _extract(
        tmp_path,
        """
        class NodeConfig:
            children: "NodeConfig | None"
        """,
        "NodeConfig",
    )

    assert len(sections) == 1
    assert sections[0].name == "Node"
    assert sections[0].fields[0].type == model.Union(
        (model.ObjectRef("Node"), model.Primitive("null"))
    )


def test_sections_are_depth_first_by_first_encounter(tmp_path: Path) -> None:
    sections = _extract(
        tmp_path,
        """
        class RootSchema:
            first: First
            second: Second
            again: First

        class Second:
            leaf: Leaf

        class First:
            leaf: Leaf
            nested: Nested

        class Nested:
            value: str

        class Leaf:
            value: str
        """,
        "RootSchema",
    )

    assert [section.name for section in sections] == ["Root", "First", "Leaf", "Nested", "Second"]


def test_fields_collect_docs_tags_and_defaults(tmp_path: Path) -> None:
    sections = _extract(
        tmp_path,
        '''
        from dataclasses import dataclass, field

        @dataclass
        class HecConfigSchema:
            """HTTP Event Collector output."""

            url: str
            """Endpoint.

            :example: https://splunk:8088
            """

            timeout: int = 30
            """:default: 30s"""

            token: str = field(default="", metadata={})
            tags: list[str] = field(default_factory=list)
            level: str = field(default="info", description="Log level.", examples=["debug"])
        ''',
        "HecConfigSchema",
    )

    section = sections[0]
    fields = {fld.name: fld for fld in section.fields}
    assert section.name == "Hec"
    assert section.description == "HTTP Event Collector output."
    assert fields["url"].description == "Endpoint."
    assert fields["url"].example == "https://splunk:8088"
    assert fields["url"].default is None
    assert fields["timeout"].description is None
    assert fields["timeout"].default == "30s"
    assert fields["token"].default == '""'
    assert fields["tags"].default is None
    assert fields["level"].description == "Log level."
    assert fields["level"].example == "debug"
    assert fields["level"].default == '"info"'


def test_constant_defaults_render_like_literals(tmp_path: Path) -> None:
    sections = _extract(
        tmp_path,
        """
        from typing import Literal, Optional

        class AppConfig:
            level: Literal["debug", "info"] = "info"
            enabled: bool = True
            proxy: Optional[str] = None
            retries: int = 3
            limits: tuple[int, int] = (1, 2)
        """,
        "AppConfig",
    )

    defaults = {fld.name: fld.default for fld in sections[0].fields}
    assert defaults == {
        "level": '"info"',
        "enabled": "true",
        "proxy": "null",
        "retries": "3",
        "limits": "(1, 2)",
    }


def test_classes_inside_collections_get_sections(tmp_path: Path) -> None:
    sections = _extract(
        tmp_path,
        """
        class RootConfig:
            sinks: list[SinkConfig]
            by_name: dict[str, OutputConfig]
            tags: list[str]

        class SinkConfig:
            url: str

        class OutputConfig:
            path: str
        """,
        "RootConfig",
    )

    assert [section.name for section in sections] == ["Root", "Sink", "Output"]
    assert [fld.type for fld in sections[0].fields] == [
        model.Primitive("array"),
        model.Primitive("object"),
        model.Primitive("array"),
    ]


def test_module_constants_do_not_hide_classes(tmp_path: Path) -> None:
    (tmp_path / "a_consts.py").write_text('Output = 60 * 5\nSink = SETTINGS["sink"]\n')
    (tmp_path / "b_config.py").write_text(
        dedent(
            """
            class RootConfig:
                out: Output
                sink: Sink

            class Output:
                path: str

            class Sink:
                url: str
            """
        )
    )

    sections = extract_sections(load_index(tmp_path), "RootConfig")

    assert [section.name for section in sections] == ["Root", "Output", "Sink"]
    assert sections[0].fields[0].type == model.ObjectRef("Output")


def test_inferred_defaults_can_be_disabled(tmp_path: Path) -> None:
    sections = _extract(
        tmp_path,
        """
        class AppConfig:
            port: int = 8000
        """,
        "AppConfig",
        infer_defaults=False,
    )

    assert sections[0].fields[0].default is None


def test_missing_root_type(tmp_path: Path) -> None:
    with pytest.raises(TypeNotFoundError, match="EthloggerConfigSchema"):
        _extract(tmp_path, "class Other:\n    x: int\n", "EthloggerConfigSchema")


def test_generic_fallback_does_not_add_sections(tmp_path: Path) -> None:
    sections = _extract(
        tmp_path,
        """
        class RootConfig:
            hec: HecConfig
            defaults: Partial[HecConfig]

        class HecConfig:
            url: str
        """,
        "RootConfig",
        generic_fallbacks={"Partial": "Hec"},
    )

    assert [section.name for section in sections] == ["Root", "Hec"]
    assert sections[0].fields[1].type == model.ObjectRef("Hec")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("EthloggerConfigSchema", "Ethlogger"),
        ("HecConfig", "Hec"),
        ("CheckpointSchema", "Checkpoint"),
        ("SchemaConfig", "Schema"),
        ("Output", "Output"),
        ("Config", "Config"),
        ("ConfigSchema", "ConfigSchema"),
        ("OutputSchemaConfig", "Output"),
        ("FooSchemaSchema", "Foo"),
    ],
)
def test_canonical_name(raw: str, expected: str) -> None:
    assert canonical_name(raw) == expected
    assert canonical_name(canonical_name(raw)) == canonical_name(raw)
