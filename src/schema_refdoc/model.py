"""Documentable type shapes, fields and sections."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union as _Union

_SCHEMA_SUFFIX = re.compile(r"Schema$")
_CONFIG_SUFFIX = re.compile(r"Config$")


@dataclass(frozen=True)
class Unknown:
    """A declared type that does not map to any documentable shape."""


@dataclass(frozen=True)
class Literal:
    """A literal value, stored as it renders (``"debug"``, ``8080``)."""

    value: str


@dataclass(frozen=True)
class Primitive:
    """A primitive category such as ``string``, ``number`` or ``object``."""

    name: str


@dataclass(frozen=True)
class ObjectRef:
    """A reference to the section documenting a named class."""

    name: str


@dataclass(frozen=True)
class Union:
    """Alternatives in declared order. Members are never unions themselves."""

    members: tuple[TypeInfo, ...]


TypeInfo = _Union[Unknown, Literal, Primitive, ObjectRef, Union]


@dataclass
class Field:
    """A documented member of a section."""

    name: str
    type: TypeInfo
    description: str | None = None
    example: str | None = None
    default: str | None = None


@dataclass
class Section:
    """A named class rendered as one heading and table."""

    name: str
    description: str | None = None
    fields: list[Field] = field(default_factory=list)


def canonical_name(name: str) -> str:
    """Strip a trailing ``Schema`` and then a trailing ``Config`` from *name*.

    Stripping repeats until the name stops changing, so ``OutputSchemaConfig``
    becomes ``Output``. A strip that would leave nothing is not applied.
    """
    current = name
    while True:
        stripped = _CONFIG_SUFFIX.sub("", _SCHEMA_SUFFIX.sub("", current))
        if not stripped or stripped == current:
            return current
        current = stripped
