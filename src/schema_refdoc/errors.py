"""Exceptions raised while generating reference documentation."""

from __future__ import annotations


class RefdocError(Exception):
    """Base class for documentation generation failures."""


class TypeNotFoundError(RefdocError, LookupError):
    """No declaration with the requested name exists under the source root."""

    def __init__(self, name: str) -> None:
        super().__init__(f"type '{name}' not found")
        self.name = name


class AnchorNotFoundError(RefdocError, ValueError):
    """A marker comment required for splicing is missing from the document."""

    def __init__(self, marker: str) -> None:
        super().__init__(f"anchor '{marker}' not found in document")
        self.marker = marker


class FormatterError(RefdocError, RuntimeError):
    """The external document formatter failed."""


class ConfigError(RefdocError, ValueError):
    """The configuration file is missing or invalid."""
