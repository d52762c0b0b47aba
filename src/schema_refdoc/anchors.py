"""Replacement of marked regions in an existing document."""

from __future__ import annotations

from pathlib import Path

from .errors import AnchorNotFoundError

REFERENCE_ANCHOR = "REFERENCE"
EXAMPLE_ANCHOR = "EXAMPLE"

_LANGUAGES = {
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".json": "json",
    ".ini": "ini",
    ".cfg": "ini",
    ".py": "python",
}


def markers(anchor_name: str) -> tuple[str, str]:
    """Return the start and end marker comments for *anchor_name*."""
    return f"<!-- {anchor_name} -->", f"<!-- {anchor_name}-END -->"


def splice(document: str, anchor_name: str, replacement: str) -> str:
    """Replace the text between the *anchor_name* markers with *replacement*.

    Both markers are kept. Raises :class:`AnchorNotFoundError` if the start
    marker, or an end marker after it, is missing.
    """
    start_marker, end_marker = markers(anchor_name)
    start = document.find(start_marker)
    if start < 0:
        raise AnchorNotFoundError(start_marker)
    content_start = start + len(start_marker)
    end = document.find(end_marker, content_start)
    if end < 0:
        raise AnchorNotFoundError(end_marker)
    return "".join([document[:content_start], "\n", replacement, "\n", document[end:]])


def example_block(text: str, language: str | None = None) -> str:
    """Wrap *text* verbatim in a fenced code block."""
    return f"\n```{language or ''}\n{text}\n```\n"


def language_for(path: str | Path) -> str | None:
    """Guess the code block language from a file suffix."""
    return _LANGUAGES.get(Path(path).suffix.lower())
