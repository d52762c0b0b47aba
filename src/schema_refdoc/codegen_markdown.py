"""Markdown documentation generation."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from . import model
from .anchors import EXAMPLE_ANCHOR, REFERENCE_ANCHOR, example_block, language_for, splice
from .config import DocsConfig
from .extract import extract_sections
from .formatter import run_formatter
from .schema import load_index

logger = logging.getLogger(__name__)

_TEMPLATE_ENV = Environment(
    loader=FileSystemLoader(Path(__file__).resolve().parent / "templates"),
    trim_blocks=True,
    lstrip_blocks=False,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)

_PARAGRAPH_BREAK = re.compile(r"\s*\n[ \t]*\n\s*")
_LINE_BREAK = re.compile(r"\s*\n\s*")
_MIN_COLUMN_WIDTH = 3


def generate_docs(config: DocsConfig, *, run_format: bool = True) -> Path:
    """Regenerate the reference and example regions of the configured document.

    Both regions are spliced in memory before the document is written, so a
    missing anchor leaves the file untouched. Without a configured example
    file the EXAMPLE region is left as it is and its markers are not required.
    """
    reference = build_reference(config)

    document = config.document
    content = document.read_text(encoding="utf-8")
    updated = splice(content, REFERENCE_ANCHOR, reference)
    if config.example is not None:
        example_text = config.example.read_text(encoding="utf-8")
        language = config.example_language or language_for(config.example)
        updated = splice(updated, EXAMPLE_ANCHOR, example_block(example_text, language))

    logger.info("Writing updated %s", document)
    document.write_text(updated, encoding="utf-8")

    if run_format and config.formatter:
        logger.info("Formatting %s", document)
        run_formatter(config.formatter, document, cwd=config.base_dir)
    return document


def build_reference(config: DocsConfig) -> str:
    """Extract the configured root type and render its reference Markdown."""
    index = load_index(config.source_root)
    sections = extract_sections(
        index,
        config.root_type,
        generic_fallbacks=config.generic_fallbacks,
        infer_defaults=config.infer_defaults,
    )
    return render_reference(sections)


def render_reference(sections: list[model.Section]) -> str:
    """Render *sections* in order, separated by two blank lines."""
    return "\n\n".join(format_section(section) for section in sections)


def format_section(section: model.Section) -> str:
    """Render one section as a heading, optional description and table."""
    fields = section.fields
    has_description = any(
        (fld.description is not None and fld.description.strip()) or fld.example is not None
        for fld in fields
    )
    has_default = any(fld.default is not None for fld in fields)

    header = ["Name", "Type"]
    if has_description:
        header.append("Description")
    if has_default:
        header.append("Default")

    rows = [header]
    for fld in fields:
        row = [inline_code(fld.name), format_type_info(fld.type)]
        if has_description:
            parts = [format_description(fld.description), format_example(fld.example)]
            row.append("<br><br>".join(part for part in parts if part))
        if has_default:
            row.append(inline_code(fld.default) if fld.default else "")
        rows.append(row)

    return _TEMPLATE_ENV.get_template("section.md.j2").render(
        name=section.name,
        description=format_description(section.description),
        table=markdown_table(rows),
    )


def format_type_info(type_info: model.TypeInfo) -> str:
    """Render a type as Markdown; union members are joined with `` | ``."""
    if isinstance(type_info, model.Union):
        return " | ".join(format_type_info(member) for member in type_info.members)
    if isinstance(type_info, model.Unknown):
        return inline_code("???")
    if isinstance(type_info, model.Primitive):
        return inline_code(type_info.name)
    if isinstance(type_info, model.Literal):
        return inline_code(type_info.value)
    if isinstance(type_info, model.ObjectRef):
        return link(f"#{type_info.name}", inline_code(type_info.name))
    raise TypeError(f"unsupported type info {type_info!r}")


def format_description(text: str | None) -> str:
    """Collapse documentation text onto one line.

    Blank lines become ``<br><br>`` paragraph breaks, any other newline a
    single space.
    """
    if text is None:
        return ""
    text = _PARAGRAPH_BREAK.sub("<br><br>", text.strip())
    return _LINE_BREAK.sub(" ", text)


def format_example(example: str | None) -> str | None:
    if example is None:
        return None
    return f"Example: {inline_code(example)}"


def inline_code(text: str) -> str:
    return f"`{text}`"


def link(target: str, label: str) -> str:
    return f"[{label}]({target})"


def markdown_table(rows: list[list[str]]) -> str:
    """Render *rows* (header first) as a padded GFM table."""
    cells = [[_table_cell(cell) for cell in row] for row in rows]
    widths = [
        max(_MIN_COLUMN_WIDTH, *(len(row[column]) for row in cells))
        for column in range(len(cells[0]))
    ]
    lines = [_table_row(cells[0], widths), _table_row(["-" * width for width in widths], widths)]
    lines.extend(_table_row(row, widths) for row in cells[1:])
    return "\n".join(lines)


def _table_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def _table_row(cells: list[str], widths: list[int]) -> str:
    padded = [cell.ljust(width) for cell, width in zip(cells, widths)]
    return f"| {' | '.join(padded)} |"
