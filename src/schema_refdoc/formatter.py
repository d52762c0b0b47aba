"""Invocation of the external document formatter."""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Sequence

from .errors import FormatterError

logger = logging.getLogger(__name__)

DOCUMENT_PLACEHOLDER = "{document}"


def format_command(command: str | Sequence[str], document: str | Path) -> list[str]:
    """Split *command* and substitute the document path for ``{document}``."""
    parts = shlex.split(command) if isinstance(command, str) else list(command)
    return [part.replace(DOCUMENT_PLACEHOLDER, str(document)) for part in parts]


def run_formatter(
    command: str | Sequence[str],
    document: str | Path,
    cwd: str | Path | None = None,
) -> None:
    """Run the formatter on *document*, raising :class:`FormatterError` on failure."""
    args = format_command(command, document)
    if not args:
        raise FormatterError("formatter command is empty")

    logger.debug("Running %s", shlex.join(args))
    try:
        result = subprocess.run(args, cwd=cwd, capture_output=True, text=True, check=False)
    except FileNotFoundError as err:
        raise FormatterError(f"formatter '{args[0]}' not found") from err
    if result.returncode != 0:
        raise FormatterError(
            f"formatter '{shlex.join(args)}' exited with status {result.returncode}: "
            f"{result.stderr.strip()}"
        )
