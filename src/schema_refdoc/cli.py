"""Command line interface for schema-refdoc."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable

from .codegen_markdown import build_reference, generate_docs
from .config import DocsConfig, config_from_table, find_config, load_config

Handler = Callable[[argparse.Namespace], int]

logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> DocsConfig:
    overrides = {
        "root_type": args.root_type,
        "source_root": _absolute(args.source_root),
        "document": _absolute(getattr(args, "document", None)),
        "example": _absolute(getattr(args, "example", None)),
    }
    config_path = args.config or find_config(Path.cwd())
    if config_path is None:
        logger.debug("No configuration file found, using command line options")
        values = {key: value for key, value in overrides.items() if value is not None}
        return config_from_table({}, Path.cwd(), **values)
    logger.debug("Loading configuration from %s", config_path)
    return load_config(config_path, **overrides)


def _absolute(value: str | None) -> Path | None:
    return Path(value).resolve() if value is not None else None


def _handle_gen_docs(args: argparse.Namespace) -> int:
    """Regenerate the configured document."""
    config = _load(args)
    document = generate_docs(config, run_format=not args.no_format)
    logger.info("Updated %s", document)
    return 0


def _handle_reference(args: argparse.Namespace) -> int:
    """Print (or write) the rendered reference only."""
    config = _load(args)
    reference = build_reference(config)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(reference, encoding="utf-8")
        logger.info("Wrote %s", output_path)
    else:
        sys.stdout.write(reference)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(prog="schema-refdoc")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="configuration file (schema-refdoc.toml or pyproject.toml)")
    common.add_argument("--root-type", help="name of the class to document")
    common.add_argument("--source-root", help="directory scanned for declarations")

    gen_docs = subparsers.add_parser(
        "gen-docs", parents=[common], help="regenerate the reference and example regions"
    )
    gen_docs.add_argument("--document", help="Markdown document to update")
    gen_docs.add_argument("--example", help="example configuration file to embed")
    gen_docs.add_argument(
        "--no-format", action="store_true", help="skip the external formatter"
    )
    gen_docs.set_defaults(func=_handle_gen_docs)

    reference = subparsers.add_parser(
        "reference", parents=[common], help="render the reference Markdown only"
    )
    reference.add_argument("-o", "--output", help="write to this file instead of stdout")
    reference.set_defaults(func=_handle_reference)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(name)s %(levelname)s %(message)s",
    )
    handler: Handler = args.func
    try:
        return handler(args)
    except Exception:
        logger.exception("Documentation generation failed")
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
