"""Configuration loading."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - python<3.11
    import tomli as tomllib

from .errors import ConfigError

CONFIG_FILENAME = "schema-refdoc.toml"
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_TABLE = "schema-refdoc"

DEFAULT_SOURCE_ROOT = "src"
DEFAULT_DOCUMENT = "docs/configuration.md"


@dataclass
class DocsConfig:
    """Settings for one documentation run. Paths are absolute or cwd-relative."""

    root_type: str
    source_root: Path = Path(DEFAULT_SOURCE_ROOT)
    document: Path = Path(DEFAULT_DOCUMENT)
    example: Path | None = None
    example_language: str | None = None
    formatter: list[str] | None = None
    generic_fallbacks: dict[str, str] = field(default_factory=dict)
    infer_defaults: bool = True
    base_dir: Path = Path(".")


def find_config(start: str | Path = ".") -> Path | None:
    """Locate a configuration file in *start*.

    ``schema-refdoc.toml`` wins over a ``pyproject.toml`` carrying a
    ``[tool.schema-refdoc]`` table.
    """
    directory = Path(start)
    dedicated = directory / CONFIG_FILENAME
    if dedicated.is_file():
        return dedicated
    pyproject = directory / PYPROJECT_FILENAME
    if pyproject.is_file():
        with pyproject.open("rb") as handle:
            data = tomllib.load(handle)
        if TOOL_TABLE in data.get("tool", {}):
            return pyproject
    return None


def load_config(path: str | Path, **overrides: Any) -> DocsConfig:
    """Load a :class:`DocsConfig` from *path*.

    Relative paths are resolved against the file's directory. Keyword
    *overrides* that are not ``None`` replace values from the file; pass
    absolute paths to keep them independent of the file's location.
    """
    config_path = Path(path)
    with config_path.open("rb") as handle:
        data = tomllib.load(handle)

    if config_path.name == PYPROJECT_FILENAME:
        table = data.get("tool", {}).get(TOOL_TABLE)
        if table is None:
            raise ConfigError(f"{config_path} has no [tool.{TOOL_TABLE}] table")
    else:
        table = data
    if not isinstance(table, dict):
        raise ConfigError(f"[tool.{TOOL_TABLE}] must be a table")

    values = {key: value for key, value in overrides.items() if value is not None}
    return config_from_table(table, config_path.parent, **values)


def config_from_table(table: dict[str, Any], base_dir: Path, **overrides: Any) -> DocsConfig:
    """Build a :class:`DocsConfig` from a parsed TOML table."""
    root_type = overrides.get("root_type", table.get("root-type"))
    if not isinstance(root_type, str) or not root_type:
        raise ConfigError("config 'root-type' must be a non-empty string")

    example_raw = overrides.get("example", table.get("example"))
    example_language = table.get("example-language")
    if example_language is not None and not isinstance(example_language, str):
        raise ConfigError("config 'example-language' must be a string")

    fallbacks = table.get("generic-fallbacks", {})
    if not isinstance(fallbacks, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in fallbacks.items()
    ):
        raise ConfigError("config 'generic-fallbacks' must be a table of strings")

    infer_defaults = table.get("infer-defaults", True)
    if not isinstance(infer_defaults, bool):
        raise ConfigError("config 'infer-defaults' must be a boolean")

    return DocsConfig(
        root_type=root_type,
        source_root=_path(
            overrides.get("source_root", table.get("source-root", DEFAULT_SOURCE_ROOT)),
            base_dir,
            "source-root",
        ),
        document=_path(
            overrides.get("document", table.get("document", DEFAULT_DOCUMENT)),
            base_dir,
            "document",
        ),
        example=_path(example_raw, base_dir, "example") if example_raw is not None else None,
        example_language=example_language,
        formatter=_formatter(table.get("formatter")),
        generic_fallbacks=dict(fallbacks),
        infer_defaults=infer_defaults,
        base_dir=base_dir,
    )


def _path(value: Any, base_dir: Path, key: str) -> Path:
    if not isinstance(value, (str, Path)):
        raise ConfigError(f"config '{key}' must be a path string")
    path = Path(value)
    return path if path.is_absolute() else base_dir / path


def _formatter(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = shlex.split(value)
    if not isinstance(value, list) or not all(isinstance(part, str) for part in value):
        raise ConfigError("config 'formatter' must be a string or a list of strings")
    if not value:
        raise ConfigError("config 'formatter' must not be empty")
    return value
