"""TOML-based configuration for typederive.

Usage:
    from typederive.toml_config import load_toml_config, find_config_file

    # Load from a specific file
    config = load_toml_config(Path("typederive.toml"))

    # Auto-discover config file in directory hierarchy
    config_path = find_config_file(Path.cwd())
    if config_path:
        config = load_toml_config(config_path)

Example typederive.toml:
    [capabilities]
    enabled = ["elm/json", "NoRedInk/elm-json-decode-pipeline"]

    [generators]
    enabled = ["json-decoder", "json-encoder"]

    [logging]
    level = "DEBUG"
    format = "json"
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from .config import TypederiveConfig

# Config file names to search for (in order of preference)
CONFIG_FILE_NAMES = ["typederive.toml", ".typederive.toml", "pyproject.toml"]


def find_config_file(
    start_dir: Path,
    config_names: list[str] | None = None,
) -> Path | None:
    """Find a config file by searching up the directory hierarchy.

    Args:
        start_dir: Directory to start searching from
        config_names: List of config file names to search for (default: CONFIG_FILE_NAMES)

    Returns:
        Path to the config file, or None if not found
    """
    config_names = config_names or CONFIG_FILE_NAMES
    current = start_dir.resolve()

    while True:
        for name in config_names:
            config_path = current / name
            if config_path.exists():
                # For pyproject.toml, check if it has a [tool.typederive] section
                if name == "pyproject.toml":
                    if _has_typederive_section(config_path):
                        return config_path
                else:
                    return config_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _has_typederive_section(pyproject_path: Path) -> bool:
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return "typederive" in data.get("tool", {})


def load_toml_config(path: Path) -> TypederiveConfig:
    """Load a TypederiveConfig from a TOML file.

    Supports typederive.toml (full file) and pyproject.toml (under
    [tool.typederive]).

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If a pyproject.toml has no [tool.typederive] section, or a
            setting has the wrong type
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    if path.name == "pyproject.toml":
        if "typederive" not in data.get("tool", {}):
            raise ValueError(f"No [tool.typederive] section in {path}")
        data = data["tool"]["typederive"]

    return _build_config_from_dict(data, path.parent)


def _build_config_from_dict(data: dict[str, Any], project_root: Path) -> TypederiveConfig:
    config = TypederiveConfig(project_root=project_root)

    if "capabilities" in data:
        capabilities = data["capabilities"]
        if "enabled" in capabilities:
            config.capabilities = _string_list(capabilities["enabled"], "capabilities.enabled")

    if "generators" in data:
        generators = data["generators"]
        if "enabled" in generators:
            config.generators = _string_list(generators["enabled"], "generators.enabled")

    if "logging" in data:
        logging_section = data["logging"]
        if "level" in logging_section:
            config.log_level = str(logging_section["level"]).upper()
        if "format" in logging_section:
            config.log_format = str(logging_section["format"]).lower()

    return config


def _string_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings")
    return list(value)


def config_to_toml(config: TypederiveConfig) -> str:
    """Render ``config`` as typederive.toml text."""
    lines = ["[capabilities]", f"enabled = {_toml_list(config.capabilities)}", ""]
    if config.generators is not None:
        lines += ["[generators]", f"enabled = {_toml_list(config.generators)}", ""]
    lines += [
        "[logging]",
        f'level = "{config.log_level}"',
        f'format = "{config.log_format}"',
    ]
    return "\n".join(lines) + "\n"


def _toml_list(values: list[str]) -> str:
    return "[" + ", ".join(f'"{v}"' for v in values) + "]"
