"""Run configuration for manifest generation.

This module defines the :class:`ManifestConfig` dataclass holding every
setting of a manifest generation run, together with helpers to save and
load those settings as JSON files. Command-line arguments are merged on top
of a settings file by :mod:`xamlshield.main`.

Example:
    Creating a configuration and validating it:

    >>> config = ManifestConfig(
    ...     entry_project=Path("App/App.csproj"),
    ...     ignored_modules=parse_ignore_list("Tests,Benchmarks"),
    ... )
    >>> config.validate()

    Round-tripping through a settings file:

    >>> save_settings(config, Path("xamlshield.json"))
    >>> config = load_settings(Path("xamlshield.json"))
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from xamlshield.core.project import PROJECT_EXTENSION, is_project_descriptor
from xamlshield.utils.logger import get_logger
from xamlshield.utils.path_utils import ensure_directory, is_readable

logger = get_logger("xamlshield.core.config")

DEFAULT_INPUT_DIR = "./"
DEFAULT_OUTPUT_SUBDIR = "Obfuscated/"
DEFAULT_MANIFEST_FILENAME = "obfuscar_config.xml"
DEFAULT_RENAMER_LOG_FILE = "obfuscar.log"
DEFAULT_PLUGIN_MARKER = "Plugin"

_PATH_FIELDS = {"entry_project", "manifest_path"}
_OPTIONAL_FIELDS = {"entry_project", "output_dir"}
_STRING_FIELDS = ("input_dir", "output_dir", "plugin_marker", "renamer_log_file")
_BOOL_FIELDS = ("include_ui_projects", "include_plugins", "xml_mapping", "overwrite")


class InvalidInputError(ValueError):
    """Raised when arguments or settings do not describe a runnable job."""


def parse_ignore_list(value: str | None) -> List[str]:
    """Split a comma-separated list of project names.

    Surrounding whitespace is dropped, as are empty entries.

    Examples:
        >>> parse_ignore_list("Foo, Bar,,Baz")
        ['Foo', 'Bar', 'Baz']
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def default_output_dir(input_dir: str) -> str:
    """Return the default output directory for ``input_dir``."""
    return os.path.join(input_dir, DEFAULT_OUTPUT_SUBDIR)


@dataclass
class ManifestConfig:
    """Settings of one manifest generation run.

    Attributes:
        entry_project: Descriptor of the executable project to start from
        input_dir: Directory the renaming tool reads assemblies from
        output_dir: Directory the renaming tool writes to; defaults to
            ``<input_dir>/Obfuscated/``
        ignored_modules: Project names left out of the manifest
        include_ui_projects: Whether WPF / Windows Forms projects are included
        include_plugins: Whether projects whose name contains
            ``plugin_marker`` are included
        plugin_marker: Name fragment identifying plugin projects
        search_paths: Extra assembly search paths for the renaming tool
        manifest_path: File the manifest is written to
        renamer_log_file: Log file name written into the manifest
        xml_mapping: Whether the renaming tool should write its XML mapping
        overwrite: Whether an existing manifest file may be replaced
        max_workers: Number of projects scanned concurrently
    """

    entry_project: Optional[Path] = None
    input_dir: str = DEFAULT_INPUT_DIR
    output_dir: Optional[str] = None
    ignored_modules: List[str] = field(default_factory=list)
    include_ui_projects: bool = True
    include_plugins: bool = True
    plugin_marker: str = DEFAULT_PLUGIN_MARKER
    search_paths: List[str] = field(default_factory=list)
    manifest_path: Path = Path(DEFAULT_MANIFEST_FILENAME)
    renamer_log_file: str = DEFAULT_RENAMER_LOG_FILE
    xml_mapping: bool = True
    overwrite: bool = True
    max_workers: int = 1

    @property
    def effective_output_dir(self) -> str:
        """Output directory with the default applied."""
        return self.output_dir or default_output_dir(self.input_dir)

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            InvalidInputError: If any validation check fails
        """
        if self.entry_project is None:
            raise InvalidInputError("An entry project is required (--project)")

        if not self.entry_project.is_file():
            raise InvalidInputError(f"File {self.entry_project} does not exist")

        if not is_project_descriptor(self.entry_project):
            raise InvalidInputError(
                f"File {self.entry_project} is not a {PROJECT_EXTENSION} project descriptor"
            )

        if not is_readable(self.entry_project):
            raise InvalidInputError(f"File {self.entry_project} is not readable")

        if not self.input_dir:
            raise InvalidInputError("Input directory cannot be empty")

        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise InvalidInputError("max_workers must be a positive integer")

        if not self.include_plugins and not self.plugin_marker:
            raise InvalidInputError("plugin_marker cannot be empty when plugins are excluded")

        for name in self.ignored_modules:
            if not isinstance(name, str) or not name:
                raise InvalidInputError(f"Invalid ignored module name: {name!r}")

        logger.debug(f"Configuration for {self.entry_project} validated successfully")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-serializable dictionary."""
        data: Dict[str, Any] = {}
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, list):
                value = list(value)
            data[config_field.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ManifestConfig:
        """Create configuration from a dictionary.

        Unknown keys are rejected so that typos in settings files surface.

        Raises:
            InvalidInputError: If the dictionary contains unknown keys or
                values of the wrong type
        """
        known = {config_field.name for config_field in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidInputError(f"Unknown configuration keys: {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                if key not in _OPTIONAL_FIELDS:
                    raise InvalidInputError(f"'{key}' cannot be null")
            elif key in _PATH_FIELDS:
                if not isinstance(value, str):
                    raise InvalidInputError(f"'{key}' must be a path string")
                value = Path(value)
            elif key == "ignored_modules" and isinstance(value, str):
                value = parse_ignore_list(value)
            values[key] = value

        for key in _STRING_FIELDS:
            if values.get(key) is not None and not isinstance(values[key], str):
                raise InvalidInputError(f"'{key}' must be a string")
        for key in ("ignored_modules", "search_paths"):
            if key in values and not isinstance(values[key], list):
                raise InvalidInputError(f"'{key}' must be a list of strings")
        for key in _BOOL_FIELDS:
            if key in values and not isinstance(values[key], bool):
                raise InvalidInputError(f"'{key}' must be a boolean")

        config = cls(**values)
        logger.debug(f"Created configuration from dictionary ({len(values)} keys)")
        return config


def save_settings(config: ManifestConfig, file_path: Path) -> None:
    """Save configuration to a JSON settings file.

    Raises:
        OSError: If the file cannot be written
    """
    ensure_directory(file_path.parent)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.info(f"Settings saved to {file_path}")


def load_settings(file_path: Path) -> ManifestConfig:
    """Load configuration from a JSON settings file.

    Relative ``entry_project`` and ``manifest_path`` values are resolved
    against the settings file's directory.

    Raises:
        InvalidInputError: If the file is missing or its content is invalid
    """
    if not file_path.is_file():
        raise InvalidInputError(f"Settings file not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON format in settings file {file_path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidInputError(f"Cannot read settings file {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidInputError(f"Settings file {file_path} must contain a JSON object")

    config = ManifestConfig.from_dict(data)
    base = file_path.parent
    if config.entry_project is not None and not config.entry_project.is_absolute():
        config.entry_project = base / config.entry_project
    if not config.manifest_path.is_absolute() and "manifest_path" in data:
        config.manifest_path = base / config.manifest_path

    logger.info(f"Settings loaded from {file_path}")
    return config
