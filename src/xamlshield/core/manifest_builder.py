"""Manifest assembly for the renaming tool.

This module decides which resolved projects belong in the manifest and
builds the manifest document itself. The document follows the Obfuscar
configuration layout::

    <Obfuscator>
      <Var name="InPath" value="./" />
      ...
      <Module file="$(InPath)\\App.dll">
        <SkipType type="App.MainWindow" skipMethods="true" skipProperties="true" />
      </Module>
    </Obfuscator>

Example:
    >>> builder = (
    ...     ManifestBuilder(config)
    ...     .set_log_file("obfuscar.log", xml_mapping=True)
    ...     .add_var("KeepPublicApi", False)
    ... )
    >>> builder.add_project(project, shielded_types)
    >>> text = builder.to_string()
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from enum import Enum
from typing import Iterable

from xamlshield.core.config import ManifestConfig
from xamlshield.core.project import ProjectDescriptor
from xamlshield.utils.logger import get_logger

logger = get_logger("xamlshield.core.manifest_builder")

ROOT_TAG = "Obfuscator"
INPUT_PATH_VARIABLE = "$(InPath)"

# Renaming policy written into every manifest
FIXED_POLICY_VARS = (
    ("KeepPublicApi", False),
    ("HidePublicApi", True),
    ("SkipGenerated", True),
)


class ExclusionReason(Enum):
    """Why a resolved project is left out of the manifest."""
    LEGACY_RUNTIME = "targets a legacy runtime"
    IGNORED = "listed in the ignore list"
    UI_FRAMEWORK = "is a UI framework project"
    PLUGIN = "is a plugin project"


def evaluate_inclusion(
    project: ProjectDescriptor,
    config: ManifestConfig,
) -> ExclusionReason | None:
    """Return the reason ``project`` is excluded, or None if it is included.

    Legacy runtime targets are always excluded, whatever the ignore list
    holds. Ignore-list entries match project names exactly.
    """
    if project.is_legacy_runtime_target:
        return ExclusionReason.LEGACY_RUNTIME
    if project.name in config.ignored_modules:
        return ExclusionReason.IGNORED
    if not config.include_ui_projects and project.is_ui_framework:
        return ExclusionReason.UI_FRAMEWORK
    if not config.include_plugins and config.plugin_marker in project.name:
        return ExclusionReason.PLUGIN
    return None


def is_included(project: ProjectDescriptor, config: ManifestConfig) -> bool:
    """Return True if ``project`` belongs in the manifest."""
    return evaluate_inclusion(project, config) is None


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def module_file(project: ProjectDescriptor) -> str:
    """Return the manifest's file reference for ``project``'s assembly."""
    return f"{INPUT_PATH_VARIABLE}\\{project.dll_name}"


class ManifestBuilder:
    """Builds the manifest document, one project at a time.

    Methods that add content return the builder, so calls can be chained.

    Attributes:
        config: Configuration of the run
        root: Root element of the document being built
        project_count: Number of modules added so far
    """

    def __init__(self, config: ManifestConfig) -> None:
        self.config = config
        self.root = ET.Element(ROOT_TAG)
        self.project_count = 0

        self.add_var("InPath", config.input_dir)
        self.add_var("OutPath", config.effective_output_dir)

    def add_var(self, name: str, value: object) -> ManifestBuilder:
        """Append a ``Var`` setting."""
        ET.SubElement(self.root, "Var", {"name": name, "value": _format_value(value)})
        return self

    def set_log_file(self, log_file: str, xml_mapping: bool) -> ManifestBuilder:
        """Set the renaming tool's log file and optional XML mapping output."""
        self.add_var("LogFile", log_file)
        if xml_mapping:
            self.add_var("XmlMapping", True)
        return self

    def add_policy_vars(self) -> ManifestBuilder:
        """Append the fixed renaming policy settings."""
        for name, value in FIXED_POLICY_VARS:
            self.add_var(name, value)
        return self

    def add_search_path(self, search_path: str) -> ManifestBuilder:
        """Append an ``AssemblySearchPath`` entry."""
        ET.SubElement(self.root, "AssemblySearchPath", {"path": search_path})
        return self

    def add_project(
        self,
        project: ProjectDescriptor,
        shielded_types: Iterable[str],
    ) -> ManifestBuilder:
        """Append a ``Module`` for ``project`` with one ``SkipType`` per type.

        Types are written in sorted order so that the same input always
        produces the same document.
        """
        module = ET.SubElement(self.root, "Module", {"file": module_file(project)})
        types = sorted(set(shielded_types))
        for type_name in types:
            ET.SubElement(
                module,
                "SkipType",
                {
                    "type": type_name,
                    "skipMethods": _format_value(True),
                    "skipProperties": _format_value(True),
                },
            )
        self.project_count += 1
        logger.debug(f"Module {project.dll_name}: {len(types)} skipped types")
        return self

    def build(self) -> ET.ElementTree:
        """Return the document built so far."""
        return ET.ElementTree(self.root)

    def to_string(self) -> str:
        """Serialize the document with an XML declaration and indentation."""
        tree = self.build()
        ET.indent(tree, space="  ")
        body = ET.tostring(self.root, encoding="unicode")
        return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'
