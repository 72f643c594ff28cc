"""Project descriptor model.

This module reads MSBuild project descriptors (``.csproj``) into immutable
:class:`ProjectDescriptor` records. Descriptor documents are read with
:mod:`xml.etree.ElementTree` and wrapped in :class:`DescriptorDocument`,
which only offers what the rest of the package needs: looking up element
text and attribute values by tag name, wherever the element sits in the
document.

Example:
    >>> from pathlib import Path
    >>> from xamlshield.core.project import ProjectDescriptor
    >>>
    >>> project = ProjectDescriptor.parse(Path("App/App.csproj"))
    >>> print(project.name, project.namespace, len(project.markup_files))
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from xamlshield.utils.logger import get_logger
from xamlshield.utils.path_utils import (
    find_files,
    has_extension,
    normalize_path,
    resolve_reference,
)

logger = get_logger("xamlshield.core.project")

PROJECT_EXTENSION = ".csproj"
MARKUP_EXTENSION = ".xaml"

# Substring of a TargetFramework moniker that marks a .NET Framework 4.x target
LEGACY_RUNTIME_MARKER = "net4"

ASSEMBLY_NAME_TAG = "AssemblyName"
ROOT_NAMESPACE_TAG = "RootNamespace"
TARGET_FRAMEWORK_TAG = "TargetFramework"
PROJECT_REFERENCE_TAG = "ProjectReference"
PROJECT_REFERENCE_ATTRIBUTE = "Include"
UI_FRAMEWORK_TAGS = ("UseWPF", "UseWindowsForms")


# ============================================================================
# Custom Exceptions
# ============================================================================


class MalformedDescriptorError(Exception):
    """Exception raised when a descriptor document cannot be read.

    Attributes:
        path: Path of the offending descriptor
        details: Parser or file system error description
        message: Full error message

    Example:
        >>> raise MalformedDescriptorError(Path("Lib.csproj"), "mismatched tag: line 4")
    """

    def __init__(self, path: Path, details: str = ""):
        self.path = path
        self.details = details
        detail_suffix = f": {details}" if details else ""
        self.message = f"Malformed descriptor {path}{detail_suffix}"
        super().__init__(self.message)


# ============================================================================
# Descriptor document
# ============================================================================


def _local_name(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


class DescriptorDocument:
    """Read-only view of a parsed descriptor document.

    Elements are matched by local tag name, so SDK-style projects and
    projects declaring the MSBuild XML namespace are read the same way.

    Attributes:
        path: Path the document was loaded from
        root: Root element of the parsed document
    """

    def __init__(self, path: Path, root: ET.Element) -> None:
        self.path = path
        self.root = root

    @classmethod
    def load(cls, path: Path) -> DescriptorDocument:
        """Parse the document at ``path``.

        Raises:
            MalformedDescriptorError: If the file is missing or is not
                well-formed XML.
        """
        try:
            tree = ET.parse(path)
        except ET.ParseError as e:
            raise MalformedDescriptorError(path, str(e)) from e
        except FileNotFoundError as e:
            raise MalformedDescriptorError(path, "file not found") from e
        except IsADirectoryError as e:
            raise MalformedDescriptorError(path, "path is a directory") from e
        return cls(path, tree.getroot())

    def iter_elements(self, tag: str) -> Iterator[ET.Element]:
        """Yield every element named ``tag`` in document order."""
        for element in self.root.iter():
            if isinstance(element.tag, str) and _local_name(element.tag) == tag:
                yield element

    def first_value(self, tag: str) -> str | None:
        """Return the stripped text of the first ``tag`` element, if any."""
        for element in self.iter_elements(tag):
            return (element.text or "").strip()
        return None

    def attribute_values(self, tag: str, attribute: str) -> list[str]:
        """Return ``attribute`` of every ``tag`` element that declares it."""
        values = []
        for element in self.iter_elements(tag):
            value = element.get(attribute)
            if value:
                values.append(value)
        return values

    def references(self) -> tuple[Path, ...]:
        """Return canonical paths of all project references, in order."""
        return tuple(
            resolve_reference(self.path, value)
            for value in self.attribute_values(PROJECT_REFERENCE_TAG, PROJECT_REFERENCE_ATTRIBUTE)
        )


def is_project_descriptor(path: Path) -> bool:
    """Return True if ``path`` names a project descriptor by extension."""
    return has_extension(path, PROJECT_EXTENSION)


# ============================================================================
# Project descriptor
# ============================================================================


@dataclass(frozen=True)
class ProjectDescriptor:
    """Identity and markup inventory of one project.

    Instances are hashable and compared by all fields; ``path`` is the
    unique key used by the graph resolver.

    Attributes:
        path: Canonical absolute path of the descriptor
        name: Assembly name, or the descriptor's file stem
        namespace: Root namespace, or ``name``
        is_legacy_runtime_target: Whether the project targets .NET Framework 4.x
        is_ui_framework: Whether the project enables WPF or Windows Forms
        markup_files: Markup files found under the project directory
        references: Canonical paths of referenced descriptors

    Example:
        >>> project = ProjectDescriptor(
        ...     path=Path("/src/App/App.csproj"),
        ...     name="App",
        ...     namespace="Company.App",
        ... )
        >>> project.dll_name
        'App.dll'
    """
    path: Path
    name: str
    namespace: str
    is_legacy_runtime_target: bool = False
    is_ui_framework: bool = False
    markup_files: tuple[Path, ...] = field(default_factory=tuple)
    references: tuple[Path, ...] = field(default_factory=tuple)

    @property
    def dll_name(self) -> str:
        """File name of the assembly the project builds."""
        return f"{self.name}.dll"

    @classmethod
    def parse(cls, path: Path) -> ProjectDescriptor:
        """Load and parse the descriptor at ``path``.

        Raises:
            MalformedDescriptorError: If the document cannot be parsed.
        """
        canonical = normalize_path(path)
        return cls.from_document(canonical, DescriptorDocument.load(canonical))

    @classmethod
    def from_document(cls, path: Path, document: DescriptorDocument) -> ProjectDescriptor:
        """Build a descriptor from an already parsed document."""
        name = document.first_value(ASSEMBLY_NAME_TAG) or path.stem
        namespace = document.first_value(ROOT_NAMESPACE_TAG) or name

        target_framework = document.first_value(TARGET_FRAMEWORK_TAG)
        is_legacy = target_framework is not None and LEGACY_RUNTIME_MARKER in target_framework

        is_ui = any(
            (document.first_value(tag) or "").lower() == "true" for tag in UI_FRAMEWORK_TAGS
        )

        markup_files = tuple(find_files(path.parent, MARKUP_EXTENSION))

        project = cls(
            path=path,
            name=name,
            namespace=namespace,
            is_legacy_runtime_target=is_legacy,
            is_ui_framework=is_ui,
            markup_files=markup_files,
            references=document.references(),
        )
        logger.debug(
            f"Parsed project {project.name} ({len(markup_files)} markup files, "
            f"{len(project.references)} references)"
        )
        return project
