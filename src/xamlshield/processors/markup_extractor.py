"""Markup-bound type extraction.

XAML markup refers to program types by name, as text. The renaming tool
cannot see those references, so every type named from markup has to be
excluded from renaming. This module recovers the qualified names of those
types from two sources per markup file:

1. The code-behind file (``MainWindow.xaml.cs`` for ``MainWindow.xaml``),
   whose namespace and class declarations name the type the markup file
   itself is compiled into.
2. The markup file, where ``xmlns:alias="clr-namespace:Ns"`` declarations
   bind aliases that are later used as ``<alias:Widget ...>``.

The scan is a line-oriented pattern heuristic, not a parser. Declarations
split over several lines are not recognized.

Example:
    >>> from xamlshield.processors.markup_extractor import MarkupTypeExtractor
    >>>
    >>> extractor = MarkupTypeExtractor()
    >>> types = extractor.extract(project)
    >>> print(sorted(types))
    ['My.App.MainWindow', 'My.App.Controls.Gauge']
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator

from xamlshield.utils.logger import get_logger
from xamlshield.utils.path_utils import paired_path

if TYPE_CHECKING:
    from xamlshield.core.project import ProjectDescriptor

logger = get_logger("xamlshield.processors.markup_extractor")

CODE_BEHIND_SUFFIX = ".cs"

# Namespaces owned by the platform are never user code
FRAMEWORK_NAMESPACE_PREFIXES = ("System", "Microsoft")

CODE_NAMESPACE_PATTERN = re.compile(r"^\s*namespace\s+([\w.]+)")
CODE_CLASS_PATTERN = re.compile(r"(?:^|[{;])\s*(?:\[[^\]]*\]\s*)*(?:\w+\s+)*class\s+(\w+)")
MARKUP_ALIAS_PATTERN = re.compile(
    r"""xmlns:(\w+)\s*=\s*["']clr-namespace:([\w.]+)(?:;[^"']*)?["']"""
)


@dataclass
class NamespaceAlias:
    """An alias declared in one markup file.

    Attributes:
        alias: The prefix used in the markup file (e.g. ``local``)
        namespace: The CLR namespace the prefix stands for
        line_number: Line of the declaration that bound the alias
    """
    alias: str
    namespace: str
    line_number: int = 0
    pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.pattern = re.compile(rf"(?<![\w.:-]){re.escape(self.alias)}:(\w+)")

    def find_types(self, line: str) -> Iterator[str]:
        """Yield ``namespace.Identifier`` for each use of the alias on ``line``."""
        for match in self.pattern.finditer(line):
            yield f"{self.namespace}.{match.group(1)}"


def is_framework_namespace(namespace: str) -> bool:
    """Return True if ``namespace`` belongs to the platform."""
    return namespace.startswith(FRAMEWORK_NAMESPACE_PREFIXES)


def _read_lines(path: Path) -> Iterator[str]:
    with path.open("r", encoding="utf-8-sig", errors="replace") as handle:
        for line in handle:
            yield line.rstrip("\r\n")


def scan_code_behind(path: Path) -> set[str]:
    """Collect ``namespace.Class`` names declared in a code-behind file.

    The most recent namespace declaration is active for the class
    declarations that follow it, on the same line or later ones. Classes
    declared before the first namespace declaration are dropped.

    Args:
        path: Path of the code-behind file

    Returns:
        Qualified class names; empty if the file does not exist

    Raises:
        OSError: If the file exists but cannot be read
    """
    types: set[str] = set()
    if not path.is_file():
        logger.debug(f"No code-behind file {path}")
        return types

    namespace: str | None = None
    for line in _read_lines(path):
        namespace_match = CODE_NAMESPACE_PATTERN.match(line)
        if namespace_match:
            namespace = namespace_match.group(1)
            line = line[namespace_match.end():]

        if namespace is None:
            continue
        class_match = CODE_CLASS_PATTERN.search(line)
        if class_match:
            types.add(f"{namespace}.{class_match.group(1)}")

    return types


def collect_aliases(lines: Iterable[str]) -> dict[str, NamespaceAlias]:
    """Build the alias table of one markup file.

    Aliases bound to platform namespaces are skipped. When an alias is
    declared again, the later declaration replaces the earlier one.

    Args:
        lines: Lines of the markup file

    Returns:
        Mapping of alias to its declaration
    """
    aliases: dict[str, NamespaceAlias] = {}
    for line_number, line in enumerate(lines, start=1):
        for match in MARKUP_ALIAS_PATTERN.finditer(line):
            alias, namespace = match.group(1), match.group(2)
            if is_framework_namespace(namespace):
                continue
            if alias in aliases:
                logger.debug(f"Alias '{alias}' redeclared on line {line_number}")
            aliases[alias] = NamespaceAlias(alias, namespace, line_number)
    return aliases


def collect_alias_usages(lines: Iterable[str], aliases: dict[str, NamespaceAlias]) -> set[str]:
    """Collect ``namespace.Identifier`` for every alias use in ``lines``."""
    types: set[str] = set()
    if not aliases:
        return types
    for line in lines:
        for namespace_alias in aliases.values():
            types.update(namespace_alias.find_types(line))
    return types


class MarkupTypeExtractor:
    """Extracts the types that markup files of a project bind to by name.

    Example:
        >>> extractor = MarkupTypeExtractor()
        >>> extractor.scan_markup_file(Path("Views/MainWindow.xaml"))
        {'My.App.Views.MainWindow', 'My.App.Controls.Gauge'}
    """

    def __init__(self) -> None:
        self._logger = logger

    def scan_markup_file(self, markup_path: Path) -> set[str]:
        """Return the shielded types contributed by one markup file.

        Raises:
            FileNotFoundError: If the markup file does not exist
            OSError: If a file exists but cannot be read
        """
        types = scan_code_behind(paired_path(markup_path, CODE_BEHIND_SUFFIX))

        lines = list(_read_lines(markup_path))
        aliases = collect_aliases(lines)
        types.update(collect_alias_usages(lines, aliases))

        self._logger.debug(
            f"{markup_path.name}: {len(aliases)} aliases, {len(types)} types"
        )
        return types

    def extract(self, project: ProjectDescriptor) -> frozenset[str]:
        """Return the union of shielded types over all markup files of ``project``.

        A markup file that disappeared since the project was scanned is
        skipped with a warning; any other read failure propagates.
        """
        types: set[str] = set()
        for markup_path in project.markup_files:
            try:
                types.update(self.scan_markup_file(markup_path))
            except FileNotFoundError:
                self._logger.warning(f"Markup file {markup_path} not found, skipping")

        self._logger.info(f"Project {project.name}: {len(types)} shielded types")
        return frozenset(types)
