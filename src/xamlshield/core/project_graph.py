"""Project reference graph resolution.

This module computes the set of project descriptors that are transitively
referenced from an entry-point project. Resolution runs two independent
walks over the same reference structure:

1. **Discovery** (:func:`discover_projects`) records a
   :class:`ProjectDescriptor` for every reachable ``.csproj`` file. Paths
   with any other extension end their branch.
2. **Invalidation** (:func:`find_dirty_paths`) walks the structure again,
   this time through non-project files too, and marks every path that is
   reached through a non-project node. Once a branch is dirty, everything
   below it is dirty, even files that look like projects.

The resolver returns the discovered projects minus the dirty paths.

Both walks visit each path at most once, which makes them safe against
reference cycles, self-references, and diamond-shaped graphs. They are
iterative and visit nodes in the same order as a recursive preorder walk
over the references in declaration order.

Example:
    >>> from pathlib import Path
    >>> from xamlshield.core.project_graph import ProjectGraphResolver
    >>>
    >>> resolver = ProjectGraphResolver()
    >>> projects = resolver.resolve(Path("App/App.csproj"))
    >>> for project in sorted(projects, key=lambda p: p.name):
    ...     print(project.name)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from xamlshield.core.project import (
    DescriptorDocument,
    ProjectDescriptor,
    is_project_descriptor,
)
from xamlshield.utils.logger import get_logger
from xamlshield.utils.path_utils import normalize_path

logger = get_logger("xamlshield.core.project_graph")

ReferenceResolver = Callable[[Path], tuple[Path, ...]]
ProjectLoader = Callable[[Path], ProjectDescriptor]


# ============================================================================
# Reference graph
# ============================================================================


@dataclass
class ReferenceGraph:
    """Lazily computed adjacency over descriptor files.

    The graph does not know its nodes up front: the neighbors of a path are
    computed on first request by reading the descriptor at that path, and
    cached afterwards. Parsed documents are cached too, so the discovery
    and invalidation walks read each file only once.

    Attributes:
        documents: Parsed documents keyed by canonical path
        adjacency: Resolved references keyed by canonical path

    Example:
        >>> graph = ReferenceGraph()
        >>> graph.references(Path("/src/App/App.csproj"))
        (PosixPath('/src/Core/Core.csproj'),)
    """
    documents: dict[Path, DescriptorDocument] = field(default_factory=dict)
    adjacency: dict[Path, tuple[Path, ...]] = field(default_factory=dict)

    def document(self, path: Path) -> DescriptorDocument:
        """Return the parsed document at ``path``.

        Raises:
            MalformedDescriptorError: If the document cannot be parsed.
        """
        if path not in self.documents:
            self.documents[path] = DescriptorDocument.load(path)
        return self.documents[path]

    def references(self, path: Path) -> tuple[Path, ...]:
        """Return the canonical reference targets declared by ``path``.

        A non-project file that does not exist has no references. A missing
        project descriptor is an error, like any other unreadable one.

        Raises:
            MalformedDescriptorError: If the document cannot be parsed.
        """
        if path not in self.adjacency:
            if not is_project_descriptor(path) and not path.exists():
                logger.debug(f"Non-project reference {path} does not exist")
                self.adjacency[path] = ()
            else:
                self.adjacency[path] = self.document(path).references()
        return self.adjacency[path]

    def load_project(self, path: Path) -> ProjectDescriptor:
        """Build the :class:`ProjectDescriptor` for ``path`` from the cache."""
        return ProjectDescriptor.from_document(path, self.document(path))

    def to_dict(self) -> dict[str, Any]:
        """Serialize the explored part of the graph for debugging/logging."""
        return {
            "nodes": sorted(str(path) for path in self.adjacency),
            "edges": [
                {"from": str(source), "to": str(target)}
                for source, targets in self.adjacency.items()
                for target in targets
            ],
        }


# ============================================================================
# Graph walks
# ============================================================================


def discover_projects(
    entry: Path,
    references: ReferenceResolver,
    load_project: ProjectLoader,
) -> dict[Path, ProjectDescriptor]:
    """Collect every project descriptor reachable from ``entry``.

    A path that is not a project descriptor ends its branch silently. A path
    that was already recorded is skipped.

    Args:
        entry: Canonical path of the entry-point descriptor
        references: Callback returning the references of a descriptor
        load_project: Callback building the descriptor record for a path

    Returns:
        Mapping of canonical path to descriptor, in discovery order

    Raises:
        MalformedDescriptorError: If any reachable project cannot be parsed
    """
    visited: dict[Path, ProjectDescriptor] = {}
    stack = [entry]

    while stack:
        path = stack.pop()
        if not is_project_descriptor(path):
            continue
        if path in visited:
            continue

        project = load_project(path)
        visited[path] = project
        logger.info(f"Added project {project.name}")

        stack.extend(reversed(references(path)))

    return visited


def find_dirty_paths(entry: Path, references: ReferenceResolver) -> frozenset[Path]:
    """Return every path whose branch passes through a non-project node.

    The flag of ``entry`` is seeded clean. A non-project path is dirty and
    every path first reached below a dirty node inherits the dirty flag. The
    first flag assigned to a path is final.

    Args:
        entry: Canonical path of the entry-point descriptor
        references: Callback returning the references of any file

    Returns:
        The set of dirty paths

    Raises:
        MalformedDescriptorError: If any reachable file cannot be parsed
    """
    flags: dict[Path, bool] = {}
    stack: list[tuple[Path, bool]] = [(entry, False)]

    while stack:
        path, dirty = stack.pop()
        if path in flags:
            continue

        if not is_project_descriptor(path):
            dirty = True
        flags[path] = dirty

        stack.extend((child, dirty) for child in reversed(references(path)))

    return frozenset(path for path, dirty in flags.items() if dirty)


# ============================================================================
# Resolver
# ============================================================================


class ProjectGraphResolver:
    """Resolves the set of valid projects reachable from an entry point.

    Attributes:
        graph: The reference graph explored by the most recent resolution

    Example:
        >>> resolver = ProjectGraphResolver()
        >>> projects = resolver.resolve(Path("App/App.csproj"))
    """

    def __init__(self) -> None:
        self.graph = ReferenceGraph()

    def resolve(self, entry: Path) -> list[ProjectDescriptor]:
        """Discover and prune the projects reachable from ``entry``.

        Every call starts from an empty graph, so repeated calls over an
        unchanged file system return equal results.

        Args:
            entry: Path of the entry-point descriptor

        Returns:
            Descriptors of the valid projects, in no particular order

        Raises:
            MalformedDescriptorError: If any descriptor on the walk cannot be
                parsed. No partial result is returned.
        """
        entry_path = normalize_path(entry)
        self.graph = ReferenceGraph()

        discovered = discover_projects(entry_path, self.graph.references, self.graph.load_project)
        dirty = find_dirty_paths(entry_path, self.graph.references)

        for path in sorted(dirty):
            if path in discovered:
                logger.info(f"Removed project {path}")

        projects = [project for path, project in discovered.items() if path not in dirty]
        logger.debug(f"Reference graph: {self.graph.to_dict()}")
        logger.info(
            f"Project graph resolved: {len(projects)} projects "
            f"({len(discovered) - len(projects)} removed)"
        )
        return projects
