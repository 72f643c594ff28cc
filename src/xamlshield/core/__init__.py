"""Core manifest generation modules.

This package provides project descriptor parsing, project reference graph
resolution, the inclusion policy, manifest assembly, and the orchestrator
that ties them together.

Classes:
    ProjectDescriptor: Identity and markup inventory of one project
    DescriptorDocument: Read-only view of a parsed descriptor
    ProjectGraphResolver: Resolves the valid projects of a reference graph
    ReferenceGraph: Lazily computed adjacency over descriptor files
    ManifestConfig: Settings of one run
    ManifestBuilder: Builds the manifest document
    MalformedDescriptorError: Exception for unreadable descriptors
    InvalidInputError: Exception for invalid arguments or settings
"""

from xamlshield.core.config import InvalidInputError, ManifestConfig
from xamlshield.core.manifest_builder import (
    ExclusionReason,
    ManifestBuilder,
    evaluate_inclusion,
    is_included,
)
from xamlshield.core.project import (
    DescriptorDocument,
    MalformedDescriptorError,
    ProjectDescriptor,
)
from xamlshield.core.project_graph import (
    ProjectGraphResolver,
    ReferenceGraph,
    discover_projects,
    find_dirty_paths,
)

__all__ = [
    "InvalidInputError",
    "ManifestConfig",
    "ExclusionReason",
    "ManifestBuilder",
    "evaluate_inclusion",
    "is_included",
    "DescriptorDocument",
    "MalformedDescriptorError",
    "ProjectDescriptor",
    "ProjectGraphResolver",
    "ReferenceGraph",
    "discover_projects",
    "find_dirty_paths",
]
