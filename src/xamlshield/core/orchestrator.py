"""Manifest generation orchestrator.

This module provides the :class:`ManifestOrchestrator` class that runs a
complete manifest generation job:

1. **Validation** (VALIDATING): check the configuration and entry project.
2. **Resolution** (RESOLVING): resolve the project reference graph.
3. **Extraction** (EXTRACTING): apply the inclusion policy and extract the
   markup-bound types of every included project, optionally on a bounded
   thread pool.
4. **Writing** (WRITING): build the manifest and write it atomically.
5. **Completion** (COMPLETED/FAILED).

State Transitions::

    PENDING -> VALIDATING -> RESOLVING -> EXTRACTING -> WRITING -> COMPLETED
                   |             |            |            |
                   v             v            v            v
                 FAILED        FAILED       FAILED       FAILED

Errors never escape :meth:`ManifestOrchestrator.run`; they are reported in
the returned :class:`ManifestResult`.

Example:
    >>> config = ManifestConfig(entry_project=Path("App/App.csproj"))
    >>> result = ManifestOrchestrator(config).run()
    >>> if result.success:
    ...     print(f"{len(result.included_projects)} projects included")
    ... else:
    ...     print(result.errors)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from xamlshield.core.config import InvalidInputError, ManifestConfig
from xamlshield.core.manifest_builder import (
    ExclusionReason,
    ManifestBuilder,
    evaluate_inclusion,
)
from xamlshield.core.output_writer import OutputWriter
from xamlshield.core.project import MalformedDescriptorError, ProjectDescriptor
from xamlshield.core.project_graph import ProjectGraphResolver
from xamlshield.processors.markup_extractor import MarkupTypeExtractor
from xamlshield.utils.logger import get_logger

logger = get_logger("xamlshield.core.orchestrator")


class JobState(Enum):
    """Phases of a manifest generation job."""
    PENDING = "pending"
    VALIDATING = "validating"
    RESOLVING = "resolving"
    EXTRACTING = "extracting"
    WRITING = "writing"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureKind(Enum):
    """Category of the error that failed a job."""
    INVALID_INPUT = "invalid_input"
    MALFORMED_DESCRIPTOR = "malformed_descriptor"
    IO_ERROR = "io_error"


@dataclass
class ManifestResult:
    """Result of a manifest generation job.

    Attributes:
        success: Whether the manifest was written
        current_state: Final state of the job
        failure: Category of the failure, if any
        output_path: Path the manifest was written to
        included_projects: Names of the projects written to the manifest
        excluded_projects: Reason each excluded project was left out, keyed by
            descriptor path
        shielded_types: Shielded type names of each included project, keyed
            by descriptor path
        errors: Error messages
        manifest: The manifest text, when it was built
    """
    success: bool = False
    current_state: JobState = JobState.PENDING
    failure: FailureKind | None = None
    output_path: Path | None = None
    included_projects: list[str] = field(default_factory=list)
    excluded_projects: dict[Path, ExclusionReason] = field(default_factory=dict)
    shielded_types: dict[Path, frozenset[str]] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    manifest: str | None = None

    @property
    def shielded_type_count(self) -> int:
        """Total number of shielded types over all included projects."""
        return sum(len(types) for types in self.shielded_types.values())


class ManifestOrchestrator:
    """Coordinates resolution, extraction, and manifest writing.

    Attributes:
        config: Configuration of the job
        resolver: Project graph resolver
        extractor: Markup type extractor
        writer: Manifest writer
    """

    def __init__(
        self,
        config: ManifestConfig,
        resolver: ProjectGraphResolver | None = None,
        extractor: MarkupTypeExtractor | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self.config = config
        self.resolver = resolver or ProjectGraphResolver()
        self.extractor = extractor or MarkupTypeExtractor()
        self.writer = writer or OutputWriter(overwrite=config.overwrite)
        self._logger = logger
        self._current_state = JobState.PENDING

    def _transition_state(self, new_state: JobState, result: ManifestResult) -> None:
        old_state = self._current_state
        self._current_state = new_state
        result.current_state = new_state
        self._logger.debug(f"State transition: {old_state.name} -> {new_state.name}")

    def _fail(self, result: ManifestResult, kind: FailureKind, message: str) -> ManifestResult:
        result.success = False
        result.failure = kind
        result.errors.append(message)
        self._logger.error(message)
        self._transition_state(JobState.FAILED, result)
        return result

    def select_projects(
        self,
        projects: list[ProjectDescriptor],
        result: ManifestResult,
    ) -> list[ProjectDescriptor]:
        """Apply the inclusion policy, recording exclusions in ``result``.

        Returns:
            Included projects sorted by name, then path
        """
        included = []
        for project in sorted(projects, key=lambda p: (p.name, str(p.path))):
            reason = evaluate_inclusion(project, self.config)
            if reason is None:
                included.append(project)
            else:
                result.excluded_projects[project.path] = reason
                self._logger.info(f"Excluded project {project.name}: {reason.value}")
        return included

    def extract_types(self, projects: list[ProjectDescriptor]) -> dict[Path, frozenset[str]]:
        """Extract the shielded types of every project.

        With ``max_workers > 1`` projects are scanned concurrently. The
        result is the same either way, since extractions share no state.
        """
        if self.config.max_workers > 1 and len(projects) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                extracted = list(pool.map(self.extractor.extract, projects))
        else:
            extracted = [self.extractor.extract(project) for project in projects]
        return {project.path: types for project, types in zip(projects, extracted)}

    def build_manifest(
        self,
        projects: list[ProjectDescriptor],
        shielded_types: dict[Path, frozenset[str]],
    ) -> ManifestBuilder:
        """Assemble the manifest for the included ``projects``."""
        builder = (
            ManifestBuilder(self.config)
            .set_log_file(self.config.renamer_log_file, xml_mapping=self.config.xml_mapping)
            .add_policy_vars()
        )
        for search_path in self.config.search_paths:
            builder.add_search_path(search_path)
        for project in projects:
            builder.add_project(project, shielded_types.get(project.path, frozenset()))
        return builder

    def run(self) -> ManifestResult:
        """Run the job and return its result."""
        result = ManifestResult()
        self._transition_state(JobState.PENDING, result)

        self._transition_state(JobState.VALIDATING, result)
        try:
            self.config.validate()
        except InvalidInputError as exc:
            return self._fail(result, FailureKind.INVALID_INPUT, str(exc))

        self._transition_state(JobState.RESOLVING, result)
        try:
            projects = self.resolver.resolve(self.config.entry_project)
        except MalformedDescriptorError as exc:
            return self._fail(result, FailureKind.MALFORMED_DESCRIPTOR, exc.message)
        except OSError as exc:
            return self._fail(result, FailureKind.IO_ERROR, f"Reading descriptors failed: {exc}")

        self._transition_state(JobState.EXTRACTING, result)
        included = self.select_projects(projects, result)
        try:
            result.shielded_types = self.extract_types(included)
        except OSError as exc:
            return self._fail(result, FailureKind.IO_ERROR, f"Reading markup failed: {exc}")
        result.included_projects = [project.name for project in included]

        self._transition_state(JobState.WRITING, result)
        builder = self.build_manifest(included, result.shielded_types)
        result.manifest = builder.to_string()
        write_result = self.writer.write_file(self.config.manifest_path, result.manifest)
        if not write_result.success:
            return self._fail(
                result,
                FailureKind.IO_ERROR,
                f"Writing manifest failed: {write_result.error}",
            )

        result.output_path = write_result.output_path
        result.success = True
        self._transition_state(JobState.COMPLETED, result)
        self._logger.info(
            f"Manifest saved to {result.output_path}, "
            f"{builder.project_count} included, {result.shielded_type_count} shielded types"
        )
        return result
