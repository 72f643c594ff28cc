"""Manifest writing with atomic file replacement.

The manifest is written to a temporary file in the destination directory
and then renamed over the target, so a reader never observes a partially
written manifest. If the atomic strategy fails, a direct write is
attempted before giving up.

Example:
    >>> writer = OutputWriter()
    >>> result = writer.write_file(Path("obfuscar_config.xml"), manifest_text)
    >>> if not result.success:
    ...     print(result.error)
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from xamlshield.utils.logger import get_logger
from xamlshield.utils.path_utils import ensure_directory, is_writable, normalize_path


@dataclass
class WriteResult:
    """Result of a single file write operation.

    Attributes:
        success: Whether the write operation succeeded.
        output_path: Final path the file was written to, or ``None`` if the
            write failed or was refused.
        original_path: The requested output path.
        error: Human-readable error message if the write failed.
        was_atomic: ``True`` if the write used the temp-file strategy,
            ``False`` if it fell back to a direct write.
        overwritten: ``True`` if an existing file was replaced.
    """

    success: bool
    output_path: Path | None
    original_path: Path
    error: str | None = None
    was_atomic: bool = False
    overwritten: bool = False


class OutputWriter:
    """Writes text files atomically, with a direct-write fallback.

    Args:
        overwrite: Whether an existing file may be replaced.
        use_atomic_writes: Whether to prefer the temp-file + rename strategy.
    """

    def __init__(self, overwrite: bool = True, use_atomic_writes: bool = True) -> None:
        self.overwrite = overwrite
        self.use_atomic_writes = use_atomic_writes
        self._logger = get_logger("xamlshield.core.output_writer")

    def _validate_write_permissions(self, output_path: Path) -> str | None:
        """Return an error message if ``output_path`` cannot be written."""
        if output_path.exists():
            if output_path.is_dir():
                return f"Output path is a directory: {output_path}"
            if not is_writable(output_path):
                return f"Output file is not writable: {output_path}"
            return None

        # Walk up to the nearest existing ancestor, it must accept new entries
        parent = output_path.parent
        while not parent.exists() and parent != parent.parent:
            parent = parent.parent
        if not is_writable(parent):
            return f"Output directory is not writable: {parent}"
        return None

    def _write_atomic(self, output_path: Path, content: str) -> None:
        """Write *content* to a temp file beside *output_path*, then rename it.

        Raises:
            OSError: On file-system errors (propagated after cleanup).
        """
        ensure_directory(output_path.parent)
        temp_path: str | None = None

        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                delete=False,
                dir=str(output_path.parent),
                suffix=output_path.suffix,
            ) as fd:
                temp_path = fd.name
                fd.write(content)
                fd.flush()
                os.fsync(fd.fileno())

            shutil.move(temp_path, str(output_path))
            self._logger.debug(f"Atomic write: renamed {temp_path} -> {output_path}")
        except OSError as exc:
            self._logger.error(f"Atomic write failed for {output_path}: {exc}")
            if temp_path is not None and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    self._logger.error(f"Failed to clean up temp file: {temp_path}")
            raise

    def _write_direct(self, output_path: Path, content: str) -> None:
        """Write *content* directly to *output_path* (non-atomic fallback)."""
        ensure_directory(output_path.parent)
        output_path.write_text(content, encoding="utf-8")
        self._logger.debug(f"Direct write succeeded: {output_path}")

    def write_file(self, output_path: Path, content: str) -> WriteResult:
        """Write *content* to *output_path*.

        Returns:
            A :class:`WriteResult` describing the outcome. File system
            errors are reported in the result instead of being raised.
        """
        original_path = output_path

        try:
            output_path = normalize_path(output_path)
        except ValueError as exc:
            return WriteResult(
                success=False,
                output_path=None,
                original_path=original_path,
                error=f"Invalid output path: {exc}",
            )

        permission_error = self._validate_write_permissions(output_path)
        if permission_error:
            return WriteResult(
                success=False,
                output_path=None,
                original_path=original_path,
                error=permission_error,
            )

        existed = output_path.exists()
        if existed and not self.overwrite:
            return WriteResult(
                success=False,
                output_path=None,
                original_path=original_path,
                error=f"Output file already exists: {output_path}",
            )

        was_atomic = False
        try:
            if self.use_atomic_writes:
                try:
                    self._write_atomic(output_path, content)
                    was_atomic = True
                except OSError:
                    self._logger.warning(
                        f"Atomic write failed for {output_path.name}, "
                        "falling back to direct write"
                    )
                    self._write_direct(output_path, content)
            else:
                self._write_direct(output_path, content)
        except OSError as exc:
            self._logger.error(f"Writing {output_path} failed: {exc}")
            return WriteResult(
                success=False,
                output_path=None,
                original_path=original_path,
                error=str(exc),
            )

        self._logger.info(f"Wrote {output_path} [atomic={was_atomic}, overwritten={existed}]")
        return WriteResult(
            success=True,
            output_path=output_path,
            original_path=original_path,
            was_atomic=was_atomic,
            overwritten=existed,
        )
