"""
Path utilities for descriptor and markup file handling.

Every path that is used as a graph key goes through :func:`normalize_path`,
so two spellings of the same file (relative segments, symlinks, and on
Windows different letter casing) map to one key.

Examples:
    >>> from xamlshield.utils.path_utils import normalize_path, resolve_reference
    >>> entry = normalize_path("App/App.csproj")
    >>> resolve_reference(entry, r"..\\Core\\Core.csproj")
    PosixPath('/work/Core/Core.csproj')
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

# Type alias for path-like objects
PathLike = Union[str, Path]


def normalize_path(path: PathLike) -> Path:
    """
    Convert a string or Path object to a canonical absolute Path.

    Expands ``~``, resolves relative segments and symlinks, and applies the
    platform's case normalization (a no-op on POSIX systems).

    Args:
        path: A file system path as string or Path object.

    Returns:
        Canonical absolute Path object.

    Raises:
        ValueError: If path is empty or None.

    Examples:
        >>> normalize_path("./src/../App.csproj")
        PosixPath('/work/App.csproj')
    """
    if path is None or (isinstance(path, str) and not path.strip()):
        raise ValueError("Path cannot be None or empty")

    resolved = Path(path).expanduser().resolve()
    return Path(os.path.normcase(str(resolved)))


def resolve_reference(descriptor_path: Path, reference: str) -> Path:
    """
    Resolve a reference declared inside a descriptor to a canonical path.

    Build files are frequently authored on Windows, so both ``\\`` and ``/``
    are accepted as separators regardless of the host platform.

    Args:
        descriptor_path: Path of the descriptor that declares the reference.
        reference: The reference value, usually relative to the descriptor.

    Returns:
        Canonical absolute path of the referenced file.
    """
    portable = reference.strip().replace("\\", "/")
    return normalize_path(descriptor_path.parent / portable)


def has_extension(path: Path, extension: str) -> bool:
    """Return True if ``path`` ends with ``extension`` (case-insensitive)."""
    return path.suffix.lower() == extension.lower()


def paired_path(path: Path, suffix: str) -> Path:
    """
    Return the companion file that shares ``path``'s full file name.

    Examples:
        >>> paired_path(Path("Views/MainWindow.xaml"), ".cs")
        PosixPath('Views/MainWindow.xaml.cs')
    """
    return path.with_name(path.name + suffix)


def find_files(directory: Path, extension: str) -> list[Path]:
    """
    Recursively list files under ``directory`` with the given extension.

    Args:
        directory: Directory to search.
        extension: Extension including the leading dot (e.g. ".xaml").

    Returns:
        Sorted list of matching file paths. Empty if the directory is missing.
    """
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.rglob(f"*{extension}")
        if p.is_file() and has_extension(p, extension)
    )


def ensure_directory(path: Path) -> Path:
    """
    Create directory if it doesn't exist, return Path.

    Raises:
        OSError: If directory creation fails.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def is_readable(path: Path) -> bool:
    """Return True if path exists and is readable."""
    return path.exists() and os.access(path, os.R_OK)


def is_writable(path: Path) -> bool:
    """Return True if path exists and is writable."""
    return path.exists() and os.access(path, os.W_OK)
