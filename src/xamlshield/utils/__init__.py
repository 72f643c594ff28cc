"""
Utility modules for path handling and logging.

This package provides:
- Path utilities for canonicalization and file discovery
- Logging infrastructure with console and rotating file output

Examples:
    >>> from xamlshield.utils import normalize_path, setup_logger
    >>> path = normalize_path("~/src/App/App.csproj")
    >>> logger = setup_logger("xamlshield")
"""

from .path_utils import (
    # Type alias
    PathLike,
    # Path normalization and resolution
    normalize_path,
    resolve_reference,
    # File discovery
    has_extension,
    paired_path,
    find_files,
    # Directory and permission checks
    ensure_directory,
    is_readable,
    is_writable,
)

from .logger import (
    setup_logger,
    get_logger,
    set_log_level,
    add_file_handler,
    add_console_handler,
    VALID_LOG_LEVELS,
)

__all__ = [
    "PathLike",
    "normalize_path",
    "resolve_reference",
    "has_extension",
    "paired_path",
    "find_files",
    "ensure_directory",
    "is_readable",
    "is_writable",
    "setup_logger",
    "get_logger",
    "set_log_level",
    "add_file_handler",
    "add_console_handler",
    "VALID_LOG_LEVELS",
]
