"""
Command-line entry point for xamlshield.

Resolves the project graph of an executable project, extracts the types
its XAML markup binds to by name, and writes a renaming manifest that
shields those types.

Example:
    Run from the command line:
    $ xamlshield --project src/App/App.csproj --input bin/Release --ignore Tests,Benchmarks
    $ python -m xamlshield.main -p src/App/App.csproj
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from xamlshield import __version__
from xamlshield.core.config import (
    DEFAULT_INPUT_DIR,
    DEFAULT_MANIFEST_FILENAME,
    DEFAULT_PLUGIN_MARKER,
    InvalidInputError,
    ManifestConfig,
    load_settings,
    parse_ignore_list,
    save_settings,
)
from xamlshield.core.orchestrator import FailureKind, ManifestOrchestrator
from xamlshield.utils.logger import VALID_LOG_LEVELS, setup_logger

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xamlshield",
        description=(
            "Generate a renaming manifest that shields the types XAML markup "
            "refers to by name."
        ),
    )
    parser.add_argument(
        "-p",
        "--project",
        help="Path to the executable .csproj file.",
    )
    parser.add_argument(
        "-i",
        "--input",
        help=f'Renaming tool input directory (default: "{DEFAULT_INPUT_DIR}").',
    )
    parser.add_argument(
        "-o",
        "--output",
        help='Renaming tool output directory (default: "<input>/Obfuscated/").',
    )
    parser.add_argument(
        "--ignore",
        help='Comma-separated project names to leave out, e.g. "Foo,Bar,Baz".',
    )
    parser.add_argument(
        "--exclude-ui-projects",
        action="store_true",
        default=None,
        help="Leave out projects that enable WPF or Windows Forms.",
    )
    parser.add_argument(
        "--exclude-plugins",
        action="store_true",
        default=None,
        help="Leave out projects whose name contains the plugin marker.",
    )
    parser.add_argument(
        "--plugin-marker",
        help=f'Name fragment identifying plugin projects (default: "{DEFAULT_PLUGIN_MARKER}").',
    )
    parser.add_argument(
        "--search-path",
        action="append",
        dest="search_paths",
        metavar="DIR",
        help="Additional assembly search path for the renaming tool (repeatable).",
    )
    parser.add_argument(
        "-m",
        "--manifest",
        help=f'File the manifest is written to (default: "{DEFAULT_MANIFEST_FILENAME}").',
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help="JSON settings file; command-line options override its values.",
    )
    parser.add_argument(
        "--save-settings",
        type=Path,
        metavar="FILE",
        help="Write the merged settings to this JSON file before running.",
    )
    parser.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Fail instead of replacing an existing manifest file.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of projects scanned concurrently (default: 1).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        help="Console log level (default: INFO).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write a detailed log to this file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Shortcut for --log-level DEBUG.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def build_config(args: argparse.Namespace) -> ManifestConfig:
    """Merge command-line arguments over the optional settings file.

    Raises:
        InvalidInputError: If the settings file cannot be loaded
    """
    config = load_settings(args.settings) if args.settings else ManifestConfig()

    if args.project:
        config.entry_project = Path(args.project)
    if args.input:
        config.input_dir = args.input
    if args.output:
        config.output_dir = args.output
    if args.ignore is not None:
        config.ignored_modules = parse_ignore_list(args.ignore)
    if args.exclude_ui_projects:
        config.include_ui_projects = False
    if args.exclude_plugins:
        config.include_plugins = False
    if args.plugin_marker:
        config.plugin_marker = args.plugin_marker
    if args.search_paths:
        config.search_paths = list(args.search_paths)
    if args.manifest:
        config.manifest_path = Path(args.manifest)
    if args.workers is not None:
        config.max_workers = args.workers
    if args.no_overwrite:
        config.overwrite = False

    return config


def main(argv: list[str] | None = None) -> int:
    """
    Run manifest generation.

    Returns:
        Exit code: 0 on success, 2 for invalid input, 1 for any other failure.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else args.log_level
    logger = setup_logger("xamlshield", level=level, log_file=args.log_file)
    logger.debug(f"xamlshield {__version__} starting")

    try:
        config = build_config(args)
    except InvalidInputError as exc:
        logger.error(str(exc))
        return EXIT_INVALID_INPUT

    if args.save_settings:
        try:
            save_settings(config, args.save_settings)
        except OSError as exc:
            logger.error(f"Saving settings to {args.save_settings} failed: {exc}")
            return EXIT_FAILURE

    result = ManifestOrchestrator(config).run()

    # Failures were already logged by the orchestrator
    if not result.success:
        if result.failure is FailureKind.INVALID_INPUT:
            return EXIT_INVALID_INPUT
        return EXIT_FAILURE

    print(
        f"Config saved to {result.output_path}, "
        f"{len(result.included_projects)} included"
    )
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
