# File: shipwright/cli.py
"""
Shipwright - Command-Line Interface
====================================

Built with the standard-library ``argparse`` module.

Usage examples::

    # Full CRUD resource: migration, entity, controller, test and views
    shipwright scaffold post id:uuid!^ title:string120! body:text author:references

    # Single artifacts
    shipwright entity post id:uuid! title:string!
    shipwright migration posts id:uuid! title:string!
    shipwright middleware request_timer

    # Preview without touching the project
    shipwright --dry-run -v scaffold post id:uuid! title:string!

Exit codes:
    0 — success
    1 — validation error
    2 — generation error (bad field spec or blueprint)
    3 — export error
    4 — input/config error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence, Tuple

from shipwright.config import GeneratorConfig, load_config
from shipwright.errors import ConfigError
from shipwright.generator import GenerationReport, ScaffoldGenerator

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root shipwright logger based on verbosity level.

    Args:
        verbosity: -1 = silent, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.CRITICAL + 1

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("shipwright")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

# command -> (positional metavar, takes field specs, help)
_COMMANDS: Dict[str, Tuple[str, bool, str]] = {
    "scaffold": ("NAME", True, "Generate migration, entity, controller, test and views."),
    "entity": ("NAME", True, "Generate an entity module."),
    "migration": ("TABLE", True, "Generate a CREATE TABLE migration."),
    "controller": ("NAME", True, "Generate a controller and its test."),
    "controller-test": ("NAME", True, "Generate a controller test only."),
    "view": ("NAME", True, "Generate a view module and HTML templates."),
    "middleware": ("NAME", False, "Generate a middleware."),
}


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from shipwright import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="shipwright",
        description=(
            "Shipwright — scaffolding generator.\n\n"
            "Field specs look like name:type[modifiers], e.g. title:string120!^ "
            "or owner:references=users(id). Modifiers: digits = length, "
            "! = not null, ^ = unique."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s scaffold post id:uuid!^ title:string120! body:text\n"
            "  %(prog)s migration comments id:uuid! post:references\n"
            "  %(prog)s --dry-run -v entity post id:uuid! title:string!\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Shipwright v{__version__}",
    )

    # --- Project ---
    project_group = parser.add_argument_group("project")
    project_group.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Config file (default: shipwright.yaml in the project directory).",
    )
    project_group.add_argument(
        "-p", "--project-dir",
        type=str,
        default=None,
        metavar="DIR",
        help="Project root (default: current directory).",
    )
    project_group.add_argument(
        "--blueprints",
        action="append",
        default=None,
        metavar="DIR",
        help="Extra blueprint directory searched before the bundled ones (repeatable).",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )
    behaviour_group.add_argument(
        "-f", "--force",
        action="store_true",
        default=False,
        help="Overwrite files that already exist.",
    )
    behaviour_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Continue even if validation reports errors.",
    )
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except the exit code.",
    )

    # --- Commands ---
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)
    for command, (metavar, takes_fields, help_text) in _COMMANDS.items():
        sub = subparsers.add_parser(command, help=help_text, description=help_text)
        sub.add_argument("name", metavar=metavar, help="Resource name.")
        if takes_fields:
            sub.add_argument(
                "fields",
                nargs="*",
                metavar="FIELD",
                help="Field spec, e.g. title:string120!",
            )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Build a config override dictionary from CLI arguments."""
    overrides: Dict[str, Any] = {}

    if args.force:
        overrides["overwrite"] = True
    if args.no_strict:
        overrides["strict_validation"] = False
    if args.fail_on_warnings:
        overrides["fail_on_warnings"] = True
    if args.blueprints:
        overrides["blueprint_dirs"] = [Path(d) for d in args.blueprints]

    return overrides


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------


def _dispatch(generator: ScaffoldGenerator, args: argparse.Namespace) -> GenerationReport:
    command: str = args.command
    fields: List[str] = list(getattr(args, "fields", []) or [])

    if command == "scaffold":
        return generator.generate_scaffold(args.name, fields)
    if command == "entity":
        return generator.generate_entity(args.name, fields)
    if command == "migration":
        return generator.generate_migration(args.name, fields)
    if command == "controller":
        return generator.generate_controller(args.name, fields)
    if command == "controller-test":
        return generator.generate_controller_test(args.name, fields)
    if command == "view":
        return generator.generate_view(args.name, fields)
    return generator.generate_middleware(args.name)


def _exit_code_for(report: GenerationReport) -> int:
    if report.success:
        return EXIT_SUCCESS
    if report.validation_errors:
        return EXIT_VALIDATION_ERROR
    if report.parse_errors or report.generation_errors:
        return EXIT_GENERATION_ERROR
    if report.export_errors:
        return EXIT_EXPORT_ERROR
    return EXIT_GENERATION_ERROR


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse *argv*, run one command and return the exit code."""
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    # --- Verbosity ---
    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    # --- Config ---
    project_dir: Optional[Path] = Path(args.project_dir) if args.project_dir else None
    config_path: Optional[Path] = Path(args.config) if args.config else None
    try:
        config: GeneratorConfig = load_config(
            config_path,
            project_root=project_dir,
            overrides=_build_config_overrides(args),
        )
    except ConfigError as exc:
        logger.error("%s", exc)
        if not args.quiet:
            print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    logger.info("Project: %s", config.project_root.resolve())
    logger.info("Command: %s %s", args.command, args.name)
    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    generator: ScaffoldGenerator = ScaffoldGenerator(config, dry_run=args.dry_run)
    report: GenerationReport = _dispatch(generator, args)

    if not args.quiet:
        print(report.summary())

    exit_code: int = _exit_code_for(report)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    return exit_code


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.
    """
    sys.exit(run(argv))


__all__: List[str] = [
    "run",
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("shipwright.cli loaded.")
