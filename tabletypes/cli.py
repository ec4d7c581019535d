# File: tabletypes/cli.py
"""
TableTypes - Command-Line Interface
=====================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Python dataclasses into ./out/acme/db/
    python -m tabletypes dbmd.json ./out --package acme.db

    # Java records, camelCase properties and parameters
    python -m tabletypes dbmd.json ./src/main/java --package com.acme.db \\
        --target java --field-style CAMEL_CASE --param-style CAMEL_CASE

    # Settings from a file, customizations from YAML, validation only
    python -m tabletypes dbmd.json --config tabletypes.yaml \\
        --customization-file fields.yaml --validate-only

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/configuration error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, NoReturn, Optional, Sequence

from tabletypes.errors import TableTypesError
from tabletypes.models import (
    FieldNameStyle,
    NamingStyle,
    ParameterStyle,
    TargetLanguage,
)

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes")


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
    Configure the ``tabletypes`` logger.

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
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root_logger: logging.Logger = logging.getLogger("tabletypes")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _choices(enum_cls: type) -> List[str]:
    return [member.value for member in enum_cls]


def _build_parser() -> argparse.ArgumentParser:
    from tabletypes import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="tabletypes",
        description=(
            "TableTypes — generate typed table records, enums and insert/select "
            "SQL from a database metadata document."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s dbmd.json ./out --package acme.db\n"
            "  %(prog)s dbmd.json ./out --package com.acme.db --target java\n"
            "  %(prog)s dbmd.json --config tabletypes.yaml --validate-only\n"
        ),
    )

    parser.add_argument("--version", action="version", version=f"TableTypes v{__version__}")

    parser.add_argument(
        "metadata_file",
        metavar="METADATA_FILE",
        help="Database metadata document (JSON or YAML).",
    )
    parser.add_argument(
        "output_dir",
        metavar="OUTPUT_DIR",
        nargs="?",
        default=None,
        help="Root directory for generated sources. Required unless --validate-only.",
    )

    # --- Inputs ---
    input_group = parser.add_argument_group("inputs")
    input_group.add_argument(
        "--config",
        metavar="FILE",
        default=None,
        help="Generation settings file (JSON or YAML). CLI options override it.",
    )
    input_group.add_argument(
        "--customization-file",
        metavar="FILE",
        default=None,
        help=(
            "Per-field overrides keyed by 'schema.table.field' or 'table.field', "
            "each with optional propertyType, includeInType, includeInInsertType, "
            "includeInQueryType and includeInInsertSql."
        ),
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--package", dest="package_name", metavar="NAME", default=None,
        help="Package of the generated sources (required here or in --config).",
    )
    config_group.add_argument(
        "--target", choices=_choices(TargetLanguage), default=None,
        help="Language to generate (default: python).",
    )
    config_group.add_argument(
        "--schema-style", choices=_choices(NamingStyle), default=None,
        help="Naming style for schema containers.",
    )
    config_group.add_argument(
        "--table-style", choices=_choices(NamingStyle), default=None,
        help="Naming style for table definitions.",
    )
    config_group.add_argument(
        "--type-style", choices=_choices(NamingStyle), default=None,
        help="Naming style for user-defined (enum) types.",
    )
    config_group.add_argument(
        "--field-style", choices=_choices(FieldNameStyle), default=None,
        help="Naming style for generated fields.",
    )
    config_group.add_argument(
        "--param-style", choices=_choices(ParameterStyle), default=None,
        help="Parameter style in generated insert SQL.",
    )
    config_group.add_argument(
        "--schema-prefix", metavar="PREFIX", default=None,
        help="Prefix prepended to schema container names.",
    )
    config_group.add_argument(
        "--insert-suffix", metavar="SUFFIX", default=None,
        help="Suffix of insert-only table definitions (default: _Ins).",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only", action="store_true", default=False,
        help="Only validate the inputs; generate nothing.",
    )
    mode_group.add_argument(
        "--dry-run", action="store_true", default=False,
        help="Run the full pipeline but do not write files.",
    )
    mode_group.add_argument(
        "--no-strict", action="store_true", default=False,
        help="Generate despite validation errors, abandoning only failing schemas.",
    )
    mode_group.add_argument(
        "--manifest", action="store_true", default=False,
        help="Write manifest.json with file sizes and checksums.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet", action="store_true", default=False,
        help="Suppress all log output.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------

_OVERRIDE_DESTS: Dict[str, str] = {
    "package_name": "package_name",
    "target": "target",
    "schema_style": "schema_name_style",
    "table_style": "table_name_style",
    "type_style": "type_name_style",
    "field_style": "field_name_style",
    "param_style": "parameter_style",
    "schema_prefix": "schema_name_prefix",
    "insert_suffix": "insert_name_suffix",
}


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, object]:
    """Config overrides for every option given on the command line."""
    overrides: Dict[str, object] = {}
    for dest, config_key in _OVERRIDE_DESTS.items():
        value = getattr(args, dest)
        if value is not None:
            overrides[config_key] = value
    return overrides


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


def _run(args: argparse.Namespace) -> int:
    from tabletypes.generator import GenerationReport, TableTypesGenerator

    output_dir: Path = Path(args.output_dir or ".").resolve()
    generator: TableTypesGenerator = TableTypesGenerator(
        strict=not args.no_strict,
        validate_only=args.validate_only,
        dry_run=args.dry_run,
        write_manifest=args.manifest,
    )

    try:
        report: GenerationReport = generator.generate_from_files(
            metadata_path=Path(args.metadata_file),
            output_dir=output_dir,
            customization_path=Path(args.customization_file) if args.customization_file else None,
            config_path=Path(args.config) if args.config else None,
            config_overrides=_build_config_overrides(args),
        )
    except (TableTypesError, ValueError) as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    if not args.quiet:
        print(report.summary())

    if not report.success:
        if report.validation_errors and report.strict:
            return EXIT_VALIDATION_ERROR
        if report.generation_errors:
            return EXIT_GENERATION_ERROR
        if report.export_errors:
            return EXIT_EXPORT_ERROR
        return EXIT_GENERATION_ERROR
    if args.validate_only and report.validation_errors:
        return EXIT_VALIDATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse *argv*, run the pipeline and return the exit code."""
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    _setup_logging(-1 if args.quiet else args.verbose)

    if args.output_dir is None and not args.validate_only:
        logger.error("OUTPUT_DIR is required unless --validate-only is set.")
        parser.print_usage(sys.stderr)
        return EXIT_INPUT_ERROR

    logger.info("Metadata: %s", args.metadata_file)
    logger.info("Output:   %s", args.output_dir)

    exit_code: int = _run(args)
    if exit_code == EXIT_SUCCESS:
        logger.info("Completed successfully.")
    else:
        logger.error("Failed with exit code %d.", exit_code)
    return exit_code


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Console entry point; exits the process with the run's exit code."""
    sys.exit(run(argv))


main = cli_main


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "run",
    "cli_main",
    "main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("tabletypes.cli loaded.")
