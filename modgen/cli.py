# File: modgen/cli.py
"""
modgen - Command-Line Interface
================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Generate a module
    modgen generate User name:string email!:string age?:number

    # Enum, reference and structured array fields; skip two artifacts
    modgen g Order status[pending,paid] customer:objectid:User \\
        items:array:object:sku:string:qty:number --skip constants interface

    # Legacy form (no command)
    modgen Product title:string price:number file:true

    # Rebuild documentation for modules already on disk
    modgen update-docs user order --no-swagger

    # Export the remote Postman collection
    modgen pull-postman -o postman/backup.json

Global options (-v, -q) go before the command.  Generate options may also
follow the field tokens.

Exit codes:
    0 - success (including "nothing to do" warnings)
    1 - validation error
    2 - generation / export error
    3 - remote (Postman API) error
    4 - input / configuration error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from modgen.config import load_config
from modgen.docs import update_existing_modules_documentation
from modgen.generator import GenerationReport, ModuleGenerator
from modgen.models import GeneratorConfig
from modgen.postman import DEFAULT_FULL_COLLECTION_PATH, save_full_postman_collection
from modgen.postman_api import PostmanApiClient, PostmanApiError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_REMOTE_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

GENERATE_COMMANDS: frozenset = frozenset({"generate", "g"})
DOCS_COMMANDS: frozenset = frozenset({"update-docs", "docs"})
PULL_COMMAND: str = "pull-postman"
COMMANDS: frozenset = GENERATE_COMMANDS | DOCS_COMMANDS | {PULL_COMMAND}


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root modgen logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity >= 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("modgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_documentation_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by ``generate`` and ``update-docs``."""
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="JSON or YAML settings file.",
    )
    parser.add_argument(
        "--modules-dir",
        default=None,
        metavar="DIR",
        help="Modules directory (default: src/app/modules).",
    )
    parser.add_argument(
        "--no-postman",
        dest="update_postman",
        action="store_const",
        const=False,
        default=None,
        help="Skip Postman collection generation.",
    )
    parser.add_argument(
        "--no-swagger",
        dest="update_swagger",
        action="store_const",
        const=False,
        default=None,
        help="Skip Swagger documentation generation.",
    )
    parser.add_argument(
        "--postman-dir",
        default=None,
        metavar="DIR",
        help="Postman output directory (default: postman).",
    )
    parser.add_argument(
        "--swagger-file",
        default=None,
        metavar="PATH",
        help="Swagger file path (default: swagger.json).",
    )
    parser.add_argument(
        "--api-prefix",
        default=None,
        metavar="PREFIX",
        help="URL prefix used in Postman requests (default: /api/v1).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from modgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="modgen",
        description=(
            "modgen - Express + Mongoose module generator.\n\n"
            "Scaffolds model, validation, controller, service, route, constants "
            "and interface files, registers the routes and keeps Postman and "
            "Swagger documentation in sync."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s generate User name:string email!:string age?:number\n"
            "  %(prog)s g Order status[pending,paid] customer:objectid:User\n"
            "  %(prog)s update-docs user --no-swagger\n"
            "  %(prog)s pull-postman -o postman/backup.json\n"
        ),
        allow_abbrev=False,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"modgen v{__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # --- generate ---
    generate = subparsers.add_parser(
        "generate",
        aliases=["g"],
        help="Generate a new module.",
        description=(
            "Generate a module.  Field tokens follow the name; '--skip kind...' "
            "and 'file:true' are passed through to the field parser."
        ),
        allow_abbrev=False,
    )
    generate.add_argument("name", help="Module name, e.g. User.")
    _add_documentation_options(generate)
    generate.add_argument(
        "--routes-file",
        default=None,
        metavar="PATH",
        help="Central router file (default: src/routes/index.ts).",
    )
    generate.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Fail when any field token cannot be parsed.",
    )

    # --- update-docs ---
    docs = subparsers.add_parser(
        "update-docs",
        aliases=["docs"],
        help="Rebuild Postman and Swagger documentation for existing modules.",
        allow_abbrev=False,
    )
    docs.add_argument(
        "modules",
        nargs="*",
        help="Module folders to update (default: all).",
    )
    _add_documentation_options(docs)

    # --- pull-postman ---
    pull = subparsers.add_parser(
        PULL_COMMAND,
        help="Download the remote Postman collection to a local file.",
        allow_abbrev=False,
    )
    pull.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="JSON or YAML settings file.",
    )
    pull.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        metavar="PATH",
        help=f"Output file (default: {DEFAULT_FULL_COLLECTION_PATH}).",
    )
    pull.add_argument(
        "--collection-id",
        default=None,
        metavar="ID",
        help="Collection to fetch (default: POSTMAN_COLLECTION_ID).",
    )

    return parser


def _normalize_argv(argv: Sequence[str]) -> List[str]:
    """Insert ``generate`` for the legacy ``modgen <Name> tokens...`` form."""
    args: List[str] = list(argv)
    index: int = 0
    while index < len(args) and args[index].startswith("-"):
        index += 1
    if index < len(args) and args[index] not in COMMANDS:
        args.insert(index, "generate")
    return args


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Config overrides from whichever flags the command defines."""
    overrides: Dict[str, Any] = {}
    for name in (
        "modules_dir",
        "routes_file",
        "update_postman",
        "update_swagger",
        "postman_dir",
        "swagger_file",
        "api_prefix",
    ):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    return overrides


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _exit_code_for(report: GenerationReport) -> int:
    if report.success:
        return EXIT_SUCCESS
    if report.validation_errors:
        return EXIT_VALIDATION_ERROR
    return EXIT_GENERATION_ERROR


def _run_generate(
    args: argparse.Namespace, config: GeneratorConfig, tokens: List[str]
) -> int:
    logger.info("Processing field arguments: %s", tokens)
    generator = ModuleGenerator(config, strict=args.strict)
    report: GenerationReport = generator.generate(args.name, tokens)
    print(report.summary())
    return _exit_code_for(report)


def _run_update_docs(args: argparse.Namespace, config: GeneratorConfig) -> int:
    if not config.modules_path.is_dir():
        logger.error("Modules directory not found: %s", config.modules_path)
        return EXIT_INPUT_ERROR
    updated: int = update_existing_modules_documentation(config, args.modules)
    print(f"Updated documentation for {updated} module(s).")
    return EXIT_SUCCESS


def _run_pull_postman(args: argparse.Namespace, config: GeneratorConfig) -> int:
    collection_id: Optional[str] = args.collection_id or config.postman_collection_id
    if not config.postman_api_key or not collection_id:
        logger.error(
            "POSTMAN_API_KEY and a collection id (POSTMAN_COLLECTION_ID or "
            "--collection-id) are required."
        )
        return EXIT_INPUT_ERROR

    output: Path = args.output or DEFAULT_FULL_COLLECTION_PATH
    if not output.is_absolute():
        output = config.base_dir / output

    try:
        with PostmanApiClient.from_config(config) as client:
            collection = client.fetch_collection(collection_id)
    except PostmanApiError as exc:
        logger.error("Error fetching Postman collection: %s", exc)
        return EXIT_REMOTE_ERROR

    try:
        save_full_postman_collection(collection, output)
    except OSError:
        return EXIT_GENERATION_ERROR
    print(f"Full Postman collection exported to: {output}")
    return EXIT_SUCCESS


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse *argv*, run the command and return the exit code."""
    parser: argparse.ArgumentParser = _build_parser()
    raw: List[str] = list(sys.argv[1:] if argv is None else argv)
    if not raw:
        parser.print_help(sys.stderr)
        return EXIT_INPUT_ERROR

    args, extras = parser.parse_known_args(_normalize_argv(raw))

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)

    if args.command is None:
        parser.print_usage(sys.stderr)
        return EXIT_INPUT_ERROR

    if args.command not in GENERATE_COMMANDS and extras:
        logger.error("Unrecognised arguments: %s", " ".join(extras))
        return EXIT_INPUT_ERROR

    try:
        config: GeneratorConfig = load_config(
            Path.cwd(),
            config_file=getattr(args, "config", None),
            overrides=_build_config_overrides(args),
        )
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_INPUT_ERROR

    try:
        if args.command in GENERATE_COMMANDS:
            return _run_generate(args, config, extras)
        if args.command in DOCS_COMMANDS:
            return _run_update_docs(args, config)
        return _run_pull_postman(args, config)
    except Exception as exc:
        logger.error("Error executing command: %s", exc, exc_info=True)
        return EXIT_GENERATION_ERROR


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    sys.exit(run(argv))


def main() -> None:
    """Console-script entry point."""
    cli_main()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "main",
    "run",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_REMOTE_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("modgen.cli loaded.")
