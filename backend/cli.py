#!/usr/bin/env python3
"""
Homelab Scrubber CLI - redact operator-identifying details before publishing

Usage:
    python cli.py < input.md > output.md
    cat input.md | python cli.py --report
    python cli.py --file input.md --output output.md
    python cli.py --validate output.md
    python cli.py --file input.md --preserve-structure --no-role-names

Exit codes:
    0 = success / content is properly sanitized
    1 = validation found issues
    2 = error (file not found, bad catalog, invalid options)
"""

import argparse
import logging
import sys
from pathlib import Path

from config import get_settings
from scrubber.catalog import CatalogError, IdentifierCatalog, get_catalog, load_catalog
from scrubber.pipeline import SubstitutionPipeline
from scrubber.report import build_report, format_report
from scrubber.validator import ContextualValidator
from schemas.entities import SanitizationOptions

logger = logging.getLogger(__name__)


class InputError(Exception):
    """Raised for problems at the file/stream boundary."""


def _read_text(path: str) -> str:
    file_path = Path(path)
    if not file_path.is_file():
        raise InputError(f"File not found: {path}")
    try:
        return file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputError(f"Cannot read {path}: {exc}") from exc


def _read_input(args) -> str:
    if args.file:
        return _read_text(args.file)
    if sys.stdin.isatty():
        raise InputError("No input provided. Use --file or pipe content.")
    return sys.stdin.read()


def _write_output(args, text: str) -> None:
    if args.output:
        try:
            Path(args.output).write_text(text, encoding="utf-8")
        except OSError as exc:
            raise InputError(f"Cannot write {args.output}: {exc}") from exc
    else:
        sys.stdout.write(text)


def _resolve_catalog(args, settings) -> IdentifierCatalog:
    path = args.catalog or settings.catalog_file
    if not path:
        return get_catalog()
    return load_catalog(path)


def cmd_validate(args, catalog: IdentifierCatalog) -> int:
    """Validate a file without sanitizing it"""
    content = _read_text(args.validate)
    result = ContextualValidator(catalog).validate(content)

    if args.json:
        print(build_report(validation=result).model_dump_json(indent=2))
    elif result.is_valid:
        print("Content is properly sanitized.")
    else:
        print("Validation failed:")
        for issue in result.issues:
            print(f"  - {issue.message}")

    return 0 if result.is_valid else 1


def cmd_sanitize(args, catalog: IdentifierCatalog, options: SanitizationOptions) -> int:
    """Sanitize stdin or --file into stdout or --output"""
    content = _read_input(args)
    pipeline = SubstitutionPipeline(catalog)

    if not args.report:
        _write_output(args, pipeline.sanitize(content, options))
        return 0

    result = pipeline.sanitize_with_report(content, options)
    _write_output(args, result.sanitized_text)
    sys.stdout.flush()

    report = build_report(sanitization=result)
    if args.json:
        print(report.model_dump_json(indent=2), file=sys.stderr)
    else:
        print("\n" + format_report(report), file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="homelab-scrubber",
        description="Redact private addresses, host names, domains and user names from a document",
    )
    parser.add_argument("--file", "-f", help="Input file path (default: stdin)")
    parser.add_argument("--output", "-o", help="Output file path (default: stdout)")
    parser.add_argument("--validate", "-v", metavar="PATH", help="Validate a file without sanitizing")
    parser.add_argument(
        "--report", "-r", action="store_true", help="Print sanitization report to stderr"
    )
    parser.add_argument(
        "--preserve-structure",
        action="store_true",
        default=None,
        help="Keep the address shape but anonymize it (192.168.X.X)",
    )
    parser.add_argument(
        "--no-role-names",
        dest="use_role_names",
        action="store_false",
        default=None,
        help="Use <YOUR_IP> instead of role names for known addresses",
    )
    parser.add_argument("--catalog", help="JSON catalog to use instead of the built-in tables")
    parser.add_argument("--json", action="store_true", help="Print report/validation result as JSON")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    options = SanitizationOptions(
        use_role_names=(
            settings.use_role_names if args.use_role_names is None else args.use_role_names
        ),
        preserve_structure=(
            settings.preserve_structure
            if args.preserve_structure is None
            else args.preserve_structure
        ),
    )

    try:
        if args.validate and (args.file or args.output):
            raise InputError("--validate cannot be combined with --file or --output")
        if args.validate and args.report:
            raise InputError("--report cannot be combined with --validate")
        if args.json and not (args.validate or args.report):
            raise InputError("--json requires --report or --validate")
        catalog = _resolve_catalog(args, settings)
        if args.validate:
            return cmd_validate(args, catalog)
        return cmd_sanitize(args, catalog, options)
    except (InputError, CatalogError) as exc:
        logger.debug("Boundary error", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
