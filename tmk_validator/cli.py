#!/usr/bin/env python3
"""Command-line interface for the TMK validator.

Typical usage:
  tmk-validate task.json
  tmk-validate task.json --detailed --raw
  tmk-validate task.json --fix --write
  cat method.json | tmk-validate - --json

Exit status: 0 valid, 1 invalid, 2 the document could not be processed.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from tmk_validator.config import settings
from tmk_validator.pipeline.stages import ValidationReport, run_validation
from tmk_validator.services.errors import MalformedInputError, ValidatorError
from tmk_validator.services.registry import SchemaRegistry

logger = logging.getLogger("tmk_validator.cli")

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="tmk-validate", description="Validate and score TMK documents")
    p.add_argument("path", help="JSON document to check, or - for stdin")
    p.add_argument("--detailed", "-d", action="store_true", help="Show the per-field score breakdown")
    p.add_argument("--raw", "-r", action="store_true", help="Show raw schema errors when invalid")
    p.add_argument("--fix", "-f", action="store_true", help="Repair key and enum casing first")
    p.add_argument(
        "--write",
        "-w",
        action="store_true",
        help="With --fix, write the repaired document back to PATH",
    )
    p.add_argument("--json", action="store_true", help="Print the report as JSON")
    p.add_argument(
        "--schema-dir",
        default=None,
        help=f"Directory of <Model>.schema.json files (default: {settings.SCHEMA_DIR})",
    )
    p.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level")
    return p.parse_args(argv)


def report_to_dict(report: ValidationReport) -> dict:
    result = {
        "schema_name": report.schema_name,
        "valid": report.valid,
        "score": report.score,
        "max": report.max,
    }
    if report.errors is not None:
        result["errors"] = [e.to_dict() for e in report.errors]
    if report.fields is not None:
        result["fields"] = {name: asdict(info) for name, info in report.fields.items()}
    if report.normalized is not None:
        result["normalized"] = report.normalized
    return result


def render_text(report: ValidationReport) -> str:
    lines = [
        f"Results for {report.schema_name}",
        f"Status: {'VALID' if report.valid else 'INVALID'}",
    ]
    if report.errors:
        lines.append(json.dumps([e.to_dict() for e in report.errors], indent=2))
    lines.append(f"Score: {report.score} / {report.max}")
    if report.fields is not None:
        for name, info in report.fields.items():
            lines.append(f"  - {name}: {info.score}/{info.max} ({info.reason})")
    return "\n".join(lines)


def _read_input(path: str) -> str:
    try:
        if path == "-":
            return sys.stdin.read()
        return Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(f"Input is not valid UTF-8: {exc}") from exc


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )

    if args.write and (not args.fix or args.path == "-"):
        print("Error: --write needs --fix and a file path", file=sys.stderr)
        return EXIT_ERROR

    schema_dir = Path(args.schema_dir) if args.schema_dir else settings.SCHEMA_DIR
    registry = SchemaRegistry(schema_dir, settings.MODEL_NAMES)

    try:
        asyncio.run(registry.load())
        report = run_validation(
            _read_input(args.path),
            registry,
            detailed=args.detailed,
            show_raw_errors=args.raw,
            auto_fix=args.fix,
            on_collision=settings.KEY_COLLISION_MODE,
        )
    except (ValidatorError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if args.write and report.normalized is not None:
        Path(args.path).write_text(json.dumps(report.normalized, indent=2) + "\n", encoding="utf-8")
        logger.info("Wrote repaired document to %s", args.path)

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
    else:
        print(render_text(report))
    return EXIT_VALID if report.valid else EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
