#!/usr/bin/env python3
"""Validate backoffice JSON exports against the published JSON schema."""

from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from pathlib import Path
from typing import Iterable

from jsonschema import Draft202012Validator, FormatChecker, ValidationError


def _load_json(path: Path, what: str) -> dict:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"Unable to read {what} {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"{what.capitalize()} {path} is not valid JSON: {exc}") from exc


def _format_error_path(error: ValidationError) -> str:
    if not error.absolute_path:
        return "$"
    parts: Iterable[str] = ("$", *map(str, error.absolute_path))
    return ".".join(parts)


def _check_unique_ids(export: dict) -> list[str]:
    """Pagination is exhaustive and non-overlapping, so an export never repeats a row."""
    seen: set[int] = set()
    issues: list[str] = []
    for row in export.get("data") or []:
        row_id = row.get("id") if isinstance(row, dict) else None
        if row_id in seen:
            issues.append(f"duplicate row id {row_id}")
        seen.add(row_id)
    return issues


def validate_exports(paths: list[Path], schema_path: Path, fail_fast: bool) -> int:
    export_files: list[Path] = []
    for path in paths:
        if path.is_dir():
            export_files.extend(sorted(path.glob("*.json")))
        elif path.exists():
            export_files.append(path)
    if not export_files:
        print("[backoffice] No export JSON files found", file=sys.stderr)
        return 2

    schema = _load_json(schema_path, "schema file")
    validator = Draft202012Validator(schema, format_checker=FormatChecker())

    failures = 0
    processed = 0
    resource_counts: Counter[str] = Counter()

    for path in export_files:
        processed += 1
        try:
            export = _load_json(path, "export")
        except RuntimeError as exc:
            failures += 1
            print(f"[FAIL] {path}", file=sys.stderr)
            print(f"  - {exc}", file=sys.stderr)
            if fail_fast:
                break
            continue

        errors = [
            f"{_format_error_path(error)}: {error.message}"
            for error in sorted(validator.iter_errors(export), key=lambda e: list(map(str, e.path)))
        ]
        if isinstance(export, dict):
            resource_counts[str(export.get("resource", "<missing>"))] += 1
            errors.extend(_check_unique_ids(export))

        if errors:
            failures += 1
            print(f"[FAIL] {path}", file=sys.stderr)
            for item in errors:
                print(f"  - {item}", file=sys.stderr)
            if fail_fast:
                break

    print(f"Validated {processed - failures}/{len(export_files)} exports")
    if resource_counts:
        print("  Resources: " + ", ".join(f"{name}={count}" for name, count in sorted(resource_counts.items())))

    return 0 if failures == 0 else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate JSON exports against the export schema.")
    parser.add_argument("paths", nargs="+", type=Path, help="Export files or directories of *.json exports")
    parser.add_argument(
        "--schema",
        type=Path,
        default=Path("schemas/export.v1.json"),
        help="Path to the export JSON schema (default: schemas/export.v1.json)",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop after the first failing file",
    )

    args = parser.parse_args()
    try:
        return validate_exports(args.paths, args.schema, args.fail_fast)
    except RuntimeError as exc:
        print(f"[backoffice] {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
