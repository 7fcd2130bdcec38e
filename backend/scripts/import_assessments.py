"""Validate or import an external assessment export from a JSON file.

Usage:
    python import_assessments.py validate <file> --model <slug> [--source <source>]
    python import_assessments.py execute <file> --model <slug> --admin <user_id> [--source <source>]
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from sqlalchemy import select

from assessment_import.db.session import SessionLocal
from assessment_import.models.admin_user import AdminUser
from assessment_import.services.imports.batch_executor import BatchExecutor, ImportFailed, ImportRejected
from assessment_import.services.imports.validator import ImportValidator, ValidationReport


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile an external assessment export against a model")
    parser.add_argument("command", choices=("validate", "execute"))
    parser.add_argument("file", type=Path, help="Path to the JSON export")
    parser.add_argument("--model", dest="model_slug", required=True, help="Slug of the target model")
    parser.add_argument("--source", default=None, help="Source system identifier (overrides the file)")
    parser.add_argument("--admin", dest="admin_user_id", default=None, help="Admin user_id recorded as importer")
    return parser.parse_args(argv)


def _load_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def _print_report(report: ValidationReport) -> None:
    print(f"valid: {report.valid}  assessments: {report.assessment_count}")
    for match in report.question_matches:
        target = match.internal_id if match.internal_id is not None else "-"
        print(f"  {match.external_id} -> {target} [{match.band} {match.confidence:.3f}]")
    for error in report.errors:
        print(f"[ERROR] {error}", file=sys.stderr)
    for warning in report.warnings:
        print(f"[WARN] {warning}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        raw = _load_json(args.file)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"[ERROR] Could not read {args.file}: {exc}", file=sys.stderr)
        return 1

    with SessionLocal() as session:
        if args.command == "validate":
            report = ImportValidator(session).validate(raw, model_slug=args.model_slug, source=args.source)
            _print_report(report)
            return 0 if report.valid else 1

        if not args.admin_user_id:
            print("[ERROR] --admin is required for execute", file=sys.stderr)
            return 1
        admin = session.scalar(select(AdminUser).where(AdminUser.user_id == args.admin_user_id))
        if admin is None or not admin.is_active:
            print(f"[ERROR] admin user '{args.admin_user_id}' not found or inactive", file=sys.stderr)
            return 1

        try:
            summary = BatchExecutor(session).execute(
                raw,
                model_slug=args.model_slug,
                imported_by=admin,
                filename=args.file.name,
                source=args.source,
            )
            session.commit()
        except ImportRejected as exc:
            session.rollback()
            _print_report(exc.report)
            return 1
        except ImportFailed as exc:
            session.rollback()
            print(f"[ERROR] {exc.detail}", file=sys.stderr)
            return 1

        for warning in summary.warnings:
            print(f"[WARN] {warning}")
        print(
            f"[OK] Created import batch {summary.batch_id}: "
            f"{summary.imported_count} assessments, {summary.responses_imported} responses"
        )
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
