"""Create the admin identity that import batches are attributed to.

Usage:
    python admin_register.py <user_id> [--display-name "Name"] [--inactive] [--issue-token]
"""
from __future__ import annotations

import argparse
import sys

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from assessment_import.core.security import create_access_token
from assessment_import.db.session import SessionLocal
from assessment_import.models.admin_user import AdminUser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a new admin user")
    parser.add_argument("user_id", help="Identifier of the admin in the identity provider")
    parser.add_argument("--display-name", dest="display_name", help="Optional display name", default=None)
    parser.add_argument("--inactive", action="store_true", help="Create the admin user in an inactive state")
    parser.add_argument(
        "--issue-token",
        action="store_true",
        help="Print a short-lived admin bearer token for operator tooling",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    with SessionLocal() as session:
        existing = session.scalar(select(AdminUser).where(AdminUser.user_id == args.user_id))
        if existing:
            print(f"[ERROR] admin user '{args.user_id}' already exists (id={existing.id})", file=sys.stderr)
            return 1

        admin = AdminUser(
            user_id=args.user_id,
            display_name=args.display_name,
            is_active=not args.inactive,
        )
        session.add(admin)
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            print(f"[ERROR] Failed to create admin user: {exc}", file=sys.stderr)
            return 1

        session.refresh(admin)
        print(f"[OK] Created admin user '{admin.user_id}' (id={admin.id})")
        if args.issue_token:
            print(create_access_token(str(admin.id), extra={"role": "admin"}))
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
