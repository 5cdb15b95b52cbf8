#!/usr/bin/env python3
# scripts/setup_inventory.py
"""
Inventory database setup.
This script is safe to run many times (idempotent).

Design notes:
- --init-db creates missing tables and seeds the bootstrap admin password
  (DEFAULT_ADMIN_PASSWORD) only if no password is stored yet.
- --reset-password always overwrites the stored admin password.
- When several flags are given they run in the order init -> reset -> purge.

Examples:
  # Create tables and the bootstrap password
  python -m scripts.setup_inventory --init-db

  # Rotate the admin password
  python -m scripts.setup_inventory --reset-password --password "N3w-Secret"

  # Drop expired database sessions
  python -m scripts.setup_inventory --purge-sessions
"""

from __future__ import annotations

import argparse
import logging
import sys

from medstock.core.database import SessionLocal, init_db
from medstock.core.security import get_password_hash
from medstock.services.credential_service import (
    get_admin_password_hash,
    set_admin_password_hash,
)
from medstock.services.session_service import DatabaseSessionStore

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Medical supply inventory setup")
    p.add_argument("--init-db", action="store_true", help="Create tables and the bootstrap admin password")
    p.add_argument("--reset-password", action="store_true", help="Overwrite the admin password")
    p.add_argument("--password", type=str, help="New admin password (with --reset-password)")
    p.add_argument("--purge-sessions", action="store_true", help="Delete expired login sessions")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    args = parse_args(argv)

    if not (args.init_db or args.reset_password or args.purge_sessions):
        print("Nothing to do. Use --init-db, --reset-password and/or --purge-sessions.")
        sys.exit(1)

    if args.reset_password and not args.password:
        raise SystemExit("--reset-password requires --password.")

    if args.init_db:
        init_db()
        print("database tables ready")

    with SessionLocal() as db:
        if args.init_db:
            get_admin_password_hash(db)
            print("admin password present")

        if args.reset_password:
            set_admin_password_hash(db, get_password_hash(args.password))
            print("admin password reset")

    if args.purge_sessions:
        removed = DatabaseSessionStore(SessionLocal).purge_expired()
        print(f"expired sessions removed: {removed}")


if __name__ == "__main__":
    main()
