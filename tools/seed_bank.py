#!/usr/bin/env python
"""Import a question bank file into the database, optionally creating an admin first.

usage: python tools/seed_bank.py [BANK_PATH] [--admin-email E --admin-password P]
"""
import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bank import DEFAULT_BANK_PATH  # noqa: E402
from db import SessionLocal  # noqa: E402
from errors import ApiError  # noqa: E402
from models import Role  # noqa: E402
from services.catalog import TestCatalog  # noqa: E402
from services.credentials import CredentialStore  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", nargs="?", default=str(DEFAULT_BANK_PATH))
    parser.add_argument("--admin-email")
    parser.add_argument("--admin-password")
    parser.add_argument("--admin-name", default="Admin")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    log = logging.getLogger("iqtest.seed")

    path = Path(args.path)
    if not path.exists():
        print(f"Error: bank not found at {path}")
        return 1

    with SessionLocal() as db:
        creator_id = None
        if args.admin_email and args.admin_password:
            store = CredentialStore(db, log)
            admin = store.get_by_email(args.admin_email)
            if admin is None:
                try:
                    admin = store.register(
                        args.admin_name, args.admin_email, args.admin_password, role=Role.ADMIN
                    )
                except ApiError as e:
                    print(f"Error: {e.detail}")
                    return 1
            creator_id = admin.id

        imported, skipped = TestCatalog(db, log).import_bank(path, creator_id)

    print(f"Imported {imported} tests ({skipped} skipped) from {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
