#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from backoffice.core.config import DATABASE_URL, DB_ECHO  # noqa: E402
from backoffice.core.database import Database  # noqa: E402
from backoffice.services.admin_bootstrap import (  # noqa: E402
    ensure_admin_users_table,
    upsert_admin_user,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cria ou atualiza um admin do back-office.")
    parser.add_argument("--email", required=True, help="Email do admin")
    parser.add_argument("--password", help="Senha do admin")
    parser.add_argument("--name", required=True, help="Nome do admin")
    parser.add_argument(
        "--role",
        default="outlet_manager",
        help="Role do admin (super_admin, outlet_manager, staff)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    database = Database(DATABASE_URL, echo=DB_ECHO)
    engine = database.connect()

    try:
        ensure_admin_users_table(engine)
    except RuntimeError as exc:
        print(str(exc))
        database.dispose()
        return 1

    db = database.session()
    try:
        admin, created = upsert_admin_user(
            db,
            email=args.email,
            name=args.name,
            role=args.role,
            password=args.password,
        )
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()
        database.dispose()

    action = "created" if created else "updated"
    print(f"Admin {action}: email={admin.email} role={admin.role}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
