# backend/app/cli/__main__.py
from __future__ import annotations

import argparse
from datetime import date
from decimal import Decimal

from app.cli.seed_demo import seed_demo
from app.db import Base, engine
from app.logging_config import configure_logging


def main() -> None:
    p = argparse.ArgumentParser(prog="python -m app.cli")
    p.add_argument("--owner-email", default="owner@demo.local")
    p.add_argument("--tenant-email", default="tenant@demo.local")
    p.add_argument("--rent", type=Decimal, default=Decimal("1000.00"))
    p.add_argument("--expiration-day", type=int, default=5)
    p.add_argument("--start", type=date.fromisoformat, default=None)
    p.add_argument("--create-schema", action="store_true", help="create tables without running migrations")
    args = p.parse_args()

    configure_logging()
    if args.create_schema:
        Base.metadata.create_all(bind=engine)

    out = seed_demo(
        owner_email=args.owner_email,
        tenant_email=args.tenant_email,
        rent=args.rent,
        expiration_day=args.expiration_day,
        start=args.start,
    )
    print(
        {
            "ok": True,
            "owner_email": out.owner_email,
            "tenant_email": out.tenant_email,
            "property_id": out.property_id,
            "contract_id": out.contract_id,
            "payments_created": out.payments_created,
        }
    )


if __name__ == "__main__":
    main()
