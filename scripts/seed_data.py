#!/usr/bin/env python3
"""
Seed a POS database with staff and a small product catalogue.

Drops all tables (unless --keep), recreates them, adds one admin, one
cashier and a handful of products, commits, and prints a bearer token
for each user so the HTTP API can be exercised straight away.

Usage:
    python3 scripts/seed_data.py
    python3 scripts/seed_data.py --config pos.yaml --keep
"""

import argparse
import logging
import sys
from decimal import Decimal
from pathlib import Path

from pos_api.auth import create_access_token
from pos_config import get_active_config
from pos_kernel.db.engine import create_tables, drop_tables, init_engine_from_url, session_scope
from pos_kernel.db.immutability import register_immutability_listeners
from pos_kernel.logging_config import configure_logging
from pos_kernel.models import Product, User, UserRole

STAFF = [
    ("Alex Admin", "admin@example.com", UserRole.ADMIN),
    ("Casey Cashier", "cashier@example.com", UserRole.CASHIER),
]

# name, barcode, price, cost, quantity, min_quantity
CATALOGUE = [
    ("Espresso", "1000", "2.50", "0.60", 200, 20),
    ("Flat White", "1001", "3.40", "0.90", 200, 20),
    ("Plain Bagel", "2000", "1.80", "0.45", 40, 10),
    ("Cream Cheese Bagel", "2001", "3.20", "0.95", 25, 10),
    ("Orange Juice", "3000", "2.90", "1.10", 12, 15),
    ("Sparkling Water", "3001", "1.50", "0.40", 4, 12),
]


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the POS database")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--keep", action="store_true", help="Do not drop existing tables")
    args = parser.parse_args()

    config = get_active_config(args.config)
    configure_logging(level=config.logging.level)
    logging.getLogger("pos_kernel").setLevel(logging.WARNING)

    engine = init_engine_from_url(config.database.url, echo=config.database.echo)
    if not args.keep:
        drop_tables(engine)
    create_tables(engine)
    register_immutability_listeners()

    tokens: list[tuple[str, str, str]] = []
    with session_scope() as session:
        users = [User(name=name, email=email, role=role.value) for name, email, role in STAFF]
        session.add_all(users)
        session.add_all(
            Product(
                name=name,
                barcode=barcode,
                price=Decimal(price),
                cost_price=Decimal(cost),
                quantity=quantity,
                min_quantity=min_quantity,
            )
            for name, barcode, price, cost, quantity, min_quantity in CATALOGUE
        )
        session.flush()
        for user in users:
            tokens.append((user.email, user.role, create_access_token(user.id, user.role, config.auth)))

    print(f"Seeded {len(STAFF)} users and {len(CATALOGUE)} products into {config.database.url}")
    for email, role, token in tokens:
        print(f"  {role:<8} {email:<22} Bearer {token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
