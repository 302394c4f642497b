"""Storefront database management CLI.

Creates and drops the tables of relational providers configured in
``storefront/domain.toml``. The default memory provider needs neither.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_databases():
    """Create database schemas for the storefront domain."""
    from storefront.domain import storefront
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    storefront.init()
    prepared = setup_db(storefront)
    if not prepared:
        print("  No relational providers configured; nothing to create.")
    for name in prepared:
        print(f"  {name} schema ready.")
    print("Done.")


def drop_databases():
    """Drop database schemas for the storefront domain."""
    from storefront.domain import storefront
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    storefront.init()
    dropped = drop_db(storefront)
    if not dropped:
        print("  No relational providers configured; nothing to drop.")
    for name in dropped:
        print(f"  {name} schema dropped.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
