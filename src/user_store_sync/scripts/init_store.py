#!/usr/bin/env python3
"""
Initialize a user store

Creates the users table if absent and seeds the default users when the
table is empty. Intended for the first boot of the source store.

Usage:
    user-store-init                      # Source store from environment / .env
    user-store-init --store other.db     # Explicit store
    user-store-init --no-seed            # Schema only

Exit codes:
    0 - Store initialized
    1 - Store could not be opened, migrated or seeded
"""

import argparse
import sys

from user_store_sync.config import load_store_url
from user_store_sync.errors import StoreError
from user_store_sync.schema import DEFAULT_SEED_RECORDS
from user_store_sync.scripts.reconcile import get_console_logger
from user_store_sync.store import bootstrap_store, create_store


def main(argv=None):
    """CLI entry point for user-store-init command."""
    parser = argparse.ArgumentParser(description="Create the users table and seed default users")
    parser.add_argument("--env-file", help="Path to .env file")
    parser.add_argument("--store", help="Store descriptor (default: SOURCE_DATABASE_URL)")
    parser.add_argument("--no-seed", action="store_true", help="Only ensure the schema, do not seed")
    args = parser.parse_args(argv)

    logger = get_console_logger()
    try:
        url = load_store_url(env_file=args.env_file, store_url=args.store, role="source")
        with create_store(url) as store:
            seeded = bootstrap_store(store, seed_records=None if args.no_seed else DEFAULT_SEED_RECORDS, logger=logger)
    except (StoreError, ValueError) as e:
        print(f"❌ Initialization failed: {e}")
        sys.exit(1)

    print(f"✓ Store ready ({seeded} records seeded)")
    sys.exit(0)


if __name__ == "__main__":
    main()
