#!/usr/bin/env python3
"""
List user records

Prints every record of a store as a JSON array of {"id", "name"} objects,
the same payload the read service returns for GET /users.

Usage:
    user-store-list                        # Destination store from environment / .env
    user-store-list --store db.sqlite      # Explicit store
"""

import argparse
import json
import sys

from user_store_sync.config import load_store_url
from user_store_sync.errors import StoreError
from user_store_sync.store import RecordStore, create_store


def records_json(store: RecordStore, indent=None) -> str:
    """Serialize every record of a connected store as a JSON array."""
    return json.dumps([record.to_dict() for record in store.fetch_all()], indent=indent)


def main(argv=None):
    """CLI entry point for user-store-list command."""
    parser = argparse.ArgumentParser(description="Print user records as JSON")
    parser.add_argument("--env-file", help="Path to .env file")
    parser.add_argument("--store", help="Store descriptor (default: DESTINATION_DATABASE_URL)")
    parser.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    args = parser.parse_args(argv)

    try:
        url = load_store_url(env_file=args.env_file, store_url=args.store, role="destination")
        with create_store(url, read_only=True) as store:
            output = records_json(store, indent=2 if args.pretty else None)
    except (StoreError, ValueError) as e:
        print(f"❌ Listing failed: {e}", file=sys.stderr)
        sys.exit(1)

    print(output)


if __name__ == "__main__":
    main()
