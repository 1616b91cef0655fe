"""First-boot initialization of a record store."""

import logging
from typing import Iterable, Optional

from ..schema import DEFAULT_SEED_RECORDS, Record
from .base import RecordStore


def bootstrap_store(
    store: RecordStore,
    seed_records: Optional[Iterable[Record]] = DEFAULT_SEED_RECORDS,
    logger: Optional[logging.Logger] = None,
) -> int:
    """
    Create the users table and seed it when empty.

    The store must already be connected and writable.

    Args:
        store: Connected record store
        seed_records: Records inserted into an empty table (None or empty to skip seeding)
        logger: Optional logger for progress output

    Returns:
        Number of records seeded (0 if the table already held data or seeding was skipped)
    """
    created = store.ensure_schema()
    if logger:
        if created:
            logger.info(f"Schema for '{store.table.table_name}' created or migrated")
        else:
            logger.info(f"Schema for '{store.table.table_name}' already up to date")

    if not seed_records:
        return 0

    seeded = store.seed_if_empty(seed_records)
    if logger:
        if seeded:
            logger.info(f"Seeded {seeded} records")
        else:
            logger.info("Table already populated, skipping seed")
    return seeded
