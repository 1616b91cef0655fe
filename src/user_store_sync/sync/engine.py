"""One-shot reconciliation of user records from a source store into a destination store."""

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import ReconciliationError, StoreError
from ..schema import USERS_TABLE, Record
from ..store.base import RecordStore, Transaction


class Phase(str, Enum):
    """States of a reconciliation run, entered strictly in order."""

    CONNECTING = "connecting"
    SCHEMA_SYNC = "schema_sync"
    FETCHING = "fetching"
    REPLICATING = "replicating"
    DONE = "done"
    ABORTED = "aborted"

    def __str__(self):
        return self.value


@dataclass
class ReconciliationResult:
    """Outcome of a successful reconciliation run."""

    phase: Phase
    records_fetched: int = 0
    records_migrated: int = 0
    inserted: int = 0
    updated: int = 0
    transaction_opened: bool = False
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.phase == Phase.DONE

    def summary(self) -> str:
        if self.records_migrated == 0:
            return "Nothing to migrate: 0 records migrated"
        return (
            f"Migrated {self.records_migrated} records "
            f"({self.inserted} inserted, {self.updated} updated) "
            f"in {self.duration_seconds:.2f}s"
        )


_STEPS = {
    Phase.CONNECTING: (1, "Connecting stores"),
    Phase.SCHEMA_SYNC: (2, "Synchronizing destination schema"),
    Phase.FETCHING: (3, "Fetching source records"),
    Phase.REPLICATING: (4, "Replicating records"),
    Phase.DONE: (5, "Committing"),
}


def _log(message: str, logger: Optional[logging.Logger] = None):
    """Log message using logger if provided, otherwise print."""
    if logger:
        logger.info(message)
    else:
        print(message)


class ReconciliationEngine:
    """
    Copy every record from a source store into a destination store.

    The engine owns both stores for the duration of ``run()``: it connects
    them, and closes them on every exit path. The destination ends up either
    with all source records merged in by id (one committed transaction) or
    exactly as it was before the run.

    Preconditions: no other writer touches the destination during the run,
    and the full source table fits in memory.
    """

    def __init__(self, source: RecordStore, destination: RecordStore, logger: Optional[logging.Logger] = None):
        self.source = source
        self.destination = destination
        self.logger = logger
        self.phase: Optional[Phase] = None

    def _enter(self, phase: Phase):
        self.phase = phase
        step, label = _STEPS[phase]
        _log(f"\n[{step}/5] {label}...", self.logger)

    def _abort(self, error: StoreError) -> ReconciliationError:
        failed_phase = self.phase
        self.phase = Phase.ABORTED
        _log(f"  ❌ Aborted during {failed_phase}: {error}", self.logger)
        return ReconciliationError(failed_phase, cause=error)

    def run(self) -> ReconciliationResult:
        """
        Execute one reconciliation run.

        Returns:
            ReconciliationResult in the DONE phase

        Raises:
            ReconciliationError: On the first failure in any phase. ``error.phase``
                names the failing phase; the store error is chained as ``__cause__``.
        """
        started = time.monotonic()
        result = ReconciliationResult(phase=Phase.CONNECTING)

        with ExitStack() as stack:
            try:
                self._connect(stack)
                self._sync_schema()
                records = self._fetch()
            except StoreError as e:
                raise self._abort(e) from e

            result.records_fetched = len(records)
            if not records:
                _log("  ✓ Nothing to migrate", self.logger)
            else:
                try:
                    self._replicate(records, result)
                except StoreError as e:
                    raise self._abort(e) from e

        self.phase = Phase.DONE
        result.phase = Phase.DONE
        result.duration_seconds = time.monotonic() - started
        _log(f"  ✓ {result.summary()}", self.logger)
        return result

    def _connect(self, stack: ExitStack):
        self._enter(Phase.CONNECTING)
        stack.enter_context(self.source)
        _log(f"  ✓ Source: {self.source.display_name}", self.logger)
        stack.enter_context(self.destination)
        _log(f"  ✓ Destination: {self.destination.display_name}", self.logger)

    def _sync_schema(self):
        self._enter(Phase.SCHEMA_SYNC)
        changed = self.destination.ensure_schema(USERS_TABLE)
        if changed:
            _log(f"  ✓ Destination table '{USERS_TABLE.table_name}' created or migrated", self.logger)
        else:
            _log(f"  ✓ Destination table '{USERS_TABLE.table_name}' already up to date", self.logger)

    def _fetch(self) -> list[Record]:
        self._enter(Phase.FETCHING)
        records = self.source.fetch_all()
        _log(f"  ✓ Fetched {len(records)} records from source", self.logger)
        return records

    def _replicate(self, records: list[Record], result: ReconciliationResult):
        self._enter(Phase.REPLICATING)
        tx: Transaction = self.destination.begin_transaction()
        result.transaction_opened = True

        # Any failure below leaves the block with the transaction still active,
        # which rolls it back before the error propagates
        with tx:
            for record in records:
                tx.upsert(record)
            _log(f"  ✓ Upserted {len(records)} records ({tx.inserted} new, {tx.updated} existing)", self.logger)

            self._enter(Phase.DONE)
            tx.commit()

        result.records_migrated = tx.inserted + tx.updated
        result.inserted = tx.inserted
        result.updated = tx.updated
        _log("  ✓ Transaction committed", self.logger)
