"""
Transaction Committer

Owns the destination transaction while a table is copied and decides when
rows become durable. The policy is set by ``commit_every``:

- 1: commit after every successful row (default)
- 0: commit once when the table is finished
- N: commit in batches of N rows

A recoverable row failure rolls back the open transaction, which discards
every row inserted since the last commit, and opens a fresh one.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy.engine import Connection, RootTransaction
from sqlalchemy.exc import SQLAlchemyError

from utils.migration.exceptions import TransactionError

logger = logging.getLogger(__name__)


class CommitterState(Enum):
    """Lifecycle of a committer."""
    IDLE = 'idle'
    OPEN = 'open'
    ROW_FAILED = 'row_failed'
    COMMITTED = 'committed'
    ROLLED_BACK = 'rolled_back'


class TransactionCommitter:
    """Transaction state machine for one table."""

    def __init__(self, connection: Connection, table_name: str, commit_every: int = 1):
        if commit_every < 0:
            raise ValueError("commit_every must be >= 0")
        self.connection = connection
        self.table_name = table_name
        self.commit_every = commit_every
        self.state = CommitterState.IDLE
        self._transaction: Optional[RootTransaction] = None
        self._pending = 0

        self.rows_committed = 0
        self.rows_rolled_back = 0
        self.rows_skipped = 0
        self.transactions_opened = 0

    @property
    def pending_rows(self) -> int:
        """Rows inserted in the open transaction and not yet committed."""
        return self._pending

    def open(self) -> None:
        """Begin a transaction on the destination connection."""
        if self.state == CommitterState.OPEN:
            raise RuntimeError(f"Transaction for table '{self.table_name}' is already open")
        try:
            self._transaction = self.connection.begin()
        except SQLAlchemyError as e:
            raise TransactionError(self.table_name, "begin", str(e)) from e
        self._pending = 0
        self.transactions_opened += 1
        self.state = CommitterState.OPEN

    def record_success(self) -> None:
        """Count an inserted row and commit if the batch is full."""
        self._require_open()
        self._pending += 1
        if self.commit_every > 0 and self._pending >= self.commit_every:
            self._commit()
            self.open()

    def record_failure(self) -> None:
        """
        Skip the failed row.

        Rolls back the open transaction, counts discarded rows and re-opens
        so the next row starts clean.
        """
        self._require_open()
        self.state = CommitterState.ROW_FAILED
        try:
            self._transaction.rollback()
        except SQLAlchemyError as e:
            raise TransactionError(self.table_name, "roll back", str(e)) from e
        finally:
            self._transaction = None

        if self._pending:
            logger.warning(
                "[Migration] Rolled back %d uncommitted row(s) in table %s",
                self._pending, self.table_name
            )
        self.rows_rolled_back += self._pending
        self.rows_skipped += 1
        self._pending = 0
        self.open()

    def finish(self) -> None:
        """Commit the open transaction."""
        self._require_open()
        self._commit()

    def abort(self) -> None:
        """Roll back the open transaction, if any, after a fatal error."""
        if self._transaction is not None and self._transaction.is_active:
            try:
                self._transaction.rollback()
            except SQLAlchemyError as e:
                logger.error(
                    "[Migration] Rollback failed for table %s: %s", self.table_name, e
                )
        self.rows_rolled_back += self._pending
        self._pending = 0
        self._transaction = None
        self.state = CommitterState.ROLLED_BACK

    def _commit(self) -> None:
        try:
            self._transaction.commit()
        except SQLAlchemyError as e:
            self.abort()
            raise TransactionError(self.table_name, "commit", str(e)) from e
        self.rows_committed += self._pending
        self._pending = 0
        self._transaction = None
        self.state = CommitterState.COMMITTED

    def _require_open(self) -> None:
        if self.state != CommitterState.OPEN or self._transaction is None:
            raise RuntimeError(
                f"No open transaction for table '{self.table_name}' (state: {self.state.value})"
            )
