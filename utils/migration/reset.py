"""
Reset Engine

Empties every catalog table of a store and rewinds its auto-increment
counters, all inside one transaction. Nothing is changed unless the whole
reset succeeds.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from utils.migration.catalog import get_table_reset_order
from utils.migration.connections import open_connection
from utils.migration.exceptions import ResetError
from utils.migration.statements import quote_identifier

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Database reset completed successfully!"


@dataclass
class ResetOutcome:
    """Result of one reset run."""
    rows_deleted: Dict[str, int] = field(default_factory=dict)
    sequences_reset: List[str] = field(default_factory=list)
    sequences_missing: List[str] = field(default_factory=list)

    @property
    def total_rows_deleted(self) -> int:
        return sum(self.rows_deleted.values())


def _is_missing_sqlite_sequence(error: OperationalError) -> bool:
    message = str(error.orig or error).lower()
    return 'no such table' in message and 'sqlite_sequence' in message


class _SequenceResetter:
    """Per-dialect auto-increment counter reset."""

    def __init__(self, conn: Connection):
        self.conn = conn
        self.dialect = conn.dialect.name
        self._sqlite_sequence_missing = False

    def reset(self, table_name: str, outcome: ResetOutcome) -> None:
        if self.dialect == 'sqlite':
            self._reset_sqlite(table_name, outcome)
        elif self.dialect == 'postgresql':
            self._reset_postgresql(table_name, outcome)
        else:
            logger.debug("[Reset] No sequence reset for dialect %s", self.dialect)

    def _reset_sqlite(self, table_name: str, outcome: ResetOutcome) -> None:
        if self._sqlite_sequence_missing:
            outcome.sequences_missing.append(table_name)
            return
        try:
            self.conn.execute(
                text("UPDATE sqlite_sequence SET seq = 0 WHERE name = :name"),
                {"name": table_name}
            )
        except OperationalError as e:
            if not _is_missing_sqlite_sequence(e):
                raise
            # Created on first AUTOINCREMENT insert; nothing to reset before that
            logger.debug("[Reset] sqlite_sequence does not exist, skipping sequence reset")
            self._sqlite_sequence_missing = True
            outcome.sequences_missing.append(table_name)
            return
        outcome.sequences_reset.append(table_name)

    def _reset_postgresql(self, table_name: str, outcome: ResetOutcome) -> None:
        pk = inspect(self.conn).get_pk_constraint(table_name)
        pk_columns = pk.get('constrained_columns') or []
        if not pk_columns:
            logger.debug("[Reset] Table %s has no primary key, skipping sequence reset", table_name)
            outcome.sequences_missing.append(table_name)
            return

        sequence_name = self.conn.execute(
            text("SELECT pg_get_serial_sequence(:table, :column)"),
            {"table": quote_identifier(table_name), "column": pk_columns[0]}
        ).scalar()
        if not sequence_name:
            logger.debug(
                "[Reset] No sequence found for %s.%s (may not be serial)", table_name, pk_columns[0]
            )
            outcome.sequences_missing.append(table_name)
            return

        self.conn.execute(text("SELECT setval(:seq, 1, false)"), {"seq": sequence_name})
        outcome.sequences_reset.append(table_name)
        logger.debug("[Reset] Reset sequence %s (table: %s)", sequence_name, table_name)


def reset_database(engine: Engine, tables: Optional[List[str]] = None) -> ResetOutcome:
    """
    Delete all rows from the catalog tables and reset their counters.

    Args:
        engine: Destination engine from open_engine()
        tables: Tables to reset (default: catalog reset order)

    Returns:
        ResetOutcome with per-table counts

    Raises:
        DatabaseConnectionError: If the store cannot be opened
        ResetError: If any table cannot be reset; the store is left unchanged
    """
    table_names = list(tables) if tables is not None else get_table_reset_order()
    outcome = ResetOutcome()

    with open_connection(engine) as conn:
        transaction = conn.begin()
        if conn.dialect.name == 'sqlite':
            # Children may be listed after their parents
            conn.exec_driver_sql("PRAGMA defer_foreign_keys = ON")

        resetter = _SequenceResetter(conn)
        current_table = None
        try:
            for current_table in table_names:
                result = conn.exec_driver_sql(f"DELETE FROM {quote_identifier(current_table)}")
                outcome.rows_deleted[current_table] = max(result.rowcount, 0)
                logger.debug(
                    "[Reset] Deleted %d row(s) from %s",
                    outcome.rows_deleted[current_table], current_table
                )
                resetter.reset(current_table, outcome)
            current_table = None
            transaction.commit()
        except SQLAlchemyError as e:
            transaction.rollback()
            reason = str(getattr(e, 'orig', None) or e).strip()
            raise ResetError(current_table or "<commit>", reason) from e

    logger.info(
        "[Reset] Reset %d table(s): %d row(s) deleted, %d sequence(s) reset",
        len(outcome.rows_deleted), outcome.total_rows_deleted, len(outcome.sequences_reset)
    )
    return outcome
