"""
Row Streaming Copier

Copies one table from the source store into the destination store, row by
row, through a forward-only cursor. The table is never loaded into memory:
rows are fetched from the source in chunks of ``fetch_size``.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.types import Boolean, TypeEngine

from utils.migration.committer import TransactionCommitter
from utils.migration.exceptions import RowInsertError, SchemaIntrospectionError
from utils.migration.introspection import introspect_columns, introspect_destination_types
from utils.migration.statements import build_insert_statement, quote_identifier
from utils.migration.violations import classify_violation, is_recoverable

logger = logging.getLogger(__name__)

TRUTHY_STRINGS = ('1', 'true', 't', 'yes', 'y', 'on')


@dataclass
class MigrationOutcome:
    """Per-table result of a copy."""
    table: str
    rows_read: int = 0
    rows_committed: int = 0
    rows_skipped: int = 0
    rows_rolled_back: int = 0


def convert_row(
    row: Sequence[Any],
    columns: Sequence[str],
    dest_types: Dict[str, TypeEngine]
) -> Tuple[Any, ...]:
    """
    Make source values bindable for the destination.

    SQLite stores booleans as 0/1 integers, which PostgreSQL BOOLEAN columns
    reject; those are converted to Python bools. Everything else passes
    through unchanged.

    Args:
        row: Raw source row
        columns: Column names, same order as row
        dest_types: Destination column types from introspect_destination_types()

    Returns:
        Tuple of values in column order
    """
    values = []
    for col, value in zip(columns, row):
        col_type = dest_types.get(col)
        if value is not None and isinstance(col_type, Boolean) and not isinstance(value, bool):
            if isinstance(value, (int, float)):
                value = bool(value)
            elif isinstance(value, str):
                value = value.strip().lower() in TRUTHY_STRINGS
        values.append(value)
    return tuple(values)


def _stream_rows(source_conn: Connection, table_name: str, fetch_size: int):
    return source_conn.execution_options(
        stream_results=True, max_row_buffer=fetch_size
    ).exec_driver_sql(f"SELECT * FROM {quote_identifier(table_name)}")


def copy_table(
    source_conn: Connection,
    dest_conn: Connection,
    table_name: str,
    commit_every: int = 1,
    recoverable: Iterable = ('foreign_key',),
    fetch_size: int = 1000,
    progress_tracker: Optional[Any] = None
) -> MigrationOutcome:
    """
    Copy every row of one table.

    Args:
        source_conn: Open source connection
        dest_conn: Open destination connection
        table_name: Table to copy
        commit_every: Commit policy, see TransactionCommitter
        recoverable: Violation kinds that skip the row instead of aborting
        fetch_size: Rows fetched from the source per round trip
        progress_tracker: Optional MigrationProgressTracker

    Returns:
        MigrationOutcome with the table's counters
    """
    recoverable = frozenset(recoverable)
    columns = [col.name for col in introspect_columns(source_conn, table_name)]
    statement = build_insert_statement(table_name, columns, dest_conn.dialect.paramstyle)
    dest_types = introspect_destination_types(dest_conn, table_name)

    # Reflection autobegins; the committer needs a fresh transaction
    if dest_conn.in_transaction():
        dest_conn.rollback()

    outcome = MigrationOutcome(table=table_name)
    committer = TransactionCommitter(dest_conn, table_name, commit_every)
    committer.open()
    try:
        result = _stream_rows(source_conn, table_name, fetch_size)
        try:
            cursor_columns = tuple(result.keys())
            if cursor_columns != statement.columns:
                raise SchemaIntrospectionError(
                    table_name,
                    f"column order changed while reading: expected {list(statement.columns)}, "
                    f"got {list(cursor_columns)}"
                )

            for partition in result.partitions(fetch_size):
                for row in partition:
                    outcome.rows_read += 1
                    values = convert_row(row, statement.columns, dest_types)
                    try:
                        dest_conn.exec_driver_sql(statement.sql, values)
                    except SQLAlchemyError as e:
                        reason = str(getattr(e, 'orig', None) or e).strip()
                        kind = classify_violation(e)
                        if not is_recoverable(kind, recoverable):
                            raise RowInsertError(table_name, outcome.rows_read, reason) from e
                        logger.warning(
                            "[Migration] Skipping row in table %s due to %s violation: values=%r error=%s",
                            table_name, kind.value, values, reason
                        )
                        committer.record_failure()
                        if progress_tracker is not None:
                            progress_tracker.add_error(f"{table_name}: {kind.value} violation")
                    else:
                        committer.record_success()

                    if progress_tracker is not None:
                        progress_tracker.update_table_records(outcome.rows_read)
        finally:
            result.close()

        committer.finish()
    except Exception:
        committer.abort()
        raise

    outcome.rows_committed = committer.rows_committed
    outcome.rows_skipped = committer.rows_skipped
    outcome.rows_rolled_back = committer.rows_rolled_back
    logger.debug(
        "[Migration] Table %s: read=%d committed=%d skipped=%d rolled_back=%d",
        table_name, outcome.rows_read, outcome.rows_committed,
        outcome.rows_skipped, outcome.rows_rolled_back
    )
    return outcome
