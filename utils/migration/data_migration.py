"""
Data Migration Module

Copies every application table from a source store into a destination store
whose schema already exists, e.g. an autobrr SQLite database into a freshly
migrated PostgreSQL database. Tables are processed sequentially in catalog
order, over one connection per database.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from config.settings import config
from utils.migration.catalog import get_table_migration_order
from utils.migration.connections import (
    dialect_display_name,
    mask_url,
    open_connection,
    open_engine,
    to_database_url,
)
from utils.migration.copier import MigrationOutcome, copy_table
from utils.migration.migration_progress import (
    MigrationProgressTracker,
    STAGE_COMPLETE,
    STAGE_CONNECT,
    STAGE_MIGRATE_TABLES,
    STAGE_VERIFY,
)
from utils.migration.verification import count_rows, verify_migration

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Migration completed successfully!"


@dataclass
class MigrationReport:
    """Ordered per-table outcomes of one migrate run."""
    source_engine: str
    destination_engine: str
    outcomes: List[MigrationOutcome] = field(default_factory=list)
    verified: Optional[bool] = None
    verification: Dict[str, Any] = field(default_factory=dict)

    @property
    def rows_read(self) -> int:
        return sum(o.rows_read for o in self.outcomes)

    @property
    def rows_committed(self) -> int:
        return sum(o.rows_committed for o in self.outcomes)

    @property
    def rows_skipped(self) -> int:
        return sum(o.rows_skipped for o in self.outcomes)

    @property
    def rows_rolled_back(self) -> int:
        return sum(o.rows_rolled_back for o in self.outcomes)

    def outcome_for(self, table_name: str) -> Optional[MigrationOutcome]:
        """Get the outcome of one table, if it was migrated."""
        for outcome in self.outcomes:
            if outcome.table == table_name:
                return outcome
        return None


def migrate_database(
    source: str,
    destination: str,
    commit_every: Optional[int] = None,
    skip_violations: Optional[Iterable[str]] = None,
    fetch_size: Optional[int] = None,
    verify: bool = False,
    tables: Optional[List[str]] = None,
    show_progress: Optional[bool] = None
) -> MigrationReport:
    """
    Migrate all catalog tables from source to destination.

    Settings left as None fall back to configuration
    (MIGRATE_COMMIT_EVERY, MIGRATE_SKIP_VIOLATIONS, MIGRATE_FETCH_SIZE).

    Args:
        source: Source SQLAlchemy URL or SQLite file path
        destination: Destination SQLAlchemy URL or SQLite file path
        commit_every: Commit policy (1 per row, 0 per table, N per batch)
        skip_violations: Violation kinds that skip a row instead of aborting
        fetch_size: Rows fetched from the source per round trip
        verify: Compare row counts after copying
        tables: Tables to migrate (default: full catalog order)
        show_progress: Force Rich progress bars on or off

    Returns:
        MigrationReport with per-table outcomes

    Raises:
        MigrationError: On any fatal error; committed rows stay committed
    """
    if commit_every is None:
        commit_every = config.MIGRATE_COMMIT_EVERY
    if skip_violations is None:
        skip_violations = config.MIGRATE_SKIP_VIOLATIONS
    if fetch_size is None:
        fetch_size = config.MIGRATE_FETCH_SIZE
    recoverable = frozenset(skip_violations)
    table_names = list(tables) if tables is not None else get_table_migration_order()

    logger.info(
        "[Migration] Starting migration from %s to %s",
        mask_url(to_database_url(source)), mask_url(to_database_url(destination))
    )
    logger.debug(
        "[Migration] commit_every=%d fetch_size=%d recoverable=%s",
        commit_every, fetch_size, ', '.join(sorted(recoverable)) or 'none'
    )

    source_engine = None
    dest_engine = None
    try:
        with MigrationProgressTracker(total_tables=len(table_names), enabled=show_progress) as tracker:
            tracker.update_stage(STAGE_CONNECT)
            source_engine = open_engine(source)
            dest_engine = open_engine(destination)
            report = MigrationReport(
                source_engine=dialect_display_name(source_engine.dialect.name),
                destination_engine=dialect_display_name(dest_engine.dialect.name)
            )

            with open_connection(source_engine) as source_conn, \
                    open_connection(dest_engine) as dest_conn:
                tracker.update_stage(STAGE_MIGRATE_TABLES)
                for index, table_name in enumerate(table_names, 1):
                    tracker.start_table_migration(
                        table_name, index, count_rows_quietly(source_conn, table_name)
                    )
                    outcome = copy_table(
                        source_conn,
                        dest_conn,
                        table_name,
                        commit_every=commit_every,
                        recoverable=recoverable,
                        fetch_size=fetch_size,
                        progress_tracker=tracker
                    )
                    report.outcomes.append(outcome)
                    tracker.complete_table(outcome.rows_committed)
                    tracker.announce(
                        f"Migrated table '{table_name}' from "
                        f"{report.source_engine} to {report.destination_engine}"
                    )

                if verify:
                    tracker.update_stage(STAGE_VERIFY)
                    allowances = {
                        o.table: o.rows_skipped + o.rows_rolled_back for o in report.outcomes
                    }
                    report.verified, report.verification = verify_migration(
                        source_conn, dest_conn, table_names, allowances
                    )

            tracker.update_stage(STAGE_COMPLETE)
            tracker.print_summary({
                'rows_skipped': report.rows_skipped,
                'verification': report.verification
            })
            if report.verified is not False:
                tracker.announce(SUCCESS_MESSAGE)
    finally:
        if source_engine is not None:
            source_engine.dispose()
        if dest_engine is not None:
            dest_engine.dispose()

    logger.info(
        "[Migration] Migrated %d table(s): %d read, %d committed, %d skipped, %d rolled back",
        len(report.outcomes), report.rows_read, report.rows_committed,
        report.rows_skipped, report.rows_rolled_back
    )
    return report


def count_rows_quietly(conn: Connection, table_name: str) -> int:
    """Row count for progress display; 0 if the table cannot be counted."""
    try:
        return count_rows(conn, table_name)
    except SQLAlchemyError as e:
        logger.debug("[Migration] Could not count rows in %s: %s", table_name, e)
        if conn.in_transaction():
            conn.rollback()
        return 0
