"""
Migration Verification

Compares per-table row counts between the source and destination after a
migrate run. Reporting only: data is never modified.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from utils.migration.statements import quote_identifier

logger = logging.getLogger(__name__)


def count_rows(conn: Connection, table_name: str) -> int:
    """Count rows of one table."""
    return conn.exec_driver_sql(f"SELECT COUNT(*) FROM {quote_identifier(table_name)}").scalar() or 0


def verify_migration(
    source_conn: Connection,
    dest_conn: Connection,
    tables: Iterable[str],
    allowances: Optional[Dict[str, int]] = None
) -> Tuple[bool, Dict[str, Any]]:
    """
    Verify migration by comparing record counts between source and destination.

    The destination must hold at least as many rows as the source, less the
    rows the run deliberately did not keep (skipped or rolled back).

    Args:
        source_conn: Open source connection
        dest_conn: Open destination connection
        tables: Table names to check
        allowances: Per-table number of rows expected to be missing

    Returns:
        Tuple of (is_valid, statistics_dict)
        - is_valid: True if no table is missing or incomplete
        - statistics_dict: Contains tables_verified, total_records and mismatches
    """
    allowances = allowances or {}
    stats: Dict[str, Any] = {
        "tables_verified": 0,
        "total_records": 0,
        "mismatches": [],
        "missing_tables": [],
        "incomplete_tables": []
    }

    if dest_conn.in_transaction():
        dest_conn.rollback()
    dest_tables = set(inspect(dest_conn).get_table_names())

    tables = list(tables)
    logger.info("[Migration] Verifying migration completeness for %d tables...", len(tables))

    for table_name in tables:
        try:
            source_count = count_rows(source_conn, table_name)
        except SQLAlchemyError as e:
            source_conn.rollback()
            logger.debug("[Migration] Cannot count source table %s, skipping: %s", table_name, e)
            continue

        if table_name not in dest_tables:
            stats["missing_tables"].append(table_name)
            stats["mismatches"].append({
                "table": table_name,
                "source_count": source_count,
                "destination_count": 0,
                "error": "Table missing in destination"
            })
            logger.error(
                "[Migration] Table %s missing in destination (source has %d rows)",
                table_name, source_count
            )
            continue

        dest_count = count_rows(dest_conn, table_name)
        expected = source_count - allowances.get(table_name, 0)

        if dest_count < expected:
            stats["incomplete_tables"].append(table_name)
            stats["mismatches"].append({
                "table": table_name,
                "source_count": source_count,
                "destination_count": dest_count,
                "expected_count": expected,
                "error": "Destination has fewer rows than expected"
            })
            logger.error(
                "[Migration] Table %s incomplete: source=%d destination=%d expected>=%d",
                table_name, source_count, dest_count, expected
            )
        elif dest_count > source_count:
            logger.info(
                "[Migration] Table %s: destination has %d more row(s) than source (pre-existing data)",
                table_name, dest_count - source_count
            )
        else:
            logger.debug(
                "[Migration] Verified %s: source=%d destination=%d", table_name, source_count, dest_count
            )

        stats["tables_verified"] += 1
        stats["total_records"] += dest_count

    if dest_conn.in_transaction():
        dest_conn.rollback()

    is_valid = not stats["mismatches"]
    if is_valid:
        logger.info(
            "[Migration] Verification passed: %d tables, %d records",
            stats["tables_verified"], stats["total_records"]
        )
    else:
        logger.error(
            "[Migration] Verification failed: %d table(s) with mismatches", len(stats["mismatches"])
        )
    return is_valid, stats
