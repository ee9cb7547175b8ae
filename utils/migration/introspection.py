"""
Column Introspector

Discovers table shapes at run time from connection metadata instead of
static per-table row definitions, so new columns are picked up without
touching the tool.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.types import TypeEngine

from utils.migration.exceptions import SchemaIntrospectionError
from utils.migration.statements import quote_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnDescriptor:
    """A column as reported by the source engine, 1-based position."""
    name: str
    ordinal_position: int


def introspect_columns(source_conn: Connection, table_name: str) -> List[ColumnDescriptor]:
    """
    Get the ordered columns of a source table.

    Uses the result metadata of ``SELECT * FROM <table>`` so the order
    matches what a full-table cursor returns.

    Args:
        source_conn: Open source connection
        table_name: Name of table to describe

    Returns:
        Columns in the order the source engine reports them
    """
    try:
        result = source_conn.exec_driver_sql(
            f"SELECT * FROM {quote_identifier(table_name)} LIMIT 0"
        )
        try:
            names = list(result.keys())
        finally:
            result.close()
    except SQLAlchemyError as e:
        raise SchemaIntrospectionError(table_name, str(getattr(e, 'orig', None) or e)) from e

    if not names:
        raise SchemaIntrospectionError(table_name, "source reported no columns")

    columns = [ColumnDescriptor(name=name, ordinal_position=idx) for idx, name in enumerate(names, 1)]
    logger.debug(
        "[Migration] Table %s has %d column(s): %s",
        table_name, len(columns), ', '.join(names)
    )
    return columns


def introspect_destination_types(dest_conn: Connection, table_name: str) -> Dict[str, TypeEngine]:
    """
    Get the column types of a destination table.

    Args:
        dest_conn: Open destination connection
        table_name: Name of table to reflect

    Returns:
        Mapping of column name to its reflected SQLAlchemy type
    """
    try:
        column_info = inspect(dest_conn).get_columns(table_name)
    except NoSuchTableError as e:
        raise SchemaIntrospectionError(table_name, "table does not exist in destination") from e
    except SQLAlchemyError as e:
        raise SchemaIntrospectionError(table_name, str(getattr(e, 'orig', None) or e)) from e

    if not column_info:
        raise SchemaIntrospectionError(table_name, "table does not exist in destination")

    return {col['name']: col['type'] for col in column_info}
