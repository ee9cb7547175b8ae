"""
Statement Builder

Builds the parameterized INSERT statement used to copy a table's rows into
the destination store. Values are bound positionally, so the column list
is emitted exactly in the order it was introspected.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

from utils.migration.exceptions import StatementBuildError


@dataclass(frozen=True)
class InsertStatement:
    """A built INSERT statement and the column order its parameters follow."""
    table: str
    columns: Tuple[str, ...]
    sql: str


def quote_identifier(name: str) -> str:
    """Double-quote an identifier, doubling any embedded quotes."""
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def build_placeholders(count: int, paramstyle: str) -> str:
    """
    Build the positional placeholder list for a DBAPI paramstyle.

    Args:
        count: Number of parameters
        paramstyle: DBAPI paramstyle of the destination driver

    Returns:
        Comma separated placeholders, e.g. "%s, %s" or "$1, $2"
    """
    if paramstyle == 'qmark':
        placeholders = ['?'] * count
    elif paramstyle in ('format', 'pyformat'):
        placeholders = ['%s'] * count
    elif paramstyle == 'numeric':
        placeholders = [f':{i}' for i in range(1, count + 1)]
    elif paramstyle == 'numeric_dollar':
        placeholders = [f'${i}' for i in range(1, count + 1)]
    else:
        raise ValueError(f"Unsupported positional paramstyle: {paramstyle}")
    return ", ".join(placeholders)


def build_insert_statement(
    table_name: str,
    columns: Sequence[str],
    paramstyle: str = 'pyformat'
) -> InsertStatement:
    """
    Build INSERT statement for one table.

    Args:
        table_name: Name of the table
        columns: Column names in introspected order
        paramstyle: DBAPI paramstyle of the destination driver

    Returns:
        InsertStatement with the SQL text and the column order it binds
    """
    if not columns:
        raise StatementBuildError(table_name, "table has no columns")

    try:
        placeholders = build_placeholders(len(columns), paramstyle)
    except ValueError as e:
        raise StatementBuildError(table_name, str(e)) from e

    columns_str = ", ".join(quote_identifier(col) for col in columns)
    sql = (
        f"INSERT INTO {quote_identifier(table_name)} ({columns_str}) "
        f"VALUES ({placeholders})"
    )
    return InsertStatement(table=table_name, columns=tuple(columns), sql=sql)


def build_insert_sql(table_name: str, columns: Sequence[str], paramstyle: str = 'pyformat') -> str:
    """Build only the INSERT statement text for one table."""
    return build_insert_statement(table_name, columns, paramstyle).sql
