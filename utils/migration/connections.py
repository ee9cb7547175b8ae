"""
Database Connections

Engine factory for the source and destination stores. Accepts either a
SQLAlchemy URL or a bare filesystem path, which is treated as a SQLite
database file.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError

from utils.migration.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

DIALECT_DISPLAY_NAMES = {
    'sqlite': 'SQLite',
    'postgresql': 'PostgreSQL',
    'mysql': 'MySQL',
    'mariadb': 'MariaDB',
    'mssql': 'SQL Server',
    'oracle': 'Oracle',
}


def to_database_url(target: str) -> str:
    """
    Convert a CLI target into a SQLAlchemy URL.

    Args:
        target: SQLAlchemy URL or path to a SQLite database file

    Returns:
        SQLAlchemy URL string
    """
    if "://" in target:
        return target
    return f"sqlite:///{Path(target).expanduser()}"


def dialect_display_name(dialect_name: str) -> str:
    """Human-readable engine name, e.g. 'postgresql' -> 'PostgreSQL'."""
    return DIALECT_DISPLAY_NAMES.get(dialect_name, dialect_name)


def mask_url(url: str) -> str:
    """Render a URL with its password hidden, for logging."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url


def _enable_sqlite_transactions(engine: Engine) -> None:
    """
    Take over transaction control from the sqlite3 driver.

    The driver's implicit BEGIN skips DDL and breaks SAVEPOINT, so BEGIN is
    emitted explicitly instead. Foreign keys are enforced on every connection.
    """
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys = ON")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN")


def open_engine(target: str, must_exist: bool = True) -> Engine:
    """
    Create an engine for a source or destination store.

    Args:
        target: SQLAlchemy URL or path to a SQLite database file
        must_exist: Refuse to open a SQLite file that does not exist
            (sqlite3 would silently create an empty one)

    Returns:
        SQLAlchemy engine
    """
    url_str = to_database_url(target)
    try:
        url = make_url(url_str)
    except ArgumentError as e:
        raise DatabaseConnectionError(target, f"invalid database URL: {e}") from e

    if url.get_backend_name() == 'sqlite':
        database = url.database or ''
        if must_exist and database not in ('', ':memory:') and not database.startswith('file:'):
            if not Path(database).is_file():
                raise DatabaseConnectionError(
                    mask_url(url_str), f"database file does not exist: {database}"
                )

    try:
        engine = create_engine(url)
    except (ArgumentError, NoSuchModuleError, ImportError) as e:
        raise DatabaseConnectionError(mask_url(url_str), str(e)) from e

    if engine.dialect.name == 'sqlite':
        _enable_sqlite_transactions(engine)

    logger.debug("[Database] Engine created for %s", mask_url(url_str))
    return engine


def open_connection(engine: Engine) -> Connection:
    """
    Open the single connection used for a run.

    Args:
        engine: SQLAlchemy engine from open_engine()

    Returns:
        Open SQLAlchemy connection
    """
    try:
        return engine.connect()
    except SQLAlchemyError as e:
        raise DatabaseConnectionError(
            engine.url.render_as_string(hide_password=True), str(e)
        ) from e
