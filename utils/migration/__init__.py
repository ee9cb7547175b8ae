"""
Database Migration Utilities

This package contains the store-to-store data migration, reset and seed
tooling used by the brrctl command line.
"""

from .catalog import (
    MIGRATION_TABLES,
    RESET_TABLES,
    TableSpec,
    get_table_migration_order,
    get_table_reset_order
)
from .copier import MigrationOutcome, copy_table
from .data_migration import MigrationReport, migrate_database
from .exceptions import (
    DatabaseConnectionError,
    MigrationError,
    ResetError,
    RowInsertError,
    SchemaIntrospectionError,
    SeedError,
    StatementBuildError,
    TransactionError
)
from .introspection import ColumnDescriptor, introspect_columns
from .migration_progress import MigrationProgressTracker
from .reset import ResetOutcome, reset_database
from .seed import SeedOutcome, seed_database, split_sql_statements
from .statements import InsertStatement, build_insert_sql, build_insert_statement
from .verification import verify_migration
from .violations import ViolationKind, classify_violation

__all__ = [
    "MIGRATION_TABLES",
    "RESET_TABLES",
    "TableSpec",
    "get_table_migration_order",
    "get_table_reset_order",
    "MigrationOutcome",
    "copy_table",
    "MigrationReport",
    "migrate_database",
    "MigrationError",
    "DatabaseConnectionError",
    "SchemaIntrospectionError",
    "StatementBuildError",
    "RowInsertError",
    "TransactionError",
    "ResetError",
    "SeedError",
    "ColumnDescriptor",
    "introspect_columns",
    "MigrationProgressTracker",
    "ResetOutcome",
    "reset_database",
    "SeedOutcome",
    "seed_database",
    "split_sql_statements",
    "InsertStatement",
    "build_insert_sql",
    "build_insert_statement",
    "verify_migration",
    "ViolationKind",
    "classify_violation",
]
