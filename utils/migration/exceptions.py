"""
Migration-specific exceptions for better error handling.

Provides specific exception types for the fatal failure modes of
db:migrate, db:reset and db:seed, enabling better error messages,
logging and exit codes in the CLI.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

from typing import Optional


class MigrationError(Exception):
    """Base exception for data migration errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[dict] = None):
        """
        Initialize migration error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional context (table name, statement index, etc.)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class DatabaseConnectionError(MigrationError):
    """Raised when a source or destination store cannot be opened."""

    def __init__(self, url: str, reason: str, message: Optional[str] = None):
        super().__init__(
            message or f"Failed to connect to database {url}: {reason}",
            error_code="CONNECTION_FAILED",
            context={"url": url, "reason": reason}
        )
        self.url = url
        self.reason = reason


class SchemaIntrospectionError(MigrationError):
    """Raised when a table's columns cannot be discovered."""

    def __init__(self, table_name: str, reason: str, message: Optional[str] = None):
        super().__init__(
            message or f"Failed to introspect columns of table '{table_name}': {reason}",
            error_code="INTROSPECTION_FAILED",
            context={"table": table_name, "reason": reason}
        )
        self.table_name = table_name
        self.reason = reason


class StatementBuildError(MigrationError):
    """Raised when an INSERT statement cannot be built."""

    def __init__(self, table_name: str, reason: str):
        super().__init__(
            f"Failed to build INSERT statement for table '{table_name}': {reason}",
            error_code="STATEMENT_BUILD_FAILED",
            context={"table": table_name, "reason": reason}
        )
        self.table_name = table_name


class RowInsertError(MigrationError):
    """Raised when a row fails to insert with a non-recoverable error."""

    def __init__(self, table_name: str, row_number: int, reason: str):
        super().__init__(
            f"Failed to insert row {row_number} into table '{table_name}': {reason}",
            error_code="ROW_INSERT_FAILED",
            context={"table": table_name, "row_number": row_number, "reason": reason}
        )
        self.table_name = table_name
        self.row_number = row_number


class TransactionError(MigrationError):
    """Raised when a destination transaction cannot be opened or committed."""

    def __init__(self, table_name: Optional[str], action: str, reason: str):
        target = f" for table '{table_name}'" if table_name else ""
        super().__init__(
            f"Failed to {action} transaction{target}: {reason}",
            error_code="TRANSACTION_FAILED",
            context={"table": table_name, "action": action, "reason": reason}
        )
        self.table_name = table_name
        self.action = action


class ResetError(MigrationError):
    """Raised when a store reset fails and is rolled back."""

    def __init__(self, table_name: str, reason: str):
        super().__init__(
            f"Failed to reset table '{table_name}': {reason}",
            error_code="RESET_FAILED",
            context={"table": table_name, "reason": reason}
        )
        self.table_name = table_name


class SeedError(MigrationError):
    """Raised when a seed script fails and is rolled back."""

    def __init__(self, reason: str, statement_index: Optional[int] = None, statement: Optional[str] = None):
        if statement_index is not None:
            msg = f"Failed to execute seed statement {statement_index}: {reason}"
        else:
            msg = f"Failed to seed database: {reason}"
        super().__init__(
            msg,
            error_code="SEED_FAILED",
            context={"statement_index": statement_index, "statement": statement}
        )
        self.statement_index = statement_index
        self.statement = statement
