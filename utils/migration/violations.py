"""
Constraint Violation Classification

Classifies destination insert errors by violation semantics. Structured
driver facilities come first (PostgreSQL SQLSTATE via psycopg2, SQLite
extended error names); the error message is inspected only as a last resort.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

from enum import Enum
from typing import Optional

from psycopg2 import errorcodes
from sqlalchemy.exc import IntegrityError


class ViolationKind(str, Enum):
    """Kinds of integrity constraint violation."""
    FOREIGN_KEY = 'foreign_key'
    UNIQUE = 'unique'
    NOT_NULL = 'not_null'
    CHECK = 'check'
    INTEGRITY = 'integrity'


# SQLSTATE class 23 is "integrity constraint violation"
POSTGRES_SQLSTATES = {
    errorcodes.FOREIGN_KEY_VIOLATION: ViolationKind.FOREIGN_KEY,
    errorcodes.UNIQUE_VIOLATION: ViolationKind.UNIQUE,
    errorcodes.NOT_NULL_VIOLATION: ViolationKind.NOT_NULL,
    errorcodes.CHECK_VIOLATION: ViolationKind.CHECK,
}
INTEGRITY_SQLSTATE_CLASS = '23'

SQLITE_ERROR_NAMES = {
    'SQLITE_CONSTRAINT_FOREIGNKEY': ViolationKind.FOREIGN_KEY,
    'SQLITE_CONSTRAINT_UNIQUE': ViolationKind.UNIQUE,
    'SQLITE_CONSTRAINT_PRIMARYKEY': ViolationKind.UNIQUE,
    'SQLITE_CONSTRAINT_NOTNULL': ViolationKind.NOT_NULL,
    'SQLITE_CONSTRAINT_CHECK': ViolationKind.CHECK,
}
SQLITE_CONSTRAINT_PREFIX = 'SQLITE_CONSTRAINT'

MESSAGE_PATTERNS = (
    ('violates foreign key constraint', ViolationKind.FOREIGN_KEY),
    ('foreign key constraint failed', ViolationKind.FOREIGN_KEY),
    ('duplicate key value violates unique constraint', ViolationKind.UNIQUE),
    ('unique constraint failed', ViolationKind.UNIQUE),
    ('violates not-null constraint', ViolationKind.NOT_NULL),
    ('not null constraint failed', ViolationKind.NOT_NULL),
    ('violates check constraint', ViolationKind.CHECK),
    ('check constraint failed', ViolationKind.CHECK),
)


def classify_violation(error: BaseException) -> Optional[ViolationKind]:
    """
    Classify an insert error.

    Args:
        error: SQLAlchemy DBAPIError or a raw DBAPI exception

    Returns:
        The violation kind, or None if the error is not a constraint violation
    """
    orig = getattr(error, 'orig', None) or error

    pgcode = getattr(orig, 'pgcode', None)
    if pgcode:
        if pgcode in POSTGRES_SQLSTATES:
            return POSTGRES_SQLSTATES[pgcode]
        if pgcode.startswith(INTEGRITY_SQLSTATE_CLASS):
            return ViolationKind.INTEGRITY
        return None

    error_name = getattr(orig, 'sqlite_errorname', None)
    if error_name:
        if error_name in SQLITE_ERROR_NAMES:
            return SQLITE_ERROR_NAMES[error_name]
        if error_name.startswith(SQLITE_CONSTRAINT_PREFIX):
            return ViolationKind.INTEGRITY
        return None

    # Last resort for drivers without structured codes
    message = str(orig).lower()
    for pattern, kind in MESSAGE_PATTERNS:
        if pattern in message:
            return kind

    if isinstance(error, IntegrityError):
        return ViolationKind.INTEGRITY
    return None


def is_recoverable(kind: Optional[ViolationKind], recoverable_kinds) -> bool:
    """Whether a classified error should skip the row rather than abort the run."""
    if kind is None:
        return False
    return kind.value in {getattr(k, 'value', k) for k in recoverable_kinds}
