"""
Violation Classifier Tests
==========================

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from utils.migration.violations import ViolationKind, classify_violation, is_recoverable


class FakePgError(Exception):
    """Stand-in for a psycopg2 error carrying a SQLSTATE."""

    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


class FakeSqliteError(Exception):
    """Stand-in for a sqlite3 error carrying an extended error name."""

    def __init__(self, message, sqlite_errorname):
        super().__init__(message)
        self.sqlite_errorname = sqlite_errorname


def wrap(orig):
    return IntegrityError("INSERT INTO t VALUES (?)", (1,), orig)


class TestPostgresCodes:
    """Test classification by SQLSTATE."""

    @pytest.mark.parametrize("pgcode,kind", [
        ("23503", ViolationKind.FOREIGN_KEY),
        ("23505", ViolationKind.UNIQUE),
        ("23502", ViolationKind.NOT_NULL),
        ("23514", ViolationKind.CHECK),
        ("23P01", ViolationKind.INTEGRITY),
    ])
    def test_sqlstate(self, pgcode, kind):
        assert classify_violation(wrap(FakePgError("constraint failed", pgcode))) == kind

    def test_code_wins_over_message(self):
        error = wrap(FakePgError("violates foreign key constraint", "23505"))
        assert classify_violation(error) == ViolationKind.UNIQUE

    def test_non_integrity_code(self):
        error = OperationalError("SELECT 1", (), FakePgError("canceling statement", "57014"))
        assert classify_violation(error) is None


class TestSqliteNames:
    """Test classification by SQLite extended error name."""

    @pytest.mark.parametrize("name,kind", [
        ("SQLITE_CONSTRAINT_FOREIGNKEY", ViolationKind.FOREIGN_KEY),
        ("SQLITE_CONSTRAINT_UNIQUE", ViolationKind.UNIQUE),
        ("SQLITE_CONSTRAINT_PRIMARYKEY", ViolationKind.UNIQUE),
        ("SQLITE_CONSTRAINT_NOTNULL", ViolationKind.NOT_NULL),
        ("SQLITE_CONSTRAINT_CHECK", ViolationKind.CHECK),
        ("SQLITE_CONSTRAINT_TRIGGER", ViolationKind.INTEGRITY),
    ])
    def test_error_name(self, name, kind):
        assert classify_violation(wrap(FakeSqliteError("constraint failed", name))) == kind

    def test_real_foreign_key_error(self):
        conn = sqlite3.connect(":memory:")
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("CREATE TABLE parent (id INTEGER PRIMARY KEY)")
        conn.execute("CREATE TABLE child (id INTEGER, parent_id INTEGER REFERENCES parent(id))")
        with pytest.raises(sqlite3.IntegrityError) as exc_info:
            conn.execute("INSERT INTO child VALUES (1, 99)")
        conn.close()
        assert classify_violation(wrap(exc_info.value)) == ViolationKind.FOREIGN_KEY


class TestMessageFallback:
    """Test classification when no structured code is available."""

    @pytest.mark.parametrize("message,kind", [
        ('insert or update on table "irc_channel" violates foreign key constraint', ViolationKind.FOREIGN_KEY),
        ("FOREIGN KEY constraint failed", ViolationKind.FOREIGN_KEY),
        ('duplicate key value violates unique constraint "users_pkey"', ViolationKind.UNIQUE),
        ("UNIQUE constraint failed: users.username", ViolationKind.UNIQUE),
        ("NOT NULL constraint failed: client.host", ViolationKind.NOT_NULL),
        ("CHECK constraint failed: port", ViolationKind.CHECK),
    ])
    def test_message(self, message, kind):
        assert classify_violation(Exception(message)) == kind

    def test_unmatched_integrity_error(self):
        assert classify_violation(wrap(Exception("something odd"))) == ViolationKind.INTEGRITY

    def test_unrelated_error(self):
        assert classify_violation(OperationalError("SELECT", (), Exception("disk I/O error"))) is None


class TestIsRecoverable:
    """Test the recoverable-set check."""

    def test_default_set(self):
        assert is_recoverable(ViolationKind.FOREIGN_KEY, {"foreign_key"})
        assert not is_recoverable(ViolationKind.UNIQUE, {"foreign_key"})

    def test_enum_members_accepted(self):
        assert is_recoverable(ViolationKind.UNIQUE, {ViolationKind.UNIQUE})

    def test_unclassified_never_recoverable(self):
        assert not is_recoverable(None, {"foreign_key", "integrity"})
