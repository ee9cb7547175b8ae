"""
Command Line Tests
==================

Exit codes and stdout messages of each brrctl action.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

from unittest.mock import patch

import pytest

from conftest import count_table, create_sqlite_db
import main
from utils.release_check import ReleaseLookupError


SEED_SQL = (
    "INSERT INTO \"users\" (username, password) VALUES ('admin', 'hash');\n"
    "INSERT INTO \"filter\" (enabled, name) VALUES (1, 'movies');\n"
)


pytestmark = pytest.mark.usefixtures("restore_logging")


@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "seed.sql"
    path.write_text(SEED_SQL, encoding="utf-8")
    return path


class TestUsage:
    """Test help and usage errors."""

    def test_help(self, capsys):
        assert main.main(["help"]) == 0
        assert "db:migrate" in capsys.readouterr().out

    def test_no_action(self, capsys):
        assert main.main([]) == 1
        assert "usage:" in capsys.readouterr().err

    def test_unknown_action(self, capsys):
        assert main.main(["db:explode"]) == 1
        assert "usage:" in capsys.readouterr().err

    @pytest.mark.parametrize("argv", [
        ["db:migrate", "only-source.db"],
        ["db:seed", "store.db"],
        ["db:reset"],
    ])
    def test_missing_arguments(self, argv, capsys):
        assert main.main(argv) == 1
        assert "error:" in capsys.readouterr().err

    def test_negative_commit_every(self, source_db, dest_db):
        assert main.main(["db:migrate", str(source_db), str(dest_db), "--commit-every", "-1"]) == 1

    def test_unknown_violation_kind(self, source_db, dest_db):
        assert main.main(["db:migrate", str(source_db), str(dest_db), "--skip-violation", "typo"]) == 1

    def test_missing_env_file(self, tmp_path):
        assert main.main(["--env-file", str(tmp_path / "nope.env"), "help"]) == 1


class TestMigrateCommand:
    """Test db:migrate."""

    def test_success(self, source_db, dest_db, capsys):
        assert main.main(["db:migrate", str(source_db), str(dest_db)]) == 0

        out = capsys.readouterr().out
        assert "Migrated table 'client' from SQLite to SQLite" in out
        assert out.rstrip().endswith("Migration completed successfully!")
        assert count_table(dest_db, "client") == 3

    def test_verify_flag(self, source_db, dest_db):
        assert main.main(["db:migrate", str(source_db), str(dest_db), "--verify"]) == 0

    def test_missing_source(self, tmp_path, dest_db, capsys):
        assert main.main(["db:migrate", str(tmp_path / "missing.db"), str(dest_db)]) == 1
        assert "Migration completed successfully!" not in capsys.readouterr().out

    def test_skip_violation_flag(self, tmp_path):
        source = create_sqlite_db(tmp_path / "s.db", rows={"users": [(1, "admin", "x")]})
        dest = create_sqlite_db(tmp_path / "d.db", rows={"users": [(1, "admin", "x")]})

        argv = ["db:migrate", str(source), str(dest)]
        assert main.main(argv) == 1
        assert main.main(argv + ["--skip-violation", "unique"]) == 0


class TestSeedAndResetCommands:
    """Test db:seed and db:reset."""

    def test_seed(self, dest_db, seed_file, capsys):
        assert main.main(["db:seed", str(dest_db), str(seed_file)]) == 0
        assert capsys.readouterr().out.strip() == "Database seeding completed successfully!"
        assert count_table(dest_db, "users") == 1

    def test_seed_failure(self, dest_db, tmp_path, capsys):
        bad = tmp_path / "bad.sql"
        bad.write_text("INSERT INTO \"users\" (username, password) VALUES ('a', 'b');\nNOT SQL;", encoding="utf-8")

        assert main.main(["db:seed", str(dest_db), str(bad)]) == 1
        assert "successfully" not in capsys.readouterr().out
        assert count_table(dest_db, "users") == 0

    def test_reset(self, source_db, seed_file, capsys):
        assert main.main(["db:reset", str(source_db), str(seed_file)]) == 0
        assert capsys.readouterr().out.strip() == "Database reset completed successfully!"
        assert count_table(source_db, "users") == 1
        assert count_table(source_db, "client") == 0

    def test_reset_missing_database(self, tmp_path, seed_file):
        assert main.main(["db:reset", str(tmp_path / "missing.db"), str(seed_file)]) == 1


class TestVersionCommand:
    """Test version."""

    def test_prints_build_and_latest(self, monkeypatch, capsys):
        monkeypatch.setenv("BUILD_VERSION", "v1.2.3")
        monkeypatch.setenv("BUILD_COMMIT", "abc1234")
        monkeypatch.setenv("BUILD_DATE", "2025-01-01")

        with patch("main.fetch_latest_release", return_value="v1.50.0"):
            assert main.main(["version"]) == 0

        assert capsys.readouterr().out.splitlines() == [
            "Version: v1.2.3",
            "Commit: abc1234",
            "Build: 2025-01-01",
            "Latest release: v1.50.0",
        ]

    def test_lookup_failure(self, capsys):
        error = ReleaseLookupError("No release found for autobrr/autobrr", "NOT_FOUND")
        with patch("main.fetch_latest_release", side_effect=error):
            assert main.main(["version"]) == 1
        assert capsys.readouterr().out.splitlines()[-1] == "No release found for autobrr/autobrr"
