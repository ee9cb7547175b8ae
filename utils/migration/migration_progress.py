"""
Migration Progress Tracker

Live progress display for db:migrate: a stage bar, a table bar and a
record bar for the table being copied. Without a terminal the same events
go to the log instead.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import sys
import logging
from typing import List, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

logger = logging.getLogger(__name__)

STAGE_CONNECT = 0
STAGE_MIGRATE_TABLES = 1
STAGE_VERIFY = 2
STAGE_COMPLETE = 3

STAGE_NAMES = {
    STAGE_CONNECT: "Connecting Databases",
    STAGE_MIGRATE_TABLES: "Migrating Tables",
    STAGE_VERIFY: "Verifying Migration",
    STAGE_COMPLETE: "Complete"
}

# Rows between log lines when there is no live display
LOG_EVERY_ROWS = 10000
MAX_LISTED_WARNINGS = 10


class MigrationProgressTracker:
    """
    Progress reporting for one migration run.

    Used as a context manager. The live display is shown only when stdout
    is a terminal unless ``enabled`` says otherwise.
    """

    def __init__(
        self,
        total_tables: int = 0,
        enabled: Optional[bool] = None,
        console: Optional[Console] = None
    ):
        self.total_tables = total_tables
        self.tables_completed = 0
        self.total_records = 0
        self.errors: List[str] = []

        self._table: Optional[str] = None
        self._table_rows = 0

        live = sys.stdout.isatty() if enabled is None else enabled
        self.console: Optional[Console] = (console or Console()) if live else None
        self.progress: Optional[Progress] = None
        if self.console is not None:
            self.progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                TimeElapsedColumn(),
                console=self.console,
                transient=True
            )
        self._tasks: dict = {}

    @property
    def live(self) -> bool:
        return self.progress is not None

    def __enter__(self):
        if self.progress is not None:
            self.progress.start()
            self._tasks['stage'] = self.progress.add_task(
                self._stage_label(STAGE_CONNECT), total=STAGE_COMPLETE
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.progress is not None:
            self.progress.stop()

    @staticmethod
    def _stage_label(stage: int, description: Optional[str] = None) -> str:
        name = description or STAGE_NAMES.get(stage, f"Stage {stage}")
        return f"[cyan]{name} ({min(stage, STAGE_COMPLETE)}/{STAGE_COMPLETE})"

    def _task(self, key: str, description: str, total: int) -> TaskID:
        """Create a bar on first use, reset it afterwards."""
        task_id = self._tasks.get(key)
        if task_id is None:
            task_id = self.progress.add_task(description, total=total)
            self._tasks[key] = task_id
        else:
            self.progress.reset(task_id, total=total, description=description)
        return task_id

    def update_stage(self, stage: int, description: Optional[str] = None) -> None:
        """Move to one of the STAGE_* stages."""
        if self.live and 'stage' in self._tasks:
            self.progress.update(
                self._tasks['stage'],
                completed=stage,
                description=self._stage_label(stage, description)
            )
            return
        logger.info("[Migration] %s", description or STAGE_NAMES.get(stage, f"Stage {stage}"))

    def start_table_migration(self, table_name: str, table_index: int, total_records: int) -> None:
        """
        Begin a table.

        Args:
            table_name: Name of the table
            table_index: 1-based position in the migration order
            total_records: Source row count (0 when unknown)
        """
        self._table = table_name
        self._table_rows = total_records

        if not self.live:
            logger.debug(
                "[Migration] Migrating table %d/%d: %s (%d records)",
                table_index, self.total_tables, table_name, total_records
            )
            return

        tables = self._task('tables', "[green]Tables", self.total_tables)
        self.progress.update(
            tables,
            completed=table_index - 1,
            description=f"[green]Table: {table_name}"
        )
        self._task('records', f"[yellow]Rows: {table_name}", total_records)

    def update_table_records(self, records_processed: int) -> None:
        """Report source rows handled so far for the current table."""
        if self.live and 'records' in self._tasks:
            self.progress.update(self._tasks['records'], completed=records_processed)
        elif records_processed and records_processed % LOG_EVERY_ROWS == 0:
            logger.debug(
                "[Migration] %s: %d/%d records",
                self._table, records_processed, self._table_rows
            )

    def complete_table(self, records_migrated: int) -> None:
        """Count a finished table and the rows it committed."""
        self.tables_completed += 1
        self.total_records += records_migrated

        if self.live and 'tables' in self._tasks:
            self.progress.update(self._tasks['tables'], completed=self.tables_completed)
            self.progress.update(self._tasks['records'], completed=self._table_rows)

    def add_error(self, error_message: str) -> None:
        """Remember a non-fatal problem for the summary."""
        self.errors.append(error_message)

    def announce(self, message: str) -> None:
        """Print a line to stdout without disturbing the live display."""
        if self.console is not None:
            self.console.print(message, markup=False, highlight=False)
        else:
            print(message)

    def summary_lines(self, stats: Optional[dict] = None) -> List[str]:
        """Plain-text summary of the run."""
        stats = stats or {}
        lines = [
            f"Tables migrated: {self.tables_completed}/{self.total_tables}",
            f"Total records: {self.total_records:,}",
        ]
        skipped = stats.get('rows_skipped', 0)
        if skipped:
            lines.append(f"Skipped rows: {skipped:,}")
        if self.errors:
            lines.append(f"Warnings ({len(self.errors)}):")
            lines.extend(f"  - {error}" for error in self.errors[:MAX_LISTED_WARNINGS])
            if len(self.errors) > MAX_LISTED_WARNINGS:
                lines.append(f"  ... and {len(self.errors) - MAX_LISTED_WARNINGS} more")
        mismatches = (stats.get('verification') or {}).get('mismatches', [])
        if mismatches:
            lines.append(f"Verification mismatches: {len(mismatches)}")
        return lines

    def print_summary(self, stats: Optional[dict] = None) -> None:
        """
        Print the final summary.

        Args:
            stats: Optional dict with 'rows_skipped' and 'verification'
        """
        lines = self.summary_lines(stats)
        if self.console is not None:
            self.console.print("\n[bold green]Migration Summary[/bold green]")
            for line in lines:
                self.console.print(f"  {line}", markup=False, highlight=False)
            return
        logger.info("[Migration] Summary")
        for line in lines:
            logger.info("[Migration]   %s", line)
