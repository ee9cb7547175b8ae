"""
Seed Engine

Executes a SQL seed script against a store in one transaction. The first
failing statement rolls everything back, so a store is either fully seeded
or untouched.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from utils.migration.connections import open_connection
from utils.migration.exceptions import SeedError

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Database seeding completed successfully!"

BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)


@dataclass
class SeedOutcome:
    """Result of one seed run."""
    statements_executed: int = 0


def _is_blank(chunk: str) -> bool:
    for line in BLOCK_COMMENT.sub("", chunk).splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith('--'):
            return False
    return True


def split_sql_statements(script: str) -> List[str]:
    """
    Split a seed script into statements.

    Splits at every ';'. Semicolons inside string literals or comments are
    not recognized, so seed scripts must not contain them.

    Args:
        script: Full script text

    Returns:
        Statements without the trailing ';'; chunks holding only whitespace,
            -- line comments or /* block comments */ are dropped
    """
    return [chunk.strip() for chunk in script.split(';') if not _is_blank(chunk)]


def read_seed_script(seed_path: Union[str, Path]) -> str:
    """Read a seed script as UTF-8."""
    path = Path(seed_path)
    try:
        return path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise SeedError(f"cannot read seed file {path}: {e}") from e


def seed_database(engine: Engine, seed_path: Union[str, Path]) -> SeedOutcome:
    """
    Execute every statement of a seed script.

    Args:
        engine: Destination engine from open_engine()
        seed_path: Path to the SQL script

    Returns:
        SeedOutcome with the number of executed statements

    Raises:
        DatabaseConnectionError: If the store cannot be opened
        SeedError: If the file cannot be read or any statement fails
    """
    statements = split_sql_statements(read_seed_script(seed_path))
    logger.debug("[Seed] %d statement(s) in %s", len(statements), seed_path)

    outcome = SeedOutcome()
    with open_connection(engine) as conn:
        transaction = conn.begin()
        index = 0
        statement = None
        try:
            for index, statement in enumerate(statements, 1):
                # Literal % and ? must reach the driver untouched
                conn.execution_options(no_parameters=True).exec_driver_sql(statement)
                outcome.statements_executed += 1
            transaction.commit()
        except SQLAlchemyError as e:
            transaction.rollback()
            reason = str(getattr(e, 'orig', None) or e).strip()
            logger.error("[Seed] Statement %d failed, rolled back: %s", index, reason)
            raise SeedError(reason, statement_index=index, statement=statement) from e

    logger.info("[Seed] Executed %d statement(s)", outcome.statements_executed)
    return outcome
