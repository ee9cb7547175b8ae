"""Data migration configuration settings.

This module provides the tunables for db:migrate, db:reset and db:seed,
and for the release lookup used by the version command.
"""
import logging
from typing import TYPE_CHECKING, Any, FrozenSet

logger = logging.getLogger(__name__)

VIOLATION_KINDS = ('foreign_key', 'unique', 'not_null', 'check', 'integrity')


class MigrationConfigMixin:
    """Mixin class for data migration configuration properties.

    This mixin expects the class to inherit from BaseConfig or provide
    a _get_cached_value method.
    """

    if TYPE_CHECKING:
        def _get_cached_value(self, _key: str, _default: Any = None) -> Any:
            """Type stub: method provided by BaseConfig."""
            raise NotImplementedError

    @property
    def MIGRATE_COMMIT_EVERY(self) -> int:
        """
        Number of successful rows per destination commit during db:migrate.

        1 commits after every row (default), 0 commits once per table,
        N > 1 commits in batches of N rows.
        """
        try:
            val = int(self._get_cached_value('MIGRATE_COMMIT_EVERY', '1'))
            if val < 0:
                logger.warning("[Config] MIGRATE_COMMIT_EVERY %s is negative, using 1", val)
                return 1
            return val
        except (ValueError, TypeError):
            logger.warning("[Config] Invalid MIGRATE_COMMIT_EVERY, using 1")
            return 1

    @property
    def MIGRATE_FETCH_SIZE(self) -> int:
        """Rows fetched from the source cursor per round trip."""
        try:
            val = int(self._get_cached_value('MIGRATE_FETCH_SIZE', '1000'))
            if val <= 0:
                logger.warning("[Config] MIGRATE_FETCH_SIZE %s must be positive, using 1000", val)
                return 1000
            return val
        except (ValueError, TypeError):
            logger.warning("[Config] Invalid MIGRATE_FETCH_SIZE, using 1000")
            return 1000

    @property
    def MIGRATE_SKIP_VIOLATIONS(self) -> FrozenSet[str]:
        """
        Constraint violation kinds that skip the row instead of aborting the run.

        Comma separated subset of: foreign_key, unique, not_null, check, integrity.
        Default: foreign_key
        """
        raw = self._get_cached_value('MIGRATE_SKIP_VIOLATIONS', 'foreign_key') or ''
        kinds = set()
        for item in raw.split(','):
            kind = item.strip().lower()
            if not kind:
                continue
            if kind not in VIOLATION_KINDS:
                logger.warning(
                    "[Config] Ignoring unknown MIGRATE_SKIP_VIOLATIONS entry '%s' (valid: %s)",
                    kind, ', '.join(VIOLATION_KINDS)
                )
                continue
            kinds.add(kind)
        return frozenset(kinds)

    @property
    def RELEASE_API_URL(self) -> str:
        """Base URL of the release API queried by the version command."""
        return self._get_cached_value('RELEASE_API_URL', 'https://api.autobrr.com').rstrip('/')

    @property
    def RELEASE_OWNER(self) -> str:
        """Repository owner used for the latest release lookup"""
        return self._get_cached_value('RELEASE_OWNER', 'autobrr')

    @property
    def RELEASE_REPO(self) -> str:
        """Repository name used for the latest release lookup"""
        return self._get_cached_value('RELEASE_REPO', 'autobrr')

    @property
    def RELEASE_API_TIMEOUT(self) -> float:
        """Timeout in seconds for the latest release lookup"""
        try:
            return float(self._get_cached_value('RELEASE_API_TIMEOUT', '10'))
        except (ValueError, TypeError):
            logger.warning("[Config] Invalid RELEASE_API_TIMEOUT, using 10")
            return 10.0
