"""Base configuration class and core settings.

This module provides the base Config class with caching mechanism and core
settings like version, build metadata and logging.
"""
import logging
import os
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class BaseConfig:
    """Base configuration class with caching mechanism."""

    def __init__(self):
        self._cache = {}
        self._cache_timestamp = 0
        self._cache_duration = 30
        self._version = None

    def _get_cached_value(self, key: str, default=None):
        """Get cached value from environment."""
        current_time = time.time()
        if current_time - self._cache_timestamp > self._cache_duration:
            self._cache.clear()
            self._cache_timestamp = current_time
        if key not in self._cache:
            self._cache[key] = os.environ.get(key, default)
        return self._cache[key]

    def clear_cache(self) -> None:
        """Drop cached environment values so the next access re-reads them."""
        self._cache.clear()
        self._cache_timestamp = 0

    @property
    def version(self) -> str:
        """
        Application version - BUILD_VERSION if set, otherwise the VERSION file.
        Cached after first read for performance.
        """
        build_version = self._get_cached_value('BUILD_VERSION')
        if build_version:
            return build_version
        if self._version is None:
            try:
                version_file = Path(__file__).parent.parent / 'VERSION'
                self._version = version_file.read_text(encoding='utf-8').strip()
            except Exception as e:  # pylint: disable=broad-except
                logger.warning("Failed to read VERSION file: %s", e)
                self._version = "dev"
        return self._version

    @property
    def build_commit(self) -> str:
        """Commit hash stamped into the build."""
        return self._get_cached_value('BUILD_COMMIT', '')

    @property
    def build_date(self) -> str:
        """Build date stamped into the build."""
        return self._get_cached_value('BUILD_DATE', '')

    @property
    def log_level(self) -> str:
        """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""
        level = self._get_cached_value('LOG_LEVEL', 'INFO').upper()
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if level not in valid_levels:
            logger.warning("Invalid LOG_LEVEL '%s', using INFO", level)
            return 'INFO'
        return level

    @property
    def verbose_logging(self) -> bool:
        """Enable verbose logging for debugging (forces DEBUG level)."""
        return self._get_cached_value('VERBOSE_LOGGING', 'False').lower() == 'true'
