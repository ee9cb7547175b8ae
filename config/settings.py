"""brrctl Configuration Module.

This module provides centralized configuration management for the brrctl
operator CLI. It handles environment variable loading, validation, and
provides a clean interface for accessing configuration values.

Features:
- Environment variable loading with .env support
- Property-based configuration access
- Default values for all configuration options

Environment Variables:
- LOG_LEVEL, VERBOSE_LOGGING: logging verbosity
- MIGRATE_COMMIT_EVERY, MIGRATE_FETCH_SIZE, MIGRATE_SKIP_VIOLATIONS: db:migrate tuning
- See env.example for complete configuration options

Usage:
    from config.settings import config
    commit_every = config.MIGRATE_COMMIT_EVERY

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""
import logging
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from config.base_config import BaseConfig
from config.migration_config import MigrationConfigMixin

logger = logging.getLogger(__name__)

load_dotenv()  # Load environment variables from .env file


class Config(
    BaseConfig,
    MigrationConfigMixin
):
    """
    Centralized configuration management for brrctl.

    Combines all configuration mixins to provide a unified interface
    for accessing configuration values.
    """


def load_env_file(env_path: Optional[Union[str, Path]]) -> bool:
    """
    Load an explicit env file on top of the process environment.

    Args:
        env_path: Path to the env file (None is a no-op)

    Returns:
        True if the file was found and loaded
    """
    if not env_path:
        return False
    path = Path(env_path)
    if not path.is_file():
        logger.warning("[Config] Env file not found: %s", path)
        return False
    load_dotenv(dotenv_path=path, override=True)
    config.clear_cache()
    return True


# Create global configuration instance
config = Config()
