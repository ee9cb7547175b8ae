"""
Schema Catalog

The fixed, ordered list of application tables handled by db:migrate and
db:reset. Table names and their order are a compatibility contract with
existing deployments.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class TableSpec:
    """A catalog entry."""
    name: str


# Order matters: parent tables before child tables
MIGRATION_TABLES: Tuple[TableSpec, ...] = (
    TableSpec("users"),
    TableSpec("indexer"),
    TableSpec("irc_network"),
    TableSpec("irc_channel"),  # References irc_network
    TableSpec("client"),
    TableSpec("filter"),
    TableSpec("action"),  # References filter
    TableSpec("notification"),
    TableSpec("filter_indexer"),  # References filter, indexer
    TableSpec("release"),
    TableSpec("release_action_status"),  # References release
    TableSpec("feed"),  # References indexer
    TableSpec("api_key"),
)

# Reset iterates forward over this list inside one transaction
RESET_TABLES: Tuple[TableSpec, ...] = (
    TableSpec("action"),
    TableSpec("api_key"),
    TableSpec("client"),
    TableSpec("feed"),
    TableSpec("feed_cache"),
    TableSpec("filter"),
    TableSpec("filter_indexer"),
    TableSpec("indexer"),
    TableSpec("irc_channel"),
    TableSpec("irc_network"),
    TableSpec("notification"),
    TableSpec("release"),
    TableSpec("release_action_status"),
    TableSpec("users"),
)


def get_table_migration_order() -> List[str]:
    """
    Get list of tables in migration order (respecting foreign key dependencies).

    Returns:
        List of table names in correct migration order
    """
    return [table.name for table in MIGRATION_TABLES]


def get_table_reset_order() -> List[str]:
    """
    Get list of tables cleared by db:reset, in the order they are cleared.

    Returns:
        List of table names
    """
    return [table.name for table in RESET_TABLES]
