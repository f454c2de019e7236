"""
PostgreSQL statistics collection for the benchmark report.

Captures server version, per-table row counts and sizes, and per-index sizes
and scan counts. Run after population and VACUUM ANALYZE so the numbers
reflect the final state of the tables.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from keybench.models import IndexStats, TableStats, all_tables

logger = logging.getLogger(__name__)

# Older servers get a warning that UUID v7 may be missing.
EXPECTED_MAJOR_VERSION = 17


@dataclass
class ServerInfo:
    """PostgreSQL server identification."""

    version: str
    version_num: Optional[int] = None

    @property
    def major_version(self) -> Optional[int]:
        if self.version_num is None:
            return None
        return self.version_num // 10000


async def get_server_info(conn) -> ServerInfo:
    """
    Read the server version string and numeric version.

    Args:
        conn: asyncpg connection

    Returns:
        ServerInfo for the connected server
    """
    version = await conn.fetchval("SELECT version()")
    version_num = await conn.fetchval("SHOW server_version_num")
    info = ServerInfo(
        version=str(version),
        version_num=int(version_num) if version_num is not None else None,
    )
    logger.info("Connected to %s", info.version)

    if info.major_version is not None and info.major_version < EXPECTED_MAJOR_VERSION:
        logger.warning(
            "Server is PostgreSQL %d, older than %d. UUID v7 may not be available.",
            info.major_version,
            EXPECTED_MAJOR_VERSION,
        )
    return info


async def collect_table_stats(
    conn, tables: Optional[Sequence[str]] = None
) -> dict[str, TableStats]:
    """
    Count rows and measure heap and total (heap + index) size per table.

    Args:
        conn: asyncpg connection
        tables: Table names; defaults to all benchmark tables

    Returns:
        Mapping of table name to TableStats
    """
    stats: dict[str, TableStats] = {}

    for table in tables or all_tables():
        row_count = await conn.fetchval(f"SELECT COUNT(*) FROM {table}")
        size_row = await conn.fetchrow(
            """
            SELECT
                pg_relation_size($1::text::regclass) AS table_bytes,
                pg_size_pretty(pg_relation_size($1::text::regclass)) AS table_size,
                pg_total_relation_size($1::text::regclass) AS total_bytes,
                pg_size_pretty(pg_total_relation_size($1::text::regclass)) AS total_size
            """,
            table,
        )
        entry = TableStats(
            row_count=int(row_count or 0),
            table_bytes=size_row["table_bytes"],
            table_size=size_row["table_size"] or "",
            total_bytes=size_row["total_bytes"],
            total_size=size_row["total_size"] or "",
        )
        stats[table] = entry

        logger.info("Rows in %s: %d", table, entry.row_count)
        logger.info("Size of %s: %s", table, entry.table_size)
        logger.info("Total size of %s (with indexes): %s", table, entry.total_size)

    return stats


async def collect_index_stats(
    conn, tables: Optional[Sequence[str]] = None
) -> dict[str, IndexStats]:
    """
    Size and cumulative scan count for every index on the given tables.

    Scan counts come from pg_stat_user_indexes and cover the period since the
    last statistics reset.

    Args:
        conn: asyncpg connection
        tables: Table names; defaults to all benchmark tables

    Returns:
        Mapping of index name to IndexStats, largest index first
    """
    rows = await conn.fetch(
        """
        SELECT
            ui.indexrelname AS index_name,
            ui.relname AS table_name,
            pg_relation_size(i.indexrelid) AS index_bytes,
            pg_size_pretty(pg_relation_size(i.indexrelid)) AS index_size,
            ui.idx_scan AS index_scans
        FROM pg_stat_user_indexes ui
        JOIN pg_index i ON ui.indexrelid = i.indexrelid
        WHERE ui.schemaname = current_schema()
          AND ui.relname = ANY($1::text[])
        ORDER BY pg_relation_size(i.indexrelid) DESC
        """,
        list(tables or all_tables()),
    )

    stats: dict[str, IndexStats] = {}
    for row in rows:
        entry = IndexStats(
            table_name=row["table_name"],
            index_bytes=row["index_bytes"],
            index_size=row["index_size"] or "",
            index_scans=int(row["index_scans"] or 0),
        )
        stats[row["index_name"]] = entry
        logger.info("Index %s: %s", row["index_name"], entry.index_size)

    return stats
