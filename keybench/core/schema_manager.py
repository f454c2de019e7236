"""
Schema Manager

Creates the parallel serial-keyed and UUID-keyed parent/child table pairs.

Each pair is:
- parent_<kind> (id, name, value)
- child_<kind> (id, parent_id -> parent_<kind>.id, description, active)
- idx_child_<kind>_parent_id on child_<kind>(parent_id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from asyncpg.exceptions import UndefinedFunctionError

from keybench.models import KeyType

logger = logging.getLogger(__name__)

# Time-ordered generators, in preference order.
UUID_V7_GENERATORS: tuple[str, ...] = (
    "uuidv7",  # PostgreSQL 18+
    "uuid_generate_v7",  # pg_uuidv7 extension
)
# Built-in since PostgreSQL 13, no extension required.
UUID_V4_FALLBACK = "gen_random_uuid"

_ID_COLUMN = {
    KeyType.SERIAL: "SERIAL PRIMARY KEY",
    KeyType.UUID: "UUID PRIMARY KEY DEFAULT {generator}()",
}
_FK_COLUMN = {
    KeyType.SERIAL: "INTEGER",
    KeyType.UUID: "UUID",
}


@dataclass(frozen=True)
class UuidGenerator:
    """The UUID function selected for the run."""

    function: str
    time_ordered: bool

    @property
    def call(self) -> str:
        return f"{self.function}()"


async def detect_uuid_generator(conn) -> UuidGenerator:
    """
    Probe for a time-ordered UUID function, falling back to a random one.

    Only an undefined-function error is treated as "not available"; any other
    database error propagates.

    Args:
        conn: asyncpg connection

    Returns:
        UuidGenerator for the first function that exists
    """
    for function in UUID_V7_GENERATORS:
        try:
            await conn.fetchval(f"SELECT {function}()")
        except UndefinedFunctionError:
            logger.debug("UUID function %s() not available", function)
            continue
        logger.info("✅ UUID v7 available via %s()", function)
        return UuidGenerator(function=function, time_ordered=True)

    logger.warning(
        "UUID v7 is not available. Falling back to UUID v4 via %s()",
        UUID_V4_FALLBACK,
    )
    return UuidGenerator(function=UUID_V4_FALLBACK, time_ordered=False)


class SchemaManager:
    """Drops and recreates the benchmark tables on one connection."""

    def __init__(self, conn, generator: UuidGenerator):
        self.conn = conn
        self.generator = generator

    def _parent_ddl(self, key_type: KeyType) -> str:
        id_column = _ID_COLUMN[key_type].format(generator=self.generator.function)
        return f"""
            CREATE TABLE {key_type.parent_table} (
                id {id_column},
                name VARCHAR(100),
                value INTEGER
            )
        """

    def _child_ddl(self, key_type: KeyType) -> str:
        id_column = _ID_COLUMN[key_type].format(generator=self.generator.function)
        return f"""
            CREATE TABLE {key_type.child_table} (
                id {id_column},
                parent_id {_FK_COLUMN[key_type]} REFERENCES {key_type.parent_table}(id),
                description VARCHAR(200),
                active BOOLEAN
            )
        """

    async def drop_tables(self) -> None:
        """Drop every benchmark table, children before their parents."""
        for key_type in KeyType:
            await self.conn.execute(f"DROP TABLE IF EXISTS {key_type.child_table} CASCADE")
            await self.conn.execute(f"DROP TABLE IF EXISTS {key_type.parent_table} CASCADE")

    async def create_tables(self, key_type: KeyType) -> None:
        """Create one parent/child pair and the index on the foreign key."""
        logger.info("Creating %s-keyed tables...", key_type.label)
        await self.conn.execute(self._parent_ddl(key_type))
        await self.conn.execute(self._child_ddl(key_type))
        await self.conn.execute(
            f"CREATE INDEX {key_type.child_index} "
            f"ON {key_type.child_table}(parent_id)"
        )

    async def reset(self) -> None:
        """Drop and recreate both table pairs, leaving them empty."""
        await self.drop_tables()
        for key_type in KeyType:
            await self.create_tables(key_type)

    async def vacuum_analyze(self) -> None:
        """Refresh visibility maps and planner statistics for all tables."""
        logger.info("Running VACUUM ANALYZE on benchmark tables...")
        for key_type in KeyType:
            for table in key_type.tables:
                await self.conn.execute(f"VACUUM ANALYZE {table}")
