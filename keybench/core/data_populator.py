"""
Data Populator

Bulk-loads parents and 1-3 children per parent into both table pairs.

Rows are inserted in fixed-size batches, one INSERT ... SELECT FROM unnest()
statement per batch. The serial and UUID variants run through the same code
path; only the id source and the column casts differ:

- serial parents use the loop ordinal as id, serial children draw from
  child_serial_id_seq (reset before loading)
- UUID parents and children use ids fetched from the database generator
  before each insert
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Sequence

from keybench.core.schema_manager import UuidGenerator
from keybench.models import KeyType

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10_000
PROGRESS_EVERY = 100_000
MIN_CHILDREN = 1
MAX_CHILDREN = 3
VALUE_UPPER_BOUND = 1000  # parent.value is drawn from [0, 1000)

CHILD_SEQUENCE = {KeyType.SERIAL: "child_serial_id_seq"}

_NAME_PREFIX = {
    KeyType.SERIAL: "Name",
    KeyType.UUID: "Name UUID",
}
_DESCRIPTION_PREFIX = {
    KeyType.SERIAL: "Description for",
    KeyType.UUID: "UUID description for",
}
_ID_CAST = {
    KeyType.SERIAL: "integer[]",
    KeyType.UUID: "uuid[]",
}


@dataclass
class PopulationSummary:
    """Rows loaded for one key strategy."""

    key_type: KeyType
    parent_count: int
    child_count: int


def _batches(items: Sequence[Any], size: int):
    for start in range(0, len(items), size):
        yield start, items[start : start + size]


class DataPopulator:
    """
    Loads benchmark data through a single connection.

    Args:
        conn: asyncpg connection
        generator: UUID function used for UUID-keyed ids
        batch_size: Rows per INSERT statement
        rng: Random source for values, child counts and active flags
    """

    def __init__(
        self,
        conn,
        generator: UuidGenerator,
        batch_size: int = DEFAULT_BATCH_SIZE,
        rng: random.Random | None = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.conn = conn
        self.generator = generator
        self.batch_size = batch_size
        self.rng = rng or random.Random()

    async def generate_uuids(self, count: int) -> list:
        """Fetch `count` fresh ids from the database UUID generator."""
        if count <= 0:
            return []
        rows = await self.conn.fetch(
            f"SELECT {self.generator.call} AS id FROM generate_series(1, $1)",
            count,
        )
        return [row["id"] for row in rows]

    async def _ids_for(self, key_type: KeyType, start: int, count: int) -> list:
        if key_type is KeyType.SERIAL:
            return list(range(start + 1, start + count + 1))
        return await self.generate_uuids(count)

    def _log_progress(self, label: str, done: int, total: int, previous: int) -> None:
        if done // PROGRESS_EVERY > previous // PROGRESS_EVERY or done == total:
            logger.info("  %s: %d/%d", label, done, total)

    async def populate_parents(self, key_type: KeyType, count: int) -> list:
        """
        Insert `count` parent rows in batches.

        Returns:
            Parent ids in insertion order
        """
        table = key_type.parent_table
        sql = (
            f"INSERT INTO {table} (id, name, value) "
            f"SELECT * FROM unnest($1::{_ID_CAST[key_type]}, $2::varchar[], $3::integer[])"
        )
        parent_ids: list = []
        for start in range(0, count, self.batch_size):
            size = min(self.batch_size, count - start)
            ids = await self._ids_for(key_type, start, size)
            names = [
                f"{_NAME_PREFIX[key_type]} {ordinal}"
                for ordinal in range(start + 1, start + size + 1)
            ]
            values = [self.rng.randrange(VALUE_UPPER_BOUND) for _ in range(size)]
            await self.conn.execute(sql, ids, names, values)
            parent_ids.extend(ids)
            self._log_progress(table, start + size, count, start)
        return parent_ids

    def _draw_children(self, key_type: KeyType, start: int, batch: Sequence[Any]):
        parent_refs: list = []
        descriptions: list[str] = []
        flags: list[bool] = []
        for offset, parent_id in enumerate(batch):
            ordinal = start + offset + 1
            for _ in range(self.rng.randint(MIN_CHILDREN, MAX_CHILDREN)):
                parent_refs.append(parent_id)
                descriptions.append(f"{_DESCRIPTION_PREFIX[key_type]} {ordinal}")
                flags.append(self.rng.choice((True, False)))
        return parent_refs, descriptions, flags

    async def populate_children(self, key_type: KeyType, parent_ids: Sequence[Any]) -> int:
        """
        Insert 1-3 children for every parent id, batched by parent.

        The serial child sequence is reset to 1 first; the parent sequence is
        left alone since parent ids are supplied explicitly.

        Returns:
            Number of child rows inserted
        """
        table = key_type.child_table
        if key_type is KeyType.SERIAL:
            await self.conn.execute(
                f"SELECT setval('{CHILD_SEQUENCE[key_type]}', 1, false)"
            )
            sql = (
                f"INSERT INTO {table} (id, parent_id, description, active) "
                f"SELECT nextval('{CHILD_SEQUENCE[key_type]}'), u.parent_id, "
                f"u.description, u.active "
                f"FROM unnest($1::integer[], $2::varchar[], $3::boolean[]) "
                f"AS u(parent_id, description, active)"
            )
        else:
            sql = (
                f"INSERT INTO {table} (id, parent_id, description, active) "
                f"SELECT * FROM unnest($1::uuid[], $2::uuid[], $3::varchar[], $4::boolean[])"
            )

        inserted = 0
        total = len(parent_ids)
        for start, batch in _batches(parent_ids, self.batch_size):
            parent_refs, descriptions, flags = self._draw_children(key_type, start, batch)
            if not parent_refs:
                continue
            if key_type is KeyType.SERIAL:
                await self.conn.execute(sql, parent_refs, descriptions, flags)
            else:
                child_ids = await self.generate_uuids(len(parent_refs))
                await self.conn.execute(sql, child_ids, parent_refs, descriptions, flags)
            inserted += len(parent_refs)
            self._log_progress(table, start + len(batch), total, start)
        return inserted

    async def populate(self, key_type: KeyType, total_records: int) -> PopulationSummary:
        """Load parents and children for one key strategy."""
        logger.info(
            "Inserting %d records into %s tables...", total_records, key_type.label
        )
        parent_ids = await self.populate_parents(key_type, total_records)
        child_count = await self.populate_children(key_type, parent_ids)
        summary = PopulationSummary(
            key_type=key_type,
            parent_count=len(parent_ids),
            child_count=child_count,
        )
        logger.info(
            "✅ %s: %d parents, %d children",
            key_type.label,
            summary.parent_count,
            summary.child_count,
        )
        return summary

    async def populate_all(self, total_records: int) -> list[PopulationSummary]:
        """Load both key strategies with the same number of parents."""
        return [await self.populate(key_type, total_records) for key_type in KeyType]
