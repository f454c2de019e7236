"""
Workload Models

Defines the key strategies under comparison and the benchmark query definitions.
"""

from enum import Enum

from pydantic import BaseModel, Field

# Separates the query shape from the key strategy label in a query name.
QUERY_NAME_SEPARATOR = " - "


class KeyType(str, Enum):
    """Surrogate-key strategy for a parent/child table pair."""

    SERIAL = "serial"
    UUID = "uuid"

    @property
    def label(self) -> str:
        """Display label used in query names ("Serial", "UUID")."""
        return "Serial" if self is KeyType.SERIAL else "UUID"

    @property
    def parent_table(self) -> str:
        return f"parent_{self.value}"

    @property
    def child_table(self) -> str:
        return f"child_{self.value}"

    @property
    def child_index(self) -> str:
        return f"idx_child_{self.value}_parent_id"

    @property
    def tables(self) -> tuple[str, str]:
        """Parent and child table names, in creation order."""
        return (self.parent_table, self.child_table)


def all_tables() -> list[str]:
    """All benchmark tables, parents before children, serial before UUID."""
    tables: list[str] = []
    for key_type in KeyType:
        tables.extend(key_type.tables)
    return tables


class QueryDefinition(BaseModel):
    """A single benchmark query bound to one key strategy."""

    name: str = Field(..., description="Display name, e.g. 'Simple Join - Serial'")
    key_type: KeyType = Field(..., description="Key strategy the SQL targets")
    sql: str = Field(..., description="SQL text executed under EXPLAIN ANALYZE")

    @property
    def shape(self) -> str:
        """Query shape shared by the serial and UUID variants."""
        return query_shape(self.name)


def query_shape(name: str) -> str:
    """Strip the key strategy suffix from a query name."""
    return name.split(QUERY_NAME_SEPARATOR)[0]
