"""
E2E Tests: Benchmark Run Lifecycle

Tests the benchmark procedure against a real PostgreSQL database:
- Schema reset is repeatable and leaves empty tables
- Populated data keeps the parent/child invariants
- Benchmark queries return the rows their filters promise
- A full run exports complete reports

Run with: KEYBENCH_E2E=1 pytest tests/e2e/test_run_lifecycle.py -v
"""

from __future__ import annotations

import json

import pytest

from keybench.core.data_populator import DataPopulator
from keybench.core.query_benchmarker import build_query
from keybench.main import run
from keybench.models import KeyType, all_tables

pytestmark = [pytest.mark.e2e, pytest.mark.asyncio]


async def table_names(conn) -> set[str]:
    rows = await conn.fetch(
        """
        SELECT table_name FROM information_schema.tables
        WHERE table_schema = current_schema() AND table_name = ANY($1::text[])
        """,
        all_tables(),
    )
    return {row["table_name"] for row in rows}


class TestSchemaReset:
    """Reset drops and recreates both table pairs."""

    async def test_reset_twice_leaves_empty_schema(self, pg_conn, schema):
        populator = DataPopulator(pg_conn, schema.generator, batch_size=10)
        await populator.populate_all(5)

        await schema.reset()
        await schema.reset()

        assert await table_names(pg_conn) == set(all_tables())
        for table in all_tables():
            assert await pg_conn.fetchval(f"SELECT COUNT(*) FROM {table}") == 0


class TestPopulationInvariants:
    """Every child references a parent of its own variant; 1-3 children each."""

    @pytest.mark.parametrize("key_type", list(KeyType))
    async def test_children_reference_existing_parents(
        self, pg_conn, schema, key_type
    ):
        populator = DataPopulator(pg_conn, schema.generator, batch_size=17)
        await populator.populate(key_type, 60)

        orphans = await pg_conn.fetchval(
            f"""
            SELECT COUNT(*) FROM {key_type.child_table} c
            LEFT JOIN {key_type.parent_table} p ON p.id = c.parent_id
            WHERE p.id IS NULL
            """
        )
        assert orphans == 0

        row = await pg_conn.fetchrow(
            f"""
            SELECT COUNT(*) AS parents, MIN(n) AS min_children, MAX(n) AS max_children
            FROM (
                SELECT p.id, COUNT(c.id) AS n
                FROM {key_type.parent_table} p
                LEFT JOIN {key_type.child_table} c ON p.id = c.parent_id
                GROUP BY p.id
            ) per_parent
            """
        )
        assert row["parents"] == 60
        assert row["min_children"] >= 1
        assert row["max_children"] <= 3


class TestQueryResults:
    """Fixed dataset instead of random data."""

    # (id, name, value) and the number of children per parent
    PARENTS = [
        (1, "Name 1", 100, 1),
        (2, "Name 2", 250, 2),
        (3, "Name 3", 501, 3),
        (4, "Name 4", 750, 1),
        (5, "Name 5", 500, 2),
        (6, "Name 6", 999, 2),
    ]

    async def seed(self, conn) -> None:
        await conn.executemany(
            "INSERT INTO parent_serial (id, name, value) VALUES ($1, $2, $3)",
            [(pid, name, value) for pid, name, value, _ in self.PARENTS],
        )
        children = [
            (pid, f"Description for {pid}", i % 2 == 0)
            for pid, _, _, count in self.PARENTS
            for i in range(count)
        ]
        await conn.executemany(
            "INSERT INTO child_serial (parent_id, description, active) "
            "VALUES ($1, $2, $3)",
            children,
        )

    async def test_simple_join_only_returns_values_over_500(self, pg_conn, schema):
        await self.seed(pg_conn)

        rows = await pg_conn.fetch(build_query("Simple Join", KeyType.SERIAL).sql)

        returned = {row["id"] for row in rows}
        assert returned == {3, 4, 6}
        assert len(rows) == 3 + 1 + 2

    async def test_complex_join_counts_match_independent_count(self, pg_conn, schema):
        await self.seed(pg_conn)

        rows = await pg_conn.fetch(build_query("Complex Join", KeyType.SERIAL).sql)

        expected = {
            row["name"]: row["n"]
            for row in await pg_conn.fetch(
                """
                SELECT p.name, COUNT(c.id) AS n
                FROM parent_serial p
                LEFT JOIN child_serial c ON p.id = c.parent_id
                WHERE p.value BETWEEN 200 AND 800
                GROUP BY p.name
                """
            )
        }
        assert {row["name"]: row["child_count"] for row in rows} == expected
        assert expected == {"Name 2": 2, "Name 3": 3, "Name 4": 1, "Name 5": 2}


class TestFullRun:
    """TOTAL_RECORDS=100, TEST_ITERATIONS=2 end to end."""

    async def test_run_exports_complete_reports(self, e2e_settings):
        files = await run(e2e_settings)

        document = json.loads(files.json_path.read_text())
        assert len(document["table_stats"]) == 4
        assert len(document["test_results"]) == 6
        assert len(document["comparative_results"]) == 3
        assert document["metadata"]["total_records"] == 100
        assert document["table_stats"]["parent_uuid"]["row_count"] == 100
        assert document["index_stats"]
        assert all(r["execution_plan"] for r in document["test_results"])
        assert files.summary_path.read_text().strip()
