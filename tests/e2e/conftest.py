"""
E2E Test Fixtures - Real PostgreSQL.

These fixtures connect with the same DB_* environment variables as the
benchmark itself. The benchmark tables in that database are dropped and
recreated by the tests.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from keybench.config import Settings
from keybench.connectors.postgres import connection
from keybench.core.schema_manager import SchemaManager, detect_uuid_generator

from tests.conftest import is_e2e_test


@pytest.fixture
def e2e_settings(tmp_path) -> Settings:
    """Connection settings from the environment, small workload."""
    if not is_e2e_test():
        pytest.skip("E2E tests require KEYBENCH_E2E=1 environment variable")
    return Settings(
        TOTAL_RECORDS=100,
        TEST_ITERATIONS=2,
        BATCH_SIZE=30,
        RESULTS_DIR=str(tmp_path / "results"),
    )


@pytest_asyncio.fixture
async def pg_conn(e2e_settings: Settings) -> AsyncGenerator:
    """Per-test connection to the benchmark database."""
    async with connection(e2e_settings) as conn:
        yield conn


@pytest_asyncio.fixture
async def schema(pg_conn) -> SchemaManager:
    """Freshly reset benchmark schema."""
    generator = await detect_uuid_generator(pg_conn)
    manager = SchemaManager(pg_conn, generator)
    await manager.reset()
    return manager
