"""
Global pytest configuration and fixtures for keybench tests.

This module provides:
- FakeConnection fixtures (see tests/fakes.py)
- Settings fixtures for unit and E2E runs

E2E tests run against a real PostgreSQL only when KEYBENCH_E2E=1.
"""

from __future__ import annotations

import os

import pytest

from keybench.config import Settings

from tests.fakes import FakeConnection


def is_e2e_test() -> bool:
    """Check if we're running E2E tests (vs unit tests)."""
    return os.getenv("KEYBENCH_E2E", "").lower() in ("1", "true", "yes")


@pytest.fixture
def fake_conn() -> FakeConnection:
    """Connection on a server with a v7 generator available."""
    return FakeConnection()


@pytest.fixture
def unit_settings(tmp_path) -> Settings:
    """Small, fast settings writing reports under tmp_path."""
    return Settings(
        _env_file=None,
        TOTAL_RECORDS=25,
        TEST_ITERATIONS=2,
        BATCH_SIZE=10,
        RESULTS_DIR=str(tmp_path / "results"),
    )
