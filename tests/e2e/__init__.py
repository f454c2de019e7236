"""
End-to-End Tests for keybench.

These tests run against a real PostgreSQL server (DB_* environment variables).

Run with: KEYBENCH_E2E=1 pytest tests/e2e -v
"""
