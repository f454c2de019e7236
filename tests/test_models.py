"""
Tests for Pydantic data models.

Validates naming helpers, model creation and serialization.
"""

from datetime import datetime, timedelta

from keybench.models import (
    BenchmarkResult,
    ComparativeResult,
    KeyType,
    QueryDefinition,
    RunMetadata,
    RunReport,
    all_tables,
    query_shape,
)


def test_key_type_table_names() -> None:
    assert KeyType.SERIAL.parent_table == "parent_serial"
    assert KeyType.SERIAL.child_table == "child_serial"
    assert KeyType.UUID.child_index == "idx_child_uuid_parent_id"
    assert KeyType.UUID.label == "UUID"
    assert KeyType("serial") is KeyType.SERIAL


def test_all_tables_order() -> None:
    assert all_tables() == ["parent_serial", "child_serial", "parent_uuid", "child_uuid"]


def test_query_shape_strips_key_suffix() -> None:
    assert query_shape("Multiple Joins - UUID") == "Multiple Joins"
    assert query_shape("Simple Join") == "Simple Join"
    query = QueryDefinition(name="Complex Join - Serial", key_type="serial", sql="SELECT 1")
    assert query.shape == "Complex Join"
    assert query.key_type is KeyType.SERIAL


def test_benchmark_result_serializes_key_type_as_string() -> None:
    result = BenchmarkResult(
        name="Simple Join - UUID",
        type=KeyType.UUID,
        query="SELECT 1",
        iterations=1,
        avg_time_ms=1.5,
    )

    data = result.model_dump(mode="json")

    assert data["type"] == "uuid"
    assert data["execution_plan"] is None
    assert data["std_dev_ms"] == 0.0


def test_comparative_result_display() -> None:
    slower = ComparativeResult(
        test_type="Simple Join", serial_time=1, uuid_time=2, diff_percent=100.0
    )
    unknown = ComparativeResult(test_type="Simple Join", serial_time=0, uuid_time=2)

    assert slower.diff_display == "+100.00%"
    assert slower.verdict == "slower"
    assert unknown.diff_display == "n/a"
    assert unknown.verdict == "n/a"


def test_run_report_finish_sets_duration() -> None:
    started = datetime(2026, 10, 17, 10, 0, 0)
    report = RunReport(
        metadata=RunMetadata(
            total_records=10, iterations=2, batch_size=5, started_at=started
        )
    )

    report.finish(started + timedelta(seconds=90))

    assert report.metadata.finished_at == started + timedelta(seconds=90)
    assert report.metadata.duration_seconds == 90.0
    assert report.table_stats == {}
    assert report.test_results == []
