"""
Comparator / Reporter

Pairs serial and UUID results per query shape, renders the comparison table
and writes the JSON result document and plain-text summary.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from tabulate import tabulate

from keybench.models import (
    BenchmarkResult,
    ComparativeResult,
    KeyType,
    RunReport,
    query_shape,
)

logger = logging.getLogger(__name__)

FILE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
TABLE_TITLE = "Performance Comparison"
TABLE_HEADERS = ["Test Type", "Serial ID (ms)", "UUID (ms)", "Difference (%)"]


def percent_difference(serial_avg: float, uuid_avg: float) -> Optional[float]:
    """
    Signed UUID slowdown relative to serial, in percent (2 decimals).

    Positive means UUID is slower. Returns None when the serial baseline is 0.

    Example:
        >>> percent_difference(100.0, 150.0)
        50.0
        >>> percent_difference(150.0, 100.0)
        -33.33
    """
    if not serial_avg:
        return None
    return round((uuid_avg / serial_avg - 1) * 100, 2)


def compare_results(results: Sequence[BenchmarkResult]) -> list[ComparativeResult]:
    """
    Group results by query shape and compare the serial and UUID averages.

    Shapes missing either variant are skipped. Output follows the order in
    which shapes first appear in `results`.
    """
    grouped: dict[str, dict[KeyType, BenchmarkResult]] = defaultdict(dict)
    for result in results:
        grouped[query_shape(result.name)][result.type] = result

    comparisons: list[ComparativeResult] = []
    for shape, by_type in grouped.items():
        serial = by_type.get(KeyType.SERIAL)
        uuid = by_type.get(KeyType.UUID)
        if serial is None or uuid is None:
            logger.warning("Skipping comparison for %s: missing a key variant", shape)
            continue
        comparisons.append(
            ComparativeResult(
                test_type=shape,
                serial_time=serial.avg_time_ms,
                uuid_time=uuid.avg_time_ms,
                diff_percent=percent_difference(serial.avg_time_ms, uuid.avg_time_ms),
            )
        )
    return comparisons


def render_comparison_table(comparisons: Sequence[ComparativeResult]) -> str:
    """Grid table of the comparisons with signed percentage differences."""
    rows = [
        [c.test_type, c.serial_time, c.uuid_time, c.diff_display] for c in comparisons
    ]
    table = tabulate(
        rows,
        headers=TABLE_HEADERS,
        tablefmt="grid",
        floatfmt=".2f",
        colalign=("left", "right", "right", "right"),
    )
    return f"{TABLE_TITLE}\n{table}"


def log_comparisons(comparisons: Sequence[ComparativeResult]) -> None:
    """Narrate each comparison and the final table."""
    logger.info("=== COMPARATIVE RESULTS ===")
    for c in comparisons:
        logger.info("%s:", c.test_type)
        logger.info("  Serial: %.2f ms", c.serial_time)
        logger.info("  UUID: %.2f ms", c.uuid_time)
        logger.info("  Difference: UUID is %s %s", c.diff_display, c.verdict)
    logger.info("\n%s", render_comparison_table(comparisons))


def render_summary(report: RunReport) -> str:
    """Condensed text report: metadata, table stats and comparisons."""
    lines = [
        "=== PERFORMANCE SUMMARY: SERIAL ID VS UUID ===",
        f"Date: {report.metadata.timestamp}",
        f"PostgreSQL: {report.db_version}",
        f"UUID v7 available: {str(report.uuid_v7_available).lower()}",
        f"UUID generator: {report.metadata.uuid_generator}",
        f"Total records: {report.metadata.total_records}",
        f"Iterations: {report.metadata.iterations}",
        "",
        "=== TABLE STATISTICS ===",
    ]
    for table, stats in report.table_stats.items():
        lines.append(f"{table}:")
        lines.append(f"  Rows: {stats.row_count}")
        lines.append(f"  Size: {stats.table_size}")
        lines.append(f"  Total size (with indexes): {stats.total_size}")

    lines.append("")
    lines.append("=== COMPARATIVE RESULTS ===")
    for c in report.comparative_results:
        lines.append(f"{c.test_type}:")
        lines.append(f"  Serial: {c.serial_time} ms")
        lines.append(f"  UUID: {c.uuid_time} ms")
        lines.append(f"  Difference: UUID is {c.diff_display} {c.verdict}")

    return "\n".join(lines) + "\n"


@dataclass
class ReportFiles:
    """Paths written for one run."""

    json_path: Path
    summary_path: Path


def save_results(
    report: RunReport,
    results_dir: str | Path,
    now: Optional[datetime] = None,
) -> ReportFiles:
    """
    Write the JSON document and text summary, named by run timestamp.

    The directory is created if missing.
    """
    directory = Path(results_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = (now or datetime.now()).strftime(FILE_TIMESTAMP_FORMAT)

    json_path = directory / f"performance_results_{stamp}.json"
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(report.model_dump(mode="json"), f, indent=2)
    logger.info("Results saved to %s", json_path)

    summary_path = directory / f"performance_summary_{stamp}.txt"
    with open(summary_path, "w", encoding="utf-8") as f:
        f.write(render_summary(report))
    logger.info("Summary saved to %s", summary_path)

    return ReportFiles(json_path=json_path, summary_path=summary_path)
