"""
Data models for the key strategy benchmark.

This package contains Pydantic models for:
- Key strategies and benchmark query definitions
- Per-query results and serial vs UUID comparisons
- Table/index statistics and the exported run report
"""

from keybench.models.workload import (
    KeyType,
    QueryDefinition,
    all_tables,
    query_shape,
)

from keybench.models.report import (
    TimingStats,
    BenchmarkResult,
    ComparativeResult,
    TableStats,
    IndexStats,
    RunMetadata,
    RunReport,
)

__all__ = [
    # workload
    "KeyType",
    "QueryDefinition",
    "all_tables",
    "query_shape",
    # report
    "TimingStats",
    "BenchmarkResult",
    "ComparativeResult",
    "TableStats",
    "IndexStats",
    "RunMetadata",
    "RunReport",
]
