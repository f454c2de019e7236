"""
Report Models

Defines Pydantic models for benchmark results and the exported run report.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel, Field

from keybench.models.workload import KeyType

REPORT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class TimingStats(BaseModel):
    """Descriptive statistics over repeated query timings (milliseconds)."""

    avg_time_ms: float = Field(0.0, description="Mean elapsed time")
    min_time_ms: float = Field(0.0, description="Minimum elapsed time")
    max_time_ms: float = Field(0.0, description="Maximum elapsed time")
    std_dev_ms: float = Field(0.0, description="Population standard deviation")


class BenchmarkResult(TimingStats):
    """Result of running one query definition for all iterations."""

    name: str = Field(..., description="Query name")
    type: KeyType = Field(..., description="Key strategy")
    query: str = Field(..., description="SQL text")
    iterations: int = Field(..., description="Number of timed executions")
    times_ms: List[float] = Field(
        default_factory=list, description="Per-iteration elapsed time (ms)"
    )
    execution_plan: Optional[Any] = Field(
        None, description="EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON) of the first run"
    )


class ComparativeResult(BaseModel):
    """Serial vs UUID comparison for one query shape."""

    test_type: str = Field(..., description="Query shape")
    serial_time: float = Field(..., description="Serial average (ms)")
    uuid_time: float = Field(..., description="UUID average (ms)")
    diff_percent: Optional[float] = Field(
        None, description="Signed difference; positive means UUID is slower"
    )

    @property
    def verdict(self) -> str:
        if self.diff_percent is None:
            return "n/a"
        return "slower" if self.diff_percent > 0 else "faster"

    @property
    def diff_display(self) -> str:
        if self.diff_percent is None:
            return "n/a"
        return f"{self.diff_percent:+.2f}%"


class TableStats(BaseModel):
    """Row count and on-disk size of one table."""

    row_count: int = Field(0, description="Rows counted with COUNT(*)")
    table_bytes: Optional[int] = Field(None, description="Heap size in bytes")
    table_size: str = Field("", description="Heap size, human readable")
    total_bytes: Optional[int] = Field(None, description="Heap + index size in bytes")
    total_size: str = Field("", description="Heap + index size, human readable")


class IndexStats(BaseModel):
    """Size and usage of one index."""

    table_name: str = Field(..., description="Indexed table")
    index_bytes: Optional[int] = Field(None, description="Index size in bytes")
    index_size: str = Field("", description="Index size, human readable")
    index_scans: int = Field(0, description="Scans since last statistics reset")


class RunMetadata(BaseModel):
    """Parameters and timing of a benchmark run."""

    timestamp: str = Field(
        default_factory=lambda: datetime.now().strftime(REPORT_TIMESTAMP_FORMAT),
        description="Run start (local time)",
    )
    total_records: int = Field(..., description="Parent rows per key strategy")
    iterations: int = Field(..., description="Executions per query")
    batch_size: int = Field(..., description="Rows per insert statement")
    uuid_generator: Optional[str] = Field(None, description="UUID function used")
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None


class RunReport(BaseModel):
    """Everything a run exports to the JSON result document."""

    metadata: RunMetadata
    db_version: Optional[str] = None
    uuid_v7_available: bool = False
    table_stats: Dict[str, TableStats] = Field(default_factory=dict)
    index_stats: Dict[str, IndexStats] = Field(default_factory=dict)
    test_results: List[BenchmarkResult] = Field(default_factory=list)
    comparative_results: List[ComparativeResult] = Field(default_factory=list)

    def finish(self, finished_at: Optional[datetime] = None) -> None:
        """Stamp the end of the run and its duration."""
        self.metadata.finished_at = finished_at or datetime.now()
        self.metadata.duration_seconds = round(
            (self.metadata.finished_at - self.metadata.started_at).total_seconds(), 2
        )
