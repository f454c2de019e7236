"""
Query Benchmarker

Runs the join workload against both key strategies and aggregates timings.

Every query is executed `iterations` times as
EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON), so each run really executes the
query and reports actual row counts and buffer usage. Session state is
reset with DISCARD ALL before every iteration except the first, and the
plan document is kept only from the first iteration.
"""

from __future__ import annotations

import json
import logging
import statistics
import time
from typing import Any, Callable, Optional, Sequence

from keybench.models import BenchmarkResult, KeyType, QueryDefinition, TimingStats
from keybench.models.workload import QUERY_NAME_SEPARATOR

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 5
RESET_SESSION_SQL = "DISCARD ALL"
EXPLAIN_PREFIX = "EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON)"

# Query shape -> SQL template over {parent} and {child}.
QUERY_SHAPES: dict[str, str] = {
    "Simple Join": (
        "SELECT p.id, p.name, c.description "
        "FROM {parent} p JOIN {child} c ON p.id = c.parent_id "
        "WHERE p.value > 500 LIMIT 1000"
    ),
    "Complex Join": (
        "SELECT p.name, COUNT(c.id) AS child_count, AVG(p.value) AS avg_value "
        "FROM {parent} p LEFT JOIN {child} c ON p.id = c.parent_id "
        "WHERE p.value BETWEEN 200 AND 800 "
        "GROUP BY p.name ORDER BY child_count DESC LIMIT 100"
    ),
    "Multiple Joins": (
        "WITH active_children AS ("
        "SELECT parent_id, COUNT(*) AS active_count FROM {child} "
        "WHERE active = true GROUP BY parent_id) "
        "SELECT p.id, p.name, p.value, COUNT(c.id) AS total_children, "
        "COALESCE(ac.active_count, 0) AS active_children "
        "FROM {parent} p "
        "LEFT JOIN {child} c ON p.id = c.parent_id "
        "LEFT JOIN active_children ac ON p.id = ac.parent_id "
        "WHERE p.value > 200 "
        "GROUP BY p.id, p.name, p.value, ac.active_count "
        "ORDER BY p.value DESC LIMIT 100"
    ),
}


def build_query(shape: str, key_type: KeyType) -> QueryDefinition:
    """Bind one query shape to one key strategy's tables."""
    return QueryDefinition(
        name=f"{shape}{QUERY_NAME_SEPARATOR}{key_type.label}",
        key_type=key_type,
        sql=QUERY_SHAPES[shape].format(
            parent=key_type.parent_table, child=key_type.child_table
        ),
    )


def default_queries() -> list[QueryDefinition]:
    """The six benchmark queries: every shape, serial then UUID."""
    return [
        build_query(shape, key_type) for shape in QUERY_SHAPES for key_type in KeyType
    ]


def compute_timing_stats(times_ms: Sequence[float]) -> TimingStats:
    """
    Mean, min, max and population standard deviation, rounded to 2 decimals.

    Example:
        >>> compute_timing_stats([10, 20, 30]).std_dev_ms
        8.16
    """
    if not times_ms:
        return TimingStats()

    return TimingStats(
        avg_time_ms=round(statistics.fmean(times_ms), 2),
        min_time_ms=round(min(times_ms), 2),
        max_time_ms=round(max(times_ms), 2),
        std_dev_ms=round(statistics.pstdev(times_ms), 2),
    )


def _parse_plan(raw: Any) -> Any:
    # asyncpg returns json columns as text unless a codec is registered.
    if isinstance(raw, (str, bytes)):
        return json.loads(raw)
    return raw


class QueryBenchmarker:
    """
    Times query definitions on a single connection.

    Args:
        conn: asyncpg connection
        iterations: Executions per query
        clock: Monotonic clock in seconds
    """

    def __init__(
        self,
        conn,
        iterations: int = DEFAULT_ITERATIONS,
        clock: Callable[[], float] = time.perf_counter,
    ):
        if iterations < 1:
            raise ValueError("iterations must be >= 1")
        self.conn = conn
        self.iterations = iterations
        self.clock = clock

    async def reset_session(self) -> None:
        await self.conn.execute(RESET_SESSION_SQL)

    async def _timed_explain(self, sql: str) -> tuple[float, Any]:
        start = self.clock()
        raw_plan = await self.conn.fetchval(f"{EXPLAIN_PREFIX} {sql}")
        elapsed_ms = (self.clock() - start) * 1000.0
        return elapsed_ms, raw_plan

    async def run_query(self, query: QueryDefinition) -> BenchmarkResult:
        """Execute one query for every iteration and aggregate the timings."""
        logger.info("Running test: %s", query.name)

        times_ms: list[float] = []
        execution_plan: Optional[Any] = None

        for i in range(self.iterations):
            if i > 0:
                await self.reset_session()

            elapsed_ms, raw_plan = await self._timed_explain(query.sql)
            if i == 0:
                execution_plan = _parse_plan(raw_plan)

            times_ms.append(elapsed_ms)
            logger.info("  Iteration %d: %.2f ms", i + 1, elapsed_ms)

        timing = compute_timing_stats(times_ms)
        logger.info("  Average: %.2f ms", timing.avg_time_ms)
        logger.info(
            "  Min: %.2f ms, Max: %.2f ms", timing.min_time_ms, timing.max_time_ms
        )
        logger.info("  Standard deviation: %.2f ms", timing.std_dev_ms)

        return BenchmarkResult(
            name=query.name,
            type=query.key_type,
            query=query.sql,
            iterations=self.iterations,
            times_ms=[round(t, 2) for t in times_ms],
            execution_plan=execution_plan,
            **timing.model_dump(),
        )

    async def run_all(
        self, queries: Optional[Sequence[QueryDefinition]] = None
    ) -> list[BenchmarkResult]:
        """Run every query in order, starting from a clean session."""
        logger.info("Running performance tests...")
        await self.reset_session()
        return [await self.run_query(query) for query in queries or default_queries()]
