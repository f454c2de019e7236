"""
Key Strategy Benchmark - Entry Point

Runs the serial-vs-UUID benchmark end to end on one connection:
schema reset, population, VACUUM ANALYZE, statistics, timed queries,
comparison and report export.

Usage:
    python -m keybench
"""

from __future__ import annotations

import asyncio
import logging
import random
import sys
from typing import Optional

import asyncpg
from pydantic import ValidationError

from keybench.config import Settings
from keybench.connectors.postgres import connection
from keybench.core.data_populator import DataPopulator
from keybench.core.query_benchmarker import QueryBenchmarker
from keybench.core.reporter import (
    ReportFiles,
    compare_results,
    log_comparisons,
    save_results,
)
from keybench.core.schema_manager import SchemaManager, detect_uuid_generator
from keybench.core.table_stats import (
    collect_index_stats,
    collect_table_stats,
    get_server_info,
)
from keybench.models import RunMetadata, RunReport

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        datefmt=settings.LOG_DATE_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(settings.LOG_FILE)
            if settings.LOG_FILE
            else logging.NullHandler(),
        ],
        force=True,
    )
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


async def run_benchmark(
    conn,
    settings: Settings,
    rng: Optional[random.Random] = None,
) -> RunReport:
    """
    Execute the full benchmark procedure on an open connection.

    Args:
        conn: asyncpg connection
        settings: Run settings
        rng: Random source for generated data (unseeded when omitted)

    Returns:
        RunReport with statistics, results and comparisons
    """
    report = RunReport(
        metadata=RunMetadata(
            total_records=settings.TOTAL_RECORDS,
            iterations=settings.TEST_ITERATIONS,
            batch_size=settings.BATCH_SIZE,
        )
    )
    logger.info("Starting performance test at %s", report.metadata.started_at)

    server = await get_server_info(conn)
    report.db_version = server.version

    generator = await detect_uuid_generator(conn)
    report.uuid_v7_available = generator.time_ordered
    report.metadata.uuid_generator = generator.call

    schema = SchemaManager(conn, generator)
    await schema.reset()

    populator = DataPopulator(
        conn, generator, batch_size=settings.BATCH_SIZE, rng=rng
    )
    await populator.populate_all(settings.TOTAL_RECORDS)

    await schema.vacuum_analyze()

    logger.info("Table statistics after insertion:")
    report.table_stats = await collect_table_stats(conn)
    report.index_stats = await collect_index_stats(conn)

    benchmarker = QueryBenchmarker(conn, iterations=settings.TEST_ITERATIONS)
    report.test_results = await benchmarker.run_all()

    report.comparative_results = compare_results(report.test_results)
    log_comparisons(report.comparative_results)

    report.finish()
    return report


async def run(
    settings: Settings, rng: Optional[random.Random] = None
) -> ReportFiles:
    """Open the connection, run the benchmark and export the report."""
    async with connection(settings) as conn:
        report = await run_benchmark(conn, settings, rng=rng)
    files = save_results(report, settings.RESULTS_DIR)
    logger.info(
        "🎉 Test finished at %s. Total duration: %.2f minutes",
        report.metadata.finished_at,
        (report.metadata.duration_seconds or 0.0) / 60.0,
    )
    return files


def main() -> int:
    """Console entry point. Returns the process exit status."""
    try:
        settings = Settings()
    except ValidationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error("Invalid configuration: %s", e)
        return 1

    configure_logging(settings)
    logger.info("Starting PostgreSQL performance test: Serial ID vs UUID")

    try:
        asyncio.run(run(settings))
    except asyncpg.PostgresError as e:
        logger.exception("PostgreSQL error: %s", e)
        return 1
    except Exception as e:
        logger.exception("Error: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
