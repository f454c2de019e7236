"""Benchmark procedure: schema, population, statistics, queries, reporting."""
