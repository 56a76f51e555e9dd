"""
Centralized Prometheus metrics definitions for the game review pipeline.

This module uses the prometheus-client library to define all metrics exposed
for monitoring. Grouping them here gives a single overview of the
instrumentation points.
"""
from prometheus_client import Counter, Histogram

# A common prefix for all application-specific metrics.
PREFIX = "game_reviewer"

# --- Review Metrics ---

REVIEWS_TOTAL = Counter(
    f"{PREFIX}_reviews_total",
    "Total number of game reviews by outcome.",
    ["outcome"],  # e.g., outcome="completed", "stale", "evaluator_unavailable", "failed"
)

REVIEW_DURATION_SECONDS = Histogram(
    f"{PREFIX}_review_duration_seconds",
    "Histogram of the time taken to review a single game.",
    buckets=(1, 5, 10, 30, 60, 120, 300, 600, float("inf"))
)

PLIES_PROCESSED_TOTAL = Counter(
    f"{PREFIX}_plies_processed_total",
    "Total number of plies collected in phase one, by where their evaluation came from.",
    ["source"],  # e.g., source="book", "cache", "engine", "unevaluated", "illegal"
)

# --- Evaluator & Cache Metrics ---

EVALUATION_DURATION_SECONDS = Histogram(
    f"{PREFIX}_evaluation_duration_seconds",
    "Histogram of the time taken by the evaluator for a single position."
)

STORED_EVALUATIONS_TOTAL = Counter(
    f"{PREFIX}_stored_evaluations_total",
    "Engine evaluations served by the local store versus computed.",
    ["source"],  # e.g., source="store_hit", "engine_run"
)

CACHE_FETCH_FAILURES_TOTAL = Counter(
    f"{PREFIX}_cache_fetch_failures_total",
    "Total number of evaluation-cache lookups that failed and fell through to the engine."
)

TRANSIENT_ERRORS_TOTAL = Counter(
    f"{PREFIX}_transient_errors_total",
    "Total number of transient errors that triggered a retry.",
    ["system"]  # e.g., system="cloud_cache", "sqlite"
)
