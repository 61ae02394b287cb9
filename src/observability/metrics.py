"""
Prometheus metrics definitions for habit-quest.

Metrics are organized by category:
- HTTP/API metrics: Request counts, latency
- Completion metrics: Logged completions, XP/HP awarded, level-ups
- Reward metrics: Redemptions and HP spent

Metrics are exposed at the /metrics endpoint for Prometheus scraping.
"""

import logging
import sys
from prometheus_client import Counter, Gauge, Histogram, Info

logger = logging.getLogger(__name__)

# =============================================================================
# HTTP/API Metrics
# =============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests received",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
)

# =============================================================================
# Completion Metrics
# =============================================================================

habit_completions_total = Counter(
    "habit_completions_total",
    "Habit completion attempts by outcome",
    ["frequency", "outcome"],  # outcome: logged/not_found/conflict/error
)

habit_completion_duration_seconds = Histogram(
    "habit_completion_duration_seconds",
    "Time spent in the completion transaction",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

gamification_xp_awarded_total = Counter(
    "gamification_xp_awarded_total",
    "Total XP awarded",
    ["frequency"],
)

gamification_hp_awarded_total = Counter(
    "gamification_hp_awarded_total",
    "Total HP awarded, level-up bonuses included",
    ["source"],  # source: completion/level_up
)

gamification_level_ups_total = Counter(
    "gamification_level_ups_total",
    "Total levels gained",
)

# =============================================================================
# Reward Metrics
# =============================================================================

reward_redemptions_total = Counter(
    "reward_redemptions_total",
    "Reward redemption attempts by outcome",
    ["reward_id", "outcome"],  # outcome: redeemed/not_found/insufficient_hp/already_owned/error
)

reward_hp_spent_total = Counter(
    "reward_hp_spent_total",
    "Total HP spent on rewards",
)

# =============================================================================
# Application Info
# =============================================================================

app_info = Info(
    "app_info",
    "Application information",
)


def init_metrics(version: str, storage_backend: str) -> None:
    """
    Initialize metrics with application information.

    Called once at application startup.
    """
    app_info.info(
        {
            "version": version,
            "storage_backend": storage_backend,
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}",
        }
    )

    logger.info("Prometheus metrics initialized")
