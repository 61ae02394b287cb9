"""
Observability module for habit-quest.

This module provides:
- Metrics collection with Prometheus
- Request metrics middleware for FastAPI
"""

__all__ = ["metrics", "metrics_middleware"]
