"""
Service Layer Package

Business logic services that sit between the HTTP layer and the store.

Core Services:
- CompletionService: Habit completion transaction (streaks, XP/HP, levels)
- HabitService: Users, habits and completion log listing
- RewardService: Reward catalog and HP redemption
"""

from src.services.container import ServiceContainer, build_store, get_container, init_container

__all__ = [
    "ServiceContainer",
    "build_store",
    "get_container",
    "init_container",
]
