"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from src.gamification.config import DEFAULT_CONFIG, GamificationConfig

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    The store and gamification rules are injected.
    """

    # Infrastructure dependencies (injected)
    store: object  # PostgresStore or InMemoryStore
    config: GamificationConfig = DEFAULT_CONFIG

    # Services (lazy-loaded via properties)
    _completion_service: Optional[object] = field(default=None, init=False, repr=False)
    _habit_service: Optional[object] = field(default=None, init=False, repr=False)
    _reward_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def completion_service(self):
        """Get CompletionService instance (lazy-loaded)"""
        if self._completion_service is None:
            from src.services.completion_service import CompletionService
            self._completion_service = CompletionService(self.store, self.config)
            logger.debug("CompletionService instantiated")
        return self._completion_service

    @property
    def habit_service(self):
        """Get HabitService instance (lazy-loaded)"""
        if self._habit_service is None:
            from src.services.habit_service import HabitService
            self._habit_service = HabitService(self.store, self.config)
            logger.debug("HabitService instantiated")
        return self._habit_service

    @property
    def reward_service(self):
        """Get RewardService instance (lazy-loaded)"""
        if self._reward_service is None:
            from src.services.reward_service import RewardService
            self._reward_service = RewardService(self.store)
            logger.debug("RewardService instantiated")
        return self._reward_service


# Global container instance (initialized at API startup)
_container: Optional[ServiceContainer] = None


def build_store(backend: str):
    """
    Create the store for a STORAGE_BACKEND value.

    Args:
        backend: 'postgres' or 'memory'
    """
    if backend == "memory":
        from src.db.memory_store import InMemoryStore
        return InMemoryStore()
    if backend == "postgres":
        from src.db.store import PostgresStore
        return PostgresStore()
    raise ValueError(f"Unknown storage backend: {backend}")


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Returns:
        ServiceContainer: The global container instance

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(store: object, config: GamificationConfig = DEFAULT_CONFIG) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: Transactional store instance
        config: Gamification rules

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(store=store, config=config)

    logger.info(f"Service container initialized with {type(store).__name__}")
    return _container
