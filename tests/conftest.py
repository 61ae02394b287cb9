"""Global test fixtures and utilities for habit-quest tests"""
import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from src.db.memory_store import InMemoryStore
from src.gamification.config import DEFAULT_CONFIG
from src.services.completion_service import CompletionService
from src.services.habit_service import HabitService
from src.services.reward_service import RewardService


TODAY = date(2025, 3, 10)


# ============================================================================
# Clock Fixtures
# ============================================================================

@pytest.fixture
def today():
    """Fixed server date used by every service fixture"""
    return TODAY


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Fresh in-memory store"""
    return InMemoryStore()


@pytest.fixture
async def user(store):
    """Registered user with an empty balance"""
    return await store.create_user("quester")


@pytest.fixture
async def daily_habit(store, user):
    """Daily habit owned by `user`"""
    return await store.create_habit(user.id, "Read 20 pages", None, "daily", 1, None)


@pytest.fixture
async def weekly_habit(store, user):
    """Weekly habit owned by `user`"""
    return await store.create_habit(user.id, "Long run", None, "weekly", 1, None)


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def completion_service(store, today):
    """CompletionService pinned to TODAY"""
    return CompletionService(store, DEFAULT_CONFIG, today=lambda: today)


@pytest.fixture
def habit_service(store, today):
    """HabitService pinned to TODAY"""
    return HabitService(store, DEFAULT_CONFIG, today=lambda: today)


@pytest.fixture
def reward_service(store):
    """RewardService over the in-memory store"""
    return RewardService(store)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_db_cursor():
    """Mock psycopg cursor with empty results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    cursor.rowcount = 0
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor):
    """Mock psycopg connection whose cursor() yields mock_db_cursor"""
    conn = MagicMock()
    conn.cursor.return_value.__aenter__ = AsyncMock(return_value=mock_db_cursor)
    conn.cursor.return_value.__aexit__ = AsyncMock(return_value=False)
    conn.commit = AsyncMock()
    return conn


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def test_api_key():
    """Standard test API key"""
    return "test_api_key_12345"


@pytest.fixture
def auth_headers(test_api_key):
    """Authorization header for the test API key"""
    return {"Authorization": f"Bearer {test_api_key}"}
