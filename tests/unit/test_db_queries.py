"""Unit tests for database queries (src/db/queries/)"""
import pytest
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

from src.db import queries
from src.models.habit import Habit, StreakLedger
from src.models.user import UserBalance


NOW = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)


def make_transaction(cursor):
    @asynccontextmanager
    async def transaction():
        yield cursor
    return transaction


# ============================================================================
# User Queries
# ============================================================================

@pytest.mark.asyncio
async def test_create_user(mock_db_connection, mock_db_cursor):
    """Test creating a user with an empty balance"""
    mock_db_cursor.fetchone.return_value = {
        "id": "u-1", "username": "alice", "xp": 0, "hp": 0, "level": 1,
        "active_title": None, "created_at": NOW,
    }

    with patch('src.db.queries.users.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        user = await queries.create_user("alice")

        sql, params = mock_db_cursor.execute.call_args[0]
        assert "INSERT INTO users" in sql
        assert params == ("alice",)
        mock_db_connection.commit.assert_called_once()
        assert user.id == "u-1"
        assert user.level == 1


@pytest.mark.asyncio
async def test_get_user_balance_missing(mock_db_connection, mock_db_cursor):
    """Test unknown user returns None"""
    with patch('src.db.queries.users.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        assert await queries.get_user_balance("u-1") is None
        assert "FOR UPDATE" not in mock_db_cursor.execute.call_args[0][0]


@pytest.mark.asyncio
async def test_lock_user_balance(mock_db_cursor):
    """Test the balance row is read with FOR UPDATE"""
    mock_db_cursor.fetchone.return_value = {
        "user_id": "u-1", "xp": 120, "hp": 30, "level": 2, "active_title": None,
    }

    balance = await queries.lock_user_balance(mock_db_cursor, "u-1")

    assert "FOR UPDATE" in mock_db_cursor.execute.call_args[0][0]
    assert balance.xp == 120


@pytest.mark.asyncio
async def test_update_user_balance(mock_db_cursor):
    """Test xp, hp, level and title are persisted"""
    balance = UserBalance(user_id="u-1", xp=150, hp=80, level=2, active_title="Early Riser")

    await queries.update_user_balance(mock_db_cursor, balance)

    sql, params = mock_db_cursor.execute.call_args[0]
    assert "UPDATE users" in sql
    assert params == (150, 80, 2, "Early Riser", "u-1")


# ============================================================================
# Habit Queries
# ============================================================================

@pytest.mark.asyncio
async def test_lock_habit_scoped_to_owner(mock_db_cursor):
    """Test habit lock filters on owner and locks the row"""
    await queries.lock_habit(mock_db_cursor, "h-1", "u-1")

    sql, params = mock_db_cursor.execute.call_args[0]
    assert "FOR UPDATE" in sql
    assert "user_id = %s" in sql
    assert params == ("h-1", "u-1")


@pytest.mark.asyncio
async def test_update_habit(mock_db_cursor):
    """Test editable fields are written and the row is returned"""
    row = {
        "id": "h-1", "user_id": "u-1", "name": "Stretch", "description": None,
        "frequency": "weekly", "target": 2, "goal_id": None,
        "created_at": NOW, "updated_at": NOW,
    }
    mock_db_cursor.fetchone.return_value = row

    habit = await queries.update_habit(mock_db_cursor, Habit(**row))

    sql, params = mock_db_cursor.execute.call_args[0]
    assert "UPDATE habits" in sql
    assert "updated_at = CURRENT_TIMESTAMP" in sql
    assert params == ("Stretch", None, "weekly", 2, None, "h-1", "u-1")
    assert habit.frequency == "weekly"


@pytest.mark.asyncio
async def test_lock_streak_ledger(mock_db_cursor):
    """Test ledger row is locked and mapped"""
    mock_db_cursor.fetchone.return_value = {
        "habit_id": "h-1", "user_id": "u-1", "current_streak": 3,
        "longest_streak": 5, "last_logged_date": date(2025, 3, 9),
    }

    ledger = await queries.lock_streak_ledger(mock_db_cursor, "h-1", "u-1")

    assert "FOR UPDATE" in mock_db_cursor.execute.call_args[0][0]
    assert ledger.current_streak == 3
    assert ledger.last_logged_date == date(2025, 3, 9)


@pytest.mark.asyncio
async def test_update_streak_ledger(mock_db_cursor):
    """Test ledger state is persisted"""
    ledger = StreakLedger(
        habit_id="h-1", user_id="u-1", current_streak=4, longest_streak=5,
        last_logged_date=date(2025, 3, 10),
    )

    await queries.update_streak_ledger(mock_db_cursor, ledger)

    sql, params = mock_db_cursor.execute.call_args[0]
    assert "UPDATE habit_streaks" in sql
    assert params == (4, 5, date(2025, 3, 10), "h-1", "u-1")


@pytest.mark.asyncio
async def test_insert_completion_log(mock_db_cursor):
    """Test completion insert returns the new log"""
    mock_db_cursor.fetchone.return_value = {
        "id": "l-1", "habit_id": "h-1", "user_id": "u-1",
        "log_date": date(2025, 3, 10), "created_at": NOW,
    }

    log = await queries.insert_completion_log(mock_db_cursor, "h-1", "u-1", date(2025, 3, 10))

    assert "INSERT INTO habit_logs" in mock_db_cursor.execute.call_args[0][0]
    assert log.id == "l-1"


@pytest.mark.asyncio
async def test_find_completion_log(mock_db_cursor):
    """Test duplicate lookup"""
    mock_db_cursor.fetchone.return_value = {"id": "l-1"}

    assert await queries.find_completion_log(mock_db_cursor, "h-1", date(2025, 3, 10)) == "l-1"


@pytest.mark.asyncio
async def test_create_habit_inserts_ledger(mock_db_cursor):
    """Test habit and its ledger are written in one transaction"""
    mock_db_cursor.fetchone.return_value = {
        "id": "h-1", "user_id": "u-1", "name": "Read", "description": None,
        "frequency": "daily", "target": 1, "goal_id": None,
        "created_at": NOW, "updated_at": NOW,
    }

    with patch('src.db.queries.habits.db.transaction', make_transaction(mock_db_cursor)):
        habit = await queries.create_habit("u-1", "Read")

    statements = [call[0][0] for call in mock_db_cursor.execute.call_args_list]
    assert "INSERT INTO habits" in statements[0]
    assert "INSERT INTO habit_streaks" in statements[1]
    assert mock_db_cursor.execute.call_args_list[1][0][1] == ("h-1", "u-1", 0, 0, None)
    assert habit.id == "h-1"


@pytest.mark.asyncio
async def test_delete_habit(mock_db_cursor):
    """Test delete reports whether a row was removed"""
    mock_db_cursor.rowcount = 1

    with patch('src.db.queries.habits.db.transaction', make_transaction(mock_db_cursor)):
        assert await queries.delete_habit("u-1", "h-1") is True

    mock_db_cursor.rowcount = 0
    with patch('src.db.queries.habits.db.transaction', make_transaction(mock_db_cursor)):
        assert await queries.delete_habit("u-1", "h-2") is False


@pytest.mark.asyncio
async def test_get_user_logs_filters(mock_db_connection, mock_db_cursor):
    """Test optional filters extend the WHERE clause"""
    with patch('src.db.queries.habits.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        await queries.get_user_logs("u-1", "h-1", date(2025, 3, 1), date(2025, 3, 10))

        sql, params = mock_db_cursor.execute.call_args[0]
        assert "hl.habit_id = %s" in sql
        assert "hl.log_date >= %s" in sql
        assert "hl.log_date <= %s" in sql
        assert sql.strip().endswith("ORDER BY hl.log_date DESC, h.name ASC")
        assert params == ("u-1", "h-1", date(2025, 3, 1), date(2025, 3, 10))


@pytest.mark.asyncio
async def test_get_user_logs_no_filters(mock_db_connection, mock_db_cursor):
    """Test unfiltered listing only binds the user"""
    with patch('src.db.queries.habits.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        result = await queries.get_user_logs("u-1")

        assert mock_db_cursor.execute.call_args[0][1] == ("u-1",)
        assert result == []


# ============================================================================
# Reward Queries
# ============================================================================

@pytest.mark.asyncio
async def test_has_unlocked_reward(mock_db_cursor):
    """Test ownership check"""
    mock_db_cursor.fetchone.return_value = {"?column?": 1}
    assert await queries.has_unlocked_reward(mock_db_cursor, "u-1", "title_early_riser") is True

    mock_db_cursor.fetchone.return_value = None
    assert await queries.has_unlocked_reward(mock_db_cursor, "u-1", "title_early_riser") is False


@pytest.mark.asyncio
async def test_get_unlocked_rewards(mock_db_connection, mock_db_cursor):
    """Test owned rewards are returned as dicts"""
    mock_db_cursor.fetchall.return_value = [{"reward_id": "title_early_riser", "unlocked_at": NOW}]

    with patch('src.db.queries.rewards.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        rows = await queries.get_unlocked_rewards("u-1")

        assert rows == [{"reward_id": "title_early_riser", "unlocked_at": NOW}]
