"""Unit tests for users, habits and logs (src/services/habit_service.py)"""
import pytest
from datetime import timedelta
from uuid import uuid4

from src.exceptions import HabitNotFoundError, UserNotFoundError, ValidationError
from src.validators import HabitInput, HabitUpdate


# ============================================================================
# Users
# ============================================================================

@pytest.mark.asyncio
async def test_create_user(habit_service, store):
    """Test users start at level 1 with no XP or HP"""
    created = await habit_service.create_user("  alice  ")

    assert created.username == "alice"
    assert (created.xp, created.hp, created.level) == (0, 0, 1)
    assert created.id in store.users


@pytest.mark.asyncio
async def test_create_user_blank_name(habit_service):
    """Test blank usernames are rejected"""
    with pytest.raises(ValidationError):
        await habit_service.create_user("   ")


@pytest.mark.asyncio
async def test_get_balance(habit_service, store, user):
    """Test balance with progress to next level"""
    store.users[user.id] = store.users[user.id].model_copy(update={"xp": 130, "hp": 40, "level": 2})

    balance = await habit_service.get_balance(user.id)

    assert balance == {
        "user_id": user.id,
        "xp": 130,
        "hp": 40,
        "level": 2,
        "xp_to_next_level": 70,
        "active_title": None,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", [str(uuid4()), "not-a-uuid"])
async def test_get_balance_unknown_user(habit_service, user_id):
    """Test unknown or malformed user ids"""
    with pytest.raises(UserNotFoundError):
        await habit_service.get_balance(user_id)


# ============================================================================
# Habits
# ============================================================================

@pytest.mark.asyncio
async def test_create_habit_with_ledger(habit_service, store, user):
    """Test habit creation also creates its empty streak ledger"""
    habit = await habit_service.create_habit(user.id, HabitInput(name="Meditate", frequency="Weekly"))

    assert habit.frequency == "weekly"
    assert habit.user_id == user.id
    ledger = store.streaks[habit.id]
    assert (ledger.current_streak, ledger.longest_streak, ledger.last_logged_date) == (0, 0, None)


@pytest.mark.asyncio
async def test_create_habit_unknown_user(habit_service):
    """Test habits need an existing owner"""
    with pytest.raises(UserNotFoundError):
        await habit_service.create_habit(str(uuid4()), HabitInput(name="Meditate"))


@pytest.mark.asyncio
async def test_list_habits_with_streaks(habit_service, completion_service, user, daily_habit, weekly_habit):
    """Test listing joins streak data and today's status"""
    await completion_service.log_completion(user.id, daily_habit.id)

    habits = await habit_service.list_habits(user.id)
    by_id = {h.id: h for h in habits}

    assert by_id[daily_habit.id].current_streak == 1
    assert by_id[daily_habit.id].is_logged_today is True
    assert by_id[weekly_habit.id].current_streak == 0
    assert by_id[weekly_habit.id].is_logged_today is False


@pytest.mark.asyncio
async def test_list_habits_only_own(habit_service, store, daily_habit):
    """Test other users' habits are not listed"""
    other = await store.create_user("other")

    assert await habit_service.list_habits(other.id) == []


@pytest.mark.asyncio
async def test_delete_habit_cascades(habit_service, completion_service, store, user, daily_habit):
    """Test deleting a habit removes its ledger and logs"""
    await completion_service.log_completion(user.id, daily_habit.id)

    await habit_service.delete_habit(user.id, daily_habit.id)

    assert daily_habit.id not in store.habits
    assert daily_habit.id not in store.streaks
    assert store.logs == {}


@pytest.mark.asyncio
async def test_delete_other_users_habit(habit_service, store, daily_habit):
    """Test deletion is scoped to the owner"""
    other = await store.create_user("other")

    with pytest.raises(HabitNotFoundError):
        await habit_service.delete_habit(other.id, daily_habit.id)

    assert daily_habit.id in store.habits


# ============================================================================
# Habit Updates
# ============================================================================

@pytest.mark.asyncio
async def test_update_habit_partial(habit_service, store, user, daily_habit):
    """Test only the sent fields change"""
    updated = await habit_service.update_habit(
        user.id,
        daily_habit.id,
        HabitUpdate(name="  Read 30 pages ", frequency="Weekly")
    )

    assert updated.name == "Read 30 pages"
    assert updated.frequency == "weekly"
    assert updated.target == daily_habit.target
    assert updated.updated_at >= daily_habit.updated_at
    assert store.habits[daily_habit.id].name == "Read 30 pages"


@pytest.mark.asyncio
async def test_update_habit_clears_nullable_fields(habit_service, store, user):
    """Test description and goal can be unset with null"""
    goal_id = str(uuid4())
    habit = await store.create_habit(user.id, "Meditate", "ten minutes", "daily", 1, goal_id)

    updated = await habit_service.update_habit(user.id, habit.id, HabitUpdate(description=None, goal_id=None))

    assert updated.description is None
    assert updated.goal_id is None
    assert updated.name == "Meditate"


@pytest.mark.asyncio
async def test_update_habit_keeps_streak(habit_service, completion_service, store, user, daily_habit, today):
    """Test edits leave the streak ledger and logs alone"""
    await completion_service.log_completion(user.id, daily_habit.id)

    await habit_service.update_habit(user.id, daily_habit.id, HabitUpdate(frequency="monthly"))

    assert store.streaks[daily_habit.id].current_streak == 1
    assert store.streaks[daily_habit.id].last_logged_date == today
    assert len(store.logs) == 1


@pytest.mark.asyncio
async def test_update_habit_requires_fields(habit_service, user, daily_habit):
    """Test an empty update is rejected"""
    with pytest.raises(ValidationError):
        await habit_service.update_habit(user.id, daily_habit.id, HabitUpdate())


@pytest.mark.asyncio
async def test_update_other_users_habit(habit_service, store, daily_habit):
    """Test updates are scoped to the owner"""
    other = await store.create_user("other")

    with pytest.raises(HabitNotFoundError):
        await habit_service.update_habit(other.id, daily_habit.id, HabitUpdate(name="Mine now"))

    assert store.habits[daily_habit.id].name == "Read 20 pages"


@pytest.mark.asyncio
@pytest.mark.parametrize("habit_id", ["abc", None])
async def test_update_habit_unknown_id(habit_service, user, habit_id):
    """Test malformed and missing habit ids are 404"""
    with pytest.raises(HabitNotFoundError):
        await habit_service.update_habit(user.id, habit_id or str(uuid4()), HabitUpdate(target=3))


# ============================================================================
# Logs
# ============================================================================

@pytest.mark.asyncio
async def test_list_logs_ordering_and_filters(habit_service, completion_service, user, daily_habit, weekly_habit, today):
    """Test logs sort by date desc then habit name, with inclusive filters"""
    for days_ago in (0, 1, 2):
        await completion_service.log_completion(user.id, daily_habit.id, today - timedelta(days=days_ago))
    await completion_service.log_completion(user.id, weekly_habit.id, today)

    logs = await habit_service.list_logs(user.id)
    assert [(log.log_date, log.habit_name) for log in logs] == [
        (today, "Long run"),
        (today, "Read 20 pages"),
        (today - timedelta(days=1), "Read 20 pages"),
        (today - timedelta(days=2), "Read 20 pages"),
    ]

    window = await habit_service.list_logs(
        user.id,
        start_date=(today - timedelta(days=1)).isoformat(),
        end_date=(today - timedelta(days=1)).isoformat(),
    )
    assert [log.log_date for log in window] == [today - timedelta(days=1)]

    weekly_only = await habit_service.list_logs(user.id, habit_id=weekly_habit.id)
    assert [log.habit_id for log in weekly_only] == [weekly_habit.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_date", ["03/10/2025", "2025-3-10", "2025-02-30"])
async def test_list_logs_rejects_bad_dates(habit_service, user, bad_date):
    """Test filters must be real YYYY-MM-DD dates"""
    with pytest.raises(ValidationError):
        await habit_service.list_logs(user.id, start_date=bad_date)


@pytest.mark.asyncio
async def test_list_logs_rejects_bad_habit_id(habit_service, user):
    """Test habit filter must be a UUID"""
    with pytest.raises(ValidationError):
        await habit_service.list_logs(user.id, habit_id="abc")
