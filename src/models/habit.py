"""Habit, streak ledger and completion log Pydantic models"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


FREQUENCIES = ("daily", "weekly", "monthly")


class Habit(BaseModel):
    """A habit owned by one user"""
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    frequency: str = "daily"  # daily, weekly, monthly
    target: Optional[int] = 1
    goal_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StreakLedger(BaseModel):
    """
    Per-habit streak state

    current_streak counts consecutive calendar days ending at last_logged_date;
    longest_streak is the historical maximum of current_streak.
    """
    habit_id: str
    user_id: str
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_logged_date: Optional[date] = None


class CompletionLog(BaseModel):
    """Durable record that a habit was done on a calendar date"""
    id: str
    habit_id: str
    user_id: str
    log_date: date
    created_at: Optional[datetime] = None


class HabitWithStreak(Habit):
    """Habit listing row joined with its streak ledger"""
    current_streak: int = 0
    longest_streak: int = 0
    last_logged_date: Optional[date] = None
    is_logged_today: bool = False


class LogEntry(BaseModel):
    """Completion log listing row"""
    id: str
    habit_id: str
    habit_name: str
    log_date: date
    created_at: Optional[datetime] = None
