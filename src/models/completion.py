"""Outcome of logging a habit completion"""
from typing import Optional
from pydantic import BaseModel

from src.models.habit import CompletionLog


class StreakSnapshot(BaseModel):
    """Streak pair after the completion was applied"""
    habit_id: str
    current_streak: int
    longest_streak: int


class GamificationSummary(BaseModel):
    """Rewards earned and resulting balance"""
    xp_earned: int
    hp_earned: int
    level_up: bool
    new_level: Optional[int] = None  # Only set when level_up is True
    current_level: int
    current_xp: int
    current_hp: int


class CompletionResult(BaseModel):
    """Everything the caller gets back from a successful completion"""
    log: CompletionLog
    streak: StreakSnapshot
    gamification: GamificationSummary
