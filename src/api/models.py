"""Pydantic models for API request/response validation"""
from typing import Any, Optional, List
from pydantic import BaseModel, Field

from src.models.completion import CompletionResult
from src.models.habit import Habit, HabitWithStreak, LogEntry
from src.models.reward import OwnedReward, Reward
from src.validators import HabitInput, HabitUpdate


class CreateUserRequest(BaseModel):
    """Request to register a user"""
    username: str = Field(..., min_length=1, max_length=100, description="Display name")


class UserResponse(BaseModel):
    """Registered user"""
    user_id: str
    username: str
    xp: int
    hp: int
    level: int


class BalanceResponse(BaseModel):
    """XP, HP and level of a user"""
    user_id: str
    xp: int
    hp: int
    level: int
    xp_to_next_level: int
    active_title: Optional[str] = None


class CreateHabitRequest(HabitInput):
    """Request to create a habit"""


class UpdateHabitRequest(HabitUpdate):
    """Request to edit a habit; omitted fields are left unchanged"""


class HabitResponse(BaseModel):
    """Created habit"""
    message: str = "Habit created successfully"
    habit: Habit


class HabitListResponse(BaseModel):
    """User's habits with streaks"""
    habits: List[HabitWithStreak]


class LogCompletionRequest(BaseModel):
    """Request to log a completion"""
    log_date: Optional[Any] = Field(
        default=None,
        description="YYYY-MM-DD; invalid or missing values log for today"
    )


class LogCompletionResponse(CompletionResult):
    """Logged completion with streak and gamification outcome"""
    message: str = "Habit logged successfully"


class LogListResponse(BaseModel):
    """Completion logs"""
    logs: List[LogEntry]


class RewardListResponse(BaseModel):
    """Reward catalog"""
    rewards: List[Reward]


class OwnedRewardsResponse(BaseModel):
    """Rewards owned by a user"""
    owned_rewards: List[OwnedReward]


class RedeemResponse(BaseModel):
    """Result of a redemption"""
    message: str
    hp: int
    active_title: Optional[str] = None


class SetTitleRequest(BaseModel):
    """Request to choose the displayed title"""
    title: Optional[str] = Field(default=None, description="Name of an owned title, or null to clear")


class TitleResponse(BaseModel):
    """Active title after the change"""
    message: str = "Active title updated successfully"
    active_title: Optional[str] = None


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str
    storage: str
    version: str


class ErrorResponse(BaseModel):
    """Error response"""
    error: str
    message: str
    user_message: str
    request_id: str
    timestamp: str
