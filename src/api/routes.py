"""API routes for habit quest"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, status

from src.api.models import (
    CreateUserRequest, UserResponse, BalanceResponse,
    CreateHabitRequest, UpdateHabitRequest, HabitResponse, HabitListResponse,
    LogCompletionRequest, LogCompletionResponse, LogListResponse,
    RewardListResponse, OwnedRewardsResponse, RedeemResponse,
    SetTitleRequest, TitleResponse,
)
from src.api.auth import verify_api_key
from src.api.middleware import limiter
from src.services.container import ServiceContainer, get_container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")


def get_services() -> ServiceContainer:
    """Service container dependency"""
    return get_container()


# ==========================================
# Users
# ==========================================

@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_user(
    request: Request,
    payload: CreateUserRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Register a user (Rate limit: 20/minute)"""
    user = await services.habit_service.create_user(payload.username)
    return UserResponse(user_id=user.id, username=user.username, xp=user.xp, hp=user.hp, level=user.level)


@router.get("/users/{user_id}/balance", response_model=BalanceResponse)
@limiter.limit("60/minute")
async def get_balance(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Get XP, HP and level (Rate limit: 60/minute)"""
    return BalanceResponse(**await services.habit_service.get_balance(user_id))


# ==========================================
# Habits
# ==========================================

@router.post("/users/{user_id}/habits", response_model=HabitResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_habit(
    request: Request,
    user_id: str,
    payload: CreateHabitRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Create a habit (Rate limit: 30/minute)"""
    habit = await services.habit_service.create_habit(user_id, payload)
    return HabitResponse(habit=habit)


@router.get("/users/{user_id}/habits", response_model=HabitListResponse)
@limiter.limit("60/minute")
async def list_habits(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """List habits with streaks and today's status (Rate limit: 60/minute)"""
    return HabitListResponse(habits=await services.habit_service.list_habits(user_id))


@router.put("/users/{user_id}/habits/{habit_id}", response_model=HabitResponse)
@limiter.limit("30/minute")
async def update_habit(
    request: Request,
    user_id: str,
    habit_id: str,
    payload: UpdateHabitRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Edit a habit's name, description, frequency, target or goal (Rate limit: 30/minute)"""
    habit = await services.habit_service.update_habit(user_id, habit_id, payload)
    return HabitResponse(message="Habit updated successfully", habit=habit)


@router.delete("/users/{user_id}/habits/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def delete_habit(
    request: Request,
    user_id: str,
    habit_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Delete a habit and its history (Rate limit: 30/minute)"""
    await services.habit_service.delete_habit(user_id, habit_id)


@router.post(
    "/users/{user_id}/habits/{habit_id}/log",
    response_model=LogCompletionResponse,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit("30/minute")
async def log_completion(
    request: Request,
    user_id: str,
    habit_id: str,
    payload: Optional[LogCompletionRequest] = None,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """
    Log a habit completion (Rate limit: 30/minute)

    Returns 404 when the habit is missing or not owned by the user and 409
    when the date is already logged.
    """
    log_date = payload.log_date if payload else None
    result = await services.completion_service.log_completion(user_id, habit_id, log_date)
    return LogCompletionResponse(**result.model_dump())


@router.get("/users/{user_id}/logs", response_model=LogListResponse)
@limiter.limit("60/minute")
async def list_logs(
    request: Request,
    user_id: str,
    habit_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """List completion logs, optionally filtered (Rate limit: 60/minute)"""
    logs = await services.habit_service.list_logs(user_id, habit_id, start_date, end_date)
    return LogListResponse(logs=logs)


# ==========================================
# Rewards
# ==========================================

@router.get("/rewards", response_model=RewardListResponse)
@limiter.limit("60/minute")
async def list_rewards(
    request: Request,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """List the reward catalog (Rate limit: 60/minute)"""
    return RewardListResponse(rewards=services.reward_service.list_rewards())


@router.get("/users/{user_id}/rewards", response_model=OwnedRewardsResponse)
@limiter.limit("60/minute")
async def get_owned_rewards(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """List rewards owned by the user (Rate limit: 60/minute)"""
    return OwnedRewardsResponse(owned_rewards=await services.reward_service.get_owned_rewards(user_id))


@router.post("/users/{user_id}/rewards/{reward_id}/redeem", response_model=RedeemResponse)
@limiter.limit("10/minute")
async def redeem_reward(
    request: Request,
    user_id: str,
    reward_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Spend HP on a reward (Rate limit: 10/minute)"""
    result = await services.reward_service.redeem(user_id, reward_id)
    return RedeemResponse(
        message=f"Reward '{result['reward'].name}' redeemed successfully!",
        hp=result["hp"],
        active_title=result["active_title"],
    )


@router.put("/users/{user_id}/title", response_model=TitleResponse)
@limiter.limit("30/minute")
async def set_active_title(
    request: Request,
    user_id: str,
    payload: SetTitleRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Display an owned title, or clear it with null (Rate limit: 30/minute)"""
    title = await services.reward_service.set_active_title(user_id, payload.title)
    return TitleResponse(active_title=title)
