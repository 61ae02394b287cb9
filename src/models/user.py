"""User-related Pydantic models"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class UserBalance(BaseModel):
    """
    Gamification fields of a user

    xp and level only ever grow; hp grows from completions and level-ups
    and shrinks only through reward redemption.
    """
    user_id: str
    xp: int = Field(default=0, ge=0)
    hp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    active_title: Optional[str] = None


class User(BaseModel):
    """Registered user"""
    id: str
    username: str
    xp: int = 0
    hp: int = 0
    level: int = 1
    active_title: Optional[str] = None
    created_at: Optional[datetime] = None
