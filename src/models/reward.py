"""Reward catalog models"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class Reward(BaseModel):
    """Cosmetic title purchasable with HP"""
    id: str
    name: str
    description: str
    cost_hp: int


class OwnedReward(Reward):
    """Reward the user has unlocked"""
    unlocked_at: Optional[datetime] = None
