"""Static catalog of HP-purchasable titles"""
from typing import List, Optional

from src.models.reward import Reward

AVAILABLE_REWARDS: List[Reward] = [
    Reward(
        id="title_early_riser",
        name="Early Riser",
        description="Awarded for consistent morning activity.",
        cost_hp=50,
    ),
    Reward(
        id="title_streak_master",
        name="Streak Master",
        description="Prove your dedication!",
        cost_hp=150,
    ),
    Reward(
        id="title_focused_mind",
        name="Focused Mind",
        description="For those who stick to their goals.",
        cost_hp=100,
    ),
]


def find_reward_by_id(reward_id: str) -> Optional[Reward]:
    """Look up a catalog entry, None if unknown"""
    for reward in AVAILABLE_REWARDS:
        if reward.id == reward_id:
            return reward
    return None


def find_reward_by_name(name: str) -> Optional[Reward]:
    """Look up a catalog entry by its title text"""
    for reward in AVAILABLE_REWARDS:
        if reward.name == name:
            return reward
    return None
