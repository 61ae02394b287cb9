"""
Completion Rewards

XP/HP awarded for a single habit completion.

Base award by frequency:
- daily (and anything unrecognized): 10 XP / 5 HP
- weekly: 25 XP / 15 HP
- monthly: 60 XP / 35 HP

Streak bonus: +2 XP and +1 HP for every streak day beyond the first.
"""

from dataclasses import dataclass
from typing import Optional

from src.gamification.config import DEFAULT_CONFIG, DEFAULT_FREQUENCY, GamificationConfig


@dataclass(frozen=True)
class RewardAward:
    """XP and HP earned by one completion"""
    xp_earned: int
    hp_earned: int
    base_xp: int
    base_hp: int
    bonus_xp: int
    bonus_hp: int


def compute_reward(
    frequency: Optional[str],
    new_streak: int,
    config: GamificationConfig = DEFAULT_CONFIG
) -> RewardAward:
    """
    Calculate the reward for one completion

    Args:
        frequency: Habit frequency (daily/weekly/monthly, case-insensitive)
        new_streak: Current streak after the completion was applied
        config: Reward table

    Returns:
        RewardAward with totals and their base/bonus split
    """
    key = (frequency or DEFAULT_FREQUENCY).lower()
    base_xp, base_hp = config.base_rewards.get(key, config.base_rewards[DEFAULT_FREQUENCY])

    bonus_days = max(0, new_streak - 1)
    bonus_xp = bonus_days * config.xp_per_streak_day
    bonus_hp = bonus_days * config.hp_per_streak_day

    return RewardAward(
        xp_earned=base_xp + bonus_xp,
        hp_earned=base_hp + bonus_hp,
        base_xp=base_xp,
        base_hp=base_hp,
        bonus_xp=bonus_xp,
        bonus_hp=bonus_hp,
    )
