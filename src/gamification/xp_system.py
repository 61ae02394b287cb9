"""
XP and Leveling System

Converts cumulative XP into levels.

Leveling Curve:
- Level 1 starts at 0 XP
- Every further level costs a flat 100 XP (threshold(level) = (level - 1) * 100)
- Every level crossed grants 50 HP

A single large XP gain may cross several levels at once; each crossing
pays the HP bonus.
"""

from typing import NamedTuple

from src.gamification.config import DEFAULT_CONFIG, GamificationConfig


class LevelProgress(NamedTuple):
    """Outcome of applying an XP gain"""
    new_level: int
    new_xp: int
    hp_bonus: int
    leveled_up: bool


def threshold_for_level(level: int, config: GamificationConfig = DEFAULT_CONFIG) -> int:
    """Total XP required to have reached `level`"""
    if level <= 1:
        return 0
    return (level - 1) * config.xp_per_level


def level_for_xp(total_xp: int, config: GamificationConfig = DEFAULT_CONFIG) -> int:
    """Unique level with threshold(level) <= xp < threshold(level + 1)"""
    if total_xp <= 0:
        return 1
    return total_xp // config.xp_per_level + 1


def apply_xp_gain(
    current_level: int,
    current_xp: int,
    xp_earned: int,
    config: GamificationConfig = DEFAULT_CONFIG
) -> LevelProgress:
    """
    Add earned XP and apply every level-up it unlocks

    Args:
        current_level: Level before the gain
        current_xp: Cumulative XP before the gain
        xp_earned: XP to add
        config: Leveling rules

    Returns:
        LevelProgress(new_level, new_xp, hp_bonus, leveled_up)
    """
    new_xp = current_xp + xp_earned
    new_level = current_level
    hp_bonus = 0

    while new_xp >= threshold_for_level(new_level + 1, config):
        new_level += 1
        hp_bonus += config.level_up_hp_bonus

    return LevelProgress(
        new_level=new_level,
        new_xp=new_xp,
        hp_bonus=hp_bonus,
        leveled_up=new_level > current_level,
    )


def xp_to_next_level(level: int, total_xp: int, config: GamificationConfig = DEFAULT_CONFIG) -> int:
    """XP still needed to reach level + 1"""
    return max(0, threshold_for_level(level + 1, config) - total_xp)
