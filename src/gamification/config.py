"""
Gamification constants

All reward and leveling numbers live in one immutable value so that the
reward calculator and the level model can be exercised with other tables
in tests without touching module globals.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from src import config


DEFAULT_FREQUENCY = "daily"


@dataclass(frozen=True)
class GamificationConfig:
    """
    Reward table and leveling rules

    Attributes:
        base_rewards: frequency -> (base XP, base HP) for one completion
        xp_per_streak_day: bonus XP for every streak day beyond the first
        hp_per_streak_day: bonus HP for every streak day beyond the first
        xp_per_level: cumulative XP cost of each level above 1
        level_up_hp_bonus: HP granted for every level crossed
    """
    base_rewards: Dict[str, Tuple[int, int]] = field(default_factory=lambda: {
        "daily": (10, 5),
        "weekly": (25, 15),
        "monthly": (60, 35),
    })
    xp_per_streak_day: int = 2
    hp_per_streak_day: int = 1
    xp_per_level: int = 100
    level_up_hp_bonus: int = 50


DEFAULT_CONFIG = GamificationConfig()


def load_gamification_config() -> GamificationConfig:
    """Build the config with env overrides from src.config"""
    return GamificationConfig(
        xp_per_level=config.XP_PER_LEVEL,
        level_up_hp_bonus=config.LEVEL_UP_HP_BONUS,
    )
