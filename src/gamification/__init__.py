"""
Gamification engine for Habit Quest

Pure rules applied when a habit completion is logged:
- Streak ledger updates
- XP/HP rewards per completion
- Level progression from cumulative XP
- Reward catalog for spending HP
"""

from src.gamification.config import GamificationConfig, DEFAULT_CONFIG, load_gamification_config
from src.gamification.streak_system import apply_completion, empty_ledger
from src.gamification.rewards import RewardAward, compute_reward
from src.gamification.xp_system import (
    LevelProgress,
    apply_xp_gain,
    level_for_xp,
    threshold_for_level,
    xp_to_next_level,
)
from src.gamification.reward_catalog import AVAILABLE_REWARDS, find_reward_by_id

__all__ = [
    "GamificationConfig",
    "DEFAULT_CONFIG",
    "load_gamification_config",
    "apply_completion",
    "empty_ledger",
    "RewardAward",
    "compute_reward",
    "LevelProgress",
    "apply_xp_gain",
    "level_for_xp",
    "threshold_for_level",
    "AVAILABLE_REWARDS",
    "find_reward_by_id",
]
