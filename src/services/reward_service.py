"""
RewardService - HP Redemption

Spends HP on catalog titles. Redemption locks the same user balance row as
the completion transaction, so earning and spending HP concurrently never
loses an update.
"""

import logging
from typing import Any, Dict, List, Optional

from src.db.store import Store
from src.exceptions import (
    InsufficientHPError,
    InternalError,
    RecordNotFoundError,
    RewardAlreadyUnlockedError,
    RewardNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from src.gamification.reward_catalog import AVAILABLE_REWARDS, find_reward_by_id, find_reward_by_name
from src.models.reward import OwnedReward, Reward
from src.observability import metrics
from src.validators import is_valid_uuid

logger = logging.getLogger(__name__)


class RewardService:
    """
    Service for the reward catalog.

    Responsibilities:
    - List available and owned rewards
    - Redeem a reward: debit HP, record ownership, set the active title
    - Switch the active title between owned rewards
    """

    def __init__(self, store: Store):
        self.store = store

    def list_rewards(self) -> List[Reward]:
        """Catalog of purchasable rewards"""
        return list(AVAILABLE_REWARDS)

    async def get_owned_rewards(self, user_id: str) -> List[OwnedReward]:
        """Rewards the user has unlocked, newest first"""
        if not is_valid_uuid(user_id):
            return []
        rows = await self.store.list_unlocked_rewards(user_id)

        owned = []
        for row in rows:
            reward = find_reward_by_id(row["reward_id"])
            if reward is None:
                # Retired from the catalog
                continue
            owned.append(OwnedReward(**reward.model_dump(), unlocked_at=row["unlocked_at"]))
        return owned

    async def redeem(self, user_id: str, reward_id: str) -> Dict[str, Any]:
        """
        Redeem a reward for HP.

        Args:
            user_id: Authenticated caller
            reward_id: Catalog id

        Returns:
            {
                'reward': Reward,
                'hp': int,            # HP left after the purchase
                'active_title': str
            }

        Raises:
            RewardNotFoundError: Unknown reward id
            UserNotFoundError: User row missing
            InsufficientHPError: Not enough HP
            RewardAlreadyUnlockedError: Reward already owned
        """
        reward = find_reward_by_id(reward_id)
        if reward is None:
            metrics.reward_redemptions_total.labels(reward_id="unknown", outcome="not_found").inc()
            raise RewardNotFoundError(reward_id, user_id=user_id, operation="redeem_reward")
        if not is_valid_uuid(user_id):
            raise UserNotFoundError(user_id, operation="redeem_reward")

        try:
            async with self.store.transaction() as tx:
                balance = await tx.lock_user_balance(user_id)
                if balance is None:
                    raise UserNotFoundError(user_id, operation="redeem_reward")

                if balance.hp < reward.cost_hp:
                    raise InsufficientHPError(
                        required=reward.cost_hp,
                        available=balance.hp,
                        user_id=user_id,
                        operation="redeem_reward"
                    )

                if await tx.has_unlocked_reward(user_id, reward_id):
                    raise RewardAlreadyUnlockedError(reward_id, user_id=user_id, operation="redeem_reward")

                new_balance = balance.model_copy(update={
                    "hp": balance.hp - reward.cost_hp,
                    "active_title": reward.name,
                })
                await tx.save_user_balance(new_balance)
                await tx.insert_unlocked_reward(user_id, reward_id)

        except InsufficientHPError:
            metrics.reward_redemptions_total.labels(reward_id=reward_id, outcome="insufficient_hp").inc()
            raise
        except RewardAlreadyUnlockedError:
            metrics.reward_redemptions_total.labels(reward_id=reward_id, outcome="already_owned").inc()
            raise
        except RecordNotFoundError:
            metrics.reward_redemptions_total.labels(reward_id=reward_id, outcome="not_found").inc()
            raise
        except InternalError:
            metrics.reward_redemptions_total.labels(reward_id=reward_id, outcome="error").inc()
            raise
        except Exception as e:
            metrics.reward_redemptions_total.labels(reward_id=reward_id, outcome="error").inc()
            raise InternalError(
                f"Reward redemption failed: {e}",
                user_id=user_id,
                operation="redeem_reward",
                context={"reward_id": reward_id},
                cause=e
            ) from e

        metrics.reward_redemptions_total.labels(reward_id=reward_id, outcome="redeemed").inc()
        metrics.reward_hp_spent_total.inc(reward.cost_hp)
        logger.info(
            f"User {user_id} redeemed {reward_id} for {reward.cost_hp} HP "
            f"({new_balance.hp} HP left)"
        )

        return {
            "reward": reward,
            "hp": new_balance.hp,
            "active_title": new_balance.active_title,
        }

    async def set_active_title(self, user_id: str, title: Optional[str]) -> Optional[str]:
        """
        Display an owned title, or clear it with None

        Raises:
            UserNotFoundError: User row missing
            ValidationError: Title unknown or not owned by the user
        """
        if not is_valid_uuid(user_id):
            raise UserNotFoundError(user_id, operation="set_active_title")

        try:
            async with self.store.transaction() as tx:
                balance = await tx.lock_user_balance(user_id)
                if balance is None:
                    raise UserNotFoundError(user_id, operation="set_active_title")

                if title is not None:
                    reward = find_reward_by_name(title)
                    if reward is None or not await tx.has_unlocked_reward(user_id, reward.id):
                        raise ValidationError(
                            message="title is not owned",
                            field="title",
                            value=title,
                            user_id=user_id,
                            operation="set_active_title"
                        )

                await tx.save_user_balance(balance.model_copy(update={"active_title": title}))

        except (RecordNotFoundError, ValidationError, InternalError):
            raise
        except Exception as e:
            raise InternalError(
                f"Setting active title failed: {e}",
                user_id=user_id,
                operation="set_active_title",
                cause=e
            ) from e

        logger.info(f"User {user_id} set active title to {title!r}")
        return title
