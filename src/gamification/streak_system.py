"""
Habit Streak Tracking

Applies one completion to a habit's streak ledger.

Rules:
- Logging for today continues the streak if the last log was yesterday,
  otherwise the streak (re)starts at 1
- Logging for a past date leaves current_streak and last_logged_date alone;
  streaks are not recomputed retroactively
- longest_streak never drops below current_streak

Streaks are counted in calendar days for every frequency, so a weekly habit
only continues its streak when logged on consecutive days.
"""

from datetime import date, timedelta
import logging

from src.models.habit import StreakLedger

logger = logging.getLogger(__name__)


def apply_completion(ledger: StreakLedger, log_date: date, today: date) -> StreakLedger:
    """
    Return the ledger updated for a completion on `log_date`

    The caller guarantees no completion exists yet for `log_date`.

    Args:
        ledger: Current streak state
        log_date: Calendar date being logged
        today: Server's current calendar date

    Returns:
        New StreakLedger (the input is not modified)
    """
    current = ledger.current_streak
    last_logged = ledger.last_logged_date

    if log_date == today:
        if last_logged == today - timedelta(days=1):
            current += 1
        elif last_logged != today:
            if ledger.current_streak:
                logger.debug(
                    f"Streak reset for habit {ledger.habit_id}: "
                    f"was {ledger.current_streak}, last logged {last_logged}"
                )
            current = 1
        last_logged = today

    return ledger.model_copy(update={
        "current_streak": current,
        "longest_streak": max(ledger.longest_streak, current),
        "last_logged_date": last_logged,
    })


def empty_ledger(habit_id: str, user_id: str) -> StreakLedger:
    """Zero-initialized ledger for a new habit"""
    return StreakLedger(habit_id=habit_id, user_id=user_id)
