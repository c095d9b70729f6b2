"""
Streak Tracking

Rolls the ledger's streak counter forward from qualifying days. Whether a day
qualifies is decided by the caller; this module only handles the calendar:
- Activity on the same day as the last one: no change
- Activity on the day after: streak + 1
- A missed day: streak resets to 0 (the next activity starts again at 1)
"""

from datetime import date, timedelta
from typing import Dict, Optional
import logging

from habit_quest import config
from habit_quest.gamification.xp_system import ProgressionLedger

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (7, 14, 30, 100)


def has_missed_day(last_active: Optional[date], today: date) -> bool:
    return last_active is not None and (today - last_active).days > 1


def expire_streak(ledger: ProgressionLedger, last_active: Optional[date], today: date) -> bool:
    """
    Reset the streak to 0 if at least one day was missed since last_active.

    Returns:
        True if the streak was reset
    """
    if has_missed_day(last_active, today) and ledger.get_streak() > 0:
        logger.info(f"Streak broken: was {ledger.get_streak()}, last active {last_active}")
        ledger.set_streak(0)
        return True
    return False


def record_qualifying_day(
    ledger: ProgressionLedger,
    last_active: Optional[date],
    activity_date: Optional[date] = None,
) -> Dict[str, object]:
    """
    Update the streak for a qualifying day of activity

    Returns:
        {
            'current_streak': int,
            'last_active': date,
            'milestone_reached': bool,
            'message': str
        }
    """
    if activity_date is None:
        activity_date = date.today()

    if last_active is not None and activity_date < last_active:
        # Late report for an earlier day; the streak already covers it
        return {
            "current_streak": ledger.get_streak(),
            "last_active": last_active,
            "milestone_reached": False,
            "message": f"Streak continues! Day {ledger.get_streak()} 🔥",
        }

    expire_streak(ledger, last_active, activity_date)

    if last_active == activity_date:
        message = f"Streak continues! Day {ledger.get_streak()} 🔥"
    elif last_active is not None and last_active == activity_date - timedelta(days=1):
        ledger.set_streak(ledger.get_streak() + 1)
        message = f"Streak continues! Day {ledger.get_streak()} 🔥"
    else:
        ledger.set_streak(1)
        message = "Streak started! Day 1 🎉"

    current = ledger.get_streak()
    milestone_reached = last_active != activity_date and current in STREAK_MILESTONES
    if milestone_reached:
        message += f"\n🏆 {current}-day milestone reached!"
    if current >= config.STREAK_DISPLAY_MAX:
        message += "\nStreak Maxed!"

    logger.info(f"Updated streak: {current} days (last active {activity_date})")

    return {
        "current_streak": current,
        "last_active": activity_date,
        "milestone_reached": milestone_reached,
        "message": message,
    }
