"""
Reward Wheel

Weighted random segment selection. The drawn segment is the only source of
truth; the rotation shown to the user is computed from it (segment midpoint
under the pointer plus a number of full turns), never the other way round.

The wheel may fire at most once per quiz round and once per calendar day.
The per-day flag is persisted through the key/value store by WheelGate.
"""

import bisect
import logging
import random
from typing import Callable, List, Optional, Sequence

from habit_quest import config
from habit_quest.exceptions import InvalidWeightError, ValidationError
from habit_quest.gamification.xp_system import ProgressionLedger
from habit_quest.models.quiz import QuizSession
from habit_quest.models.reward import RewardSegment, WheelSpin
from habit_quest.storage.keys import wheel_shown_key
from habit_quest.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

WHEEL_CATEGORY = "wheel"

RandomSource = Callable[[], float]

DEFAULT_SEGMENTS: List[RewardSegment] = [
    RewardSegment(label="+10 XP", reward_value=10, weight=4),
    RewardSegment(label="+20 XP", reward_value=20, weight=3),
    RewardSegment(label="+30 XP", reward_value=30, weight=2),
    RewardSegment(label="+50 XP", reward_value=50, weight=1),
    RewardSegment(label="Jackpot +100 XP", reward_value=100, weight=0.5),
]


class RewardWheel:
    """Ordered, weighted segments with precomputed cumulative boundaries"""

    def __init__(self, segments: Sequence[RewardSegment], extra_rotations: Optional[int] = None):
        if not segments:
            raise InvalidWeightError("Reward wheel needs at least one segment", value=[])
        for segment in segments:
            if not segment.weight > 0:
                raise InvalidWeightError(
                    f"Segment '{segment.label}' has non-positive weight",
                    value=segment.weight,
                )
            if segment.reward_value < 0:
                raise ValidationError(
                    f"Segment '{segment.label}' has a negative reward",
                    field="reward_value",
                    value=segment.reward_value,
                )

        self.segments: List[RewardSegment] = list(segments)
        self.extra_rotations = config.WHEEL_EXTRA_ROTATIONS if extra_rotations is None else extra_rotations

        self.upper_bounds: List[float] = []
        running = 0.0
        for segment in self.segments:
            running += segment.weight
            self.upper_bounds.append(running)
        self.total_weight = running

    def select(self, r: float) -> int:
        """Index of the first segment whose cumulative upper bound exceeds r"""
        index = bisect.bisect_right(self.upper_bounds, r)
        return min(index, len(self.segments) - 1)

    def midpoint_angle(self, index: int) -> float:
        """Angular midpoint of a segment in degrees, clockwise from the pointer"""
        lower = self.upper_bounds[index - 1] if index else 0.0
        upper = self.upper_bounds[index]
        return (lower + upper) / 2 / self.total_weight * 360.0

    def rotation_for(self, index: int) -> float:
        """Clockwise rotation that stops the wheel with segment `index` under the pointer"""
        return self.extra_rotations * 360.0 + (360.0 - self.midpoint_angle(index)) % 360.0

    def spin(self, random_source: Optional[RandomSource] = None) -> WheelSpin:
        """
        Draw a segment.

        Args:
            random_source: Callable returning a float uniformly in [0, 1);
                scaled by the total weight. Defaults to random.random.

        Returns:
            WheelSpin with the selected segment and its display rotation
        """
        random_source = random_source or random.random
        r = random_source() * self.total_weight
        index = self.select(r)
        segment = self.segments[index]

        logger.debug(f"Wheel draw {r:.4f}/{self.total_weight:.4f} selected '{segment.label}'")

        return WheelSpin(
            segment=segment,
            index=index,
            draw=r,
            rotation_degrees=self.rotation_for(index),
        )


def can_spin(session: QuizSession) -> bool:
    """The wheel may fire only once per round and once per calendar day"""
    return not session.wheel_shown_this_round and not session.wheel_shown_today


def resolve_spin(session: QuizSession, spin: WheelSpin, ledger: ProgressionLedger) -> int:
    """
    Apply a resolved spin: mark the session flags and credit the reward.

    Returns:
        XP credited to the "wheel" category (0 for a no-reward segment)
    """
    session.wheel_shown_this_round = True
    session.wheel_shown_today = True

    reward = spin.segment.reward_value
    if reward > 0:
        ledger.add_points(WHEEL_CATEGORY, reward)
    logger.info(f"Wheel resolved on '{spin.segment.label}' (+{reward} XP)")
    return reward


class WheelGate:
    """Persists the once-per-day wheel flag for a user"""

    def __init__(self, store: KeyValueStore, user_id: str):
        self.store = store
        self.user_id = user_id

    async def shown_on(self, date_key: str) -> bool:
        return bool(await self.store.get(self.user_id, wheel_shown_key(date_key)))

    async def mark_shown(self, date_key: str) -> None:
        await self.store.set(self.user_id, wheel_shown_key(date_key), True)
        logger.debug(f"Wheel marked as shown on {date_key} for user {self.user_id}")
