"""Reward wheel models"""
from pydantic import BaseModel


class RewardSegment(BaseModel):
    """One weighted slice of the reward wheel"""
    label: str
    reward_value: int
    weight: float = 1.0


class WheelSpin(BaseModel):
    """Resolved spin: the selected segment plus the rotation that displays it"""
    segment: RewardSegment
    index: int
    draw: float
    rotation_degrees: float
