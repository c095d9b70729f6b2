"""Achievement and habit category models for gamification"""
from typing import Callable, List
from pydantic import BaseModel, ConfigDict, Field


class Achievement(BaseModel):
    """Achievement definition; earned status is always derived, never stored"""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    condition: Callable[..., bool] = Field(exclude=True)


class EvaluatedAchievement(BaseModel):
    """Achievement together with its earned flag at evaluation time"""
    id: int
    title: str
    description: str
    earned: bool


class CategoryStage(BaseModel):
    """One stage of a habit category"""
    level: int
    goal: str
    points: int
    reward: str


class HabitCategory(BaseModel):
    """Habit domain accumulating its own XP"""
    id: str
    name: str
    icon: str
    description: str
    stages: List[CategoryStage] = Field(default_factory=list)
