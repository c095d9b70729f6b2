"""Leaderboard models"""
from datetime import date
from pydantic import BaseModel, Field


class LeaderboardEntry(BaseModel):
    """Participant and their total XP; name is the unique key"""
    name: str
    xp: int = Field(ge=0)


class ProgressPoint(BaseModel):
    """One day of the progress history chart"""
    date: date
    progress: int = Field(ge=0)
