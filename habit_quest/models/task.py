"""Pydantic models for daily tasks"""
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class Task(BaseModel):
    """A habit check-off entry for one calendar day"""
    id: int
    title: str
    completed: bool = False
    created_on: str  # ISO date key, e.g. "2024-01-15"
    is_editing: bool = False


class TaskPatch(BaseModel):
    """Partial update for a task; unset fields are left alone"""
    title: Optional[str] = Field(None, min_length=1)
    is_editing: Optional[bool] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """Titles are stored trimmed"""
        if v is None:
            return v
        trimmed = v.strip()
        if not trimmed:
            raise ValueError("Task title cannot be empty or only whitespace")
        return trimmed
