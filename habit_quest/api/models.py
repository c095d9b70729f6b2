"""Pydantic models for API request/response validation"""
from typing import Optional, List, Dict
from pydantic import BaseModel, Field
from datetime import date, datetime

from habit_quest.models.achievement import CategoryStage, EvaluatedAchievement
from habit_quest.models.leaderboard import LeaderboardEntry, ProgressPoint
from habit_quest.models.quiz import QuizState
from habit_quest.models.reward import RewardSegment
from habit_quest.models.task import Task


class CategoryStageProgress(BaseModel):
    """Points of a habit category with its reached and upcoming stage"""
    points: int
    current: Optional[CategoryStage] = None
    next: Optional[CategoryStage] = None


class XPResponse(BaseModel):
    """Response with XP and level info"""
    user_id: str
    xp: int
    level: int
    level_progress: int
    xp_to_next_level: int
    categories: Dict[str, int]
    stages: Dict[str, CategoryStageProgress] = Field(default_factory=dict)


class XPAwardRequest(BaseModel):
    """Habit progress to credit to a category"""
    delta: int = Field(..., description="Positive XP amount")


class StreakResponse(BaseModel):
    """Response with streak info"""
    user_id: str
    streak: int
    progress_percent: float
    days_to_max: int
    last_active: Optional[date] = None
    message: Optional[str] = None


class StreakUpdateRequest(BaseModel):
    """Request to overwrite the streak counter"""
    streak: int = Field(..., description="New streak value")


class ActivityRequest(BaseModel):
    """Request to register a qualifying day"""
    activity_date: Optional[date] = Field(default=None, description="Defaults to today")


class TaskCreateRequest(BaseModel):
    """Request to add a task"""
    title: str = Field(..., description="Task title")


class TaskCompletionRequest(BaseModel):
    """Request to set a task's completion flag"""
    completed: bool


class TaskListResponse(BaseModel):
    """Tasks of one day"""
    user_id: str
    date: date
    tasks: List[Task]


class AchievementResponse(BaseModel):
    """Response with achievement info"""
    user_id: str
    achievements: List[EvaluatedAchievement]


class LeaderboardResponse(BaseModel):
    """Ranked leaderboard"""
    entries: List[LeaderboardEntry]


class ProgressResponse(BaseModel):
    """Seven-day progress series"""
    user_id: str
    points: List[ProgressPoint]


class QuizQuestionView(BaseModel):
    """Question without its answer"""
    id: str
    prompt: str
    choices: List[str]


class QuizStatusResponse(BaseModel):
    """Current quiz state"""
    state: QuizState
    round: int
    rounds: int
    correct_count: int
    question: Optional[QuizQuestionView] = None
    wheel_available: bool = False


class AnswerRequest(BaseModel):
    """Answer to the current question"""
    choice_index: int = Field(..., ge=0)


class AnswerResponse(BaseModel):
    """Scoring result of an answer"""
    correct: bool
    xp_awarded: int
    wheel_available: bool
    status: QuizStatusResponse


class SpinResponse(BaseModel):
    """Resolved reward wheel spin"""
    segment: RewardSegment
    index: int
    rotation_degrees: float
    xp_awarded: int
    status: QuizStatusResponse


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    store: str = Field(..., description="Store backend")
    timestamp: datetime = Field(..., description="Check timestamp")
