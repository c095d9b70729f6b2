"""API routes for the progression engine"""
import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status

from habit_quest import config
from habit_quest.api.auth import verify_api_key
from habit_quest.api.middleware import limiter
from habit_quest.api.models import (
    XPResponse, XPAwardRequest, StreakResponse, StreakUpdateRequest, ActivityRequest,
    TaskCreateRequest, TaskCompletionRequest, TaskListResponse,
    AchievementResponse, LeaderboardResponse, ProgressResponse,
    QuizQuestionView, QuizStatusResponse, AnswerRequest, AnswerResponse,
    SpinResponse, HealthCheckResponse,
)
from habit_quest.exceptions import QuizStateError
from habit_quest.gamification.achievement_system import earned_only
from habit_quest.models.task import Task, TaskPatch
from habit_quest.services.container import get_container
from habit_quest.services.gamification_service import GamificationService

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_service(user_id: str) -> GamificationService:
    return await get_container().gamification_service(user_id)


def xp_response(service: GamificationService) -> XPResponse:
    summary = service.xp_summary()
    return XPResponse(
        user_id=service.user_id,
        xp=summary["total_xp"],
        level=summary["current_level"],
        level_progress=summary["xp_in_current_level"],
        xp_to_next_level=summary["xp_to_next_level"],
        categories=summary["categories"],
        stages=summary["stages"],
    )


def quiz_status(service: GamificationService) -> QuizStatusResponse:
    quiz = service.quiz
    if quiz is None:
        raise QuizStateError("No quiz in progress", user_id=service.user_id)

    question = None
    if quiz.current_question is not None:
        q = quiz.current_question
        question = QuizQuestionView(id=q.id, prompt=q.prompt, choices=q.choices)

    return QuizStatusResponse(
        state=quiz.state,
        round=quiz.round_index,
        rounds=quiz.rounds,
        correct_count=quiz.session.correct_count,
        question=question,
        wheel_available=quiz.can_spin(),
    )


# ==========================================
# XP and streak
# ==========================================

@router.get("/api/v1/users/{user_id}/xp", response_model=XPResponse)
@limiter.limit(config.RATE_LIMIT_READ)
async def get_xp(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Get user XP and level"""
    service = await get_service(user_id)
    return xp_response(service)


@router.post("/api/v1/users/{user_id}/xp/{category}", response_model=XPResponse)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def award_xp(
    request: Request,
    user_id: str,
    category: str,
    body: XPAwardRequest,
    api_key: str = Depends(verify_api_key)
):
    """Credit habit progress to a category"""
    service = await get_service(user_id)
    await service.add_points(category, body.delta)
    return xp_response(service)


@router.get("/api/v1/users/{user_id}/streak", response_model=StreakResponse)
@limiter.limit(config.RATE_LIMIT_READ)
async def get_streak(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Get user streak"""
    service = await get_service(user_id)
    summary = service.streak_summary()

    return StreakResponse(
        user_id=user_id,
        streak=summary["current_streak"],
        progress_percent=summary["progress_percent"],
        days_to_max=summary["days_to_max"],
        last_active=summary["last_active"],
    )


@router.put("/api/v1/users/{user_id}/streak", response_model=StreakResponse)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def put_streak(
    request: Request,
    user_id: str,
    body: StreakUpdateRequest,
    api_key: str = Depends(verify_api_key)
):
    """Overwrite the streak counter"""
    service = await get_service(user_id)
    await service.set_streak(body.streak)
    summary = service.streak_summary()

    return StreakResponse(
        user_id=user_id,
        streak=summary["current_streak"],
        progress_percent=summary["progress_percent"],
        days_to_max=summary["days_to_max"],
        last_active=summary["last_active"],
    )


@router.post("/api/v1/users/{user_id}/streak/activity", response_model=StreakResponse)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def post_activity(
    request: Request,
    user_id: str,
    body: ActivityRequest,
    api_key: str = Depends(verify_api_key)
):
    """Register a qualifying day of activity"""
    service = await get_service(user_id)
    result = await service.record_activity(body.activity_date)
    summary = service.streak_summary()

    return StreakResponse(
        user_id=user_id,
        streak=summary["current_streak"],
        progress_percent=summary["progress_percent"],
        days_to_max=summary["days_to_max"],
        last_active=summary["last_active"],
        message=result["message"],
    )


# ==========================================
# Tasks
# ==========================================

@router.get("/api/v1/users/{user_id}/tasks/{day}", response_model=TaskListResponse)
@limiter.limit(config.RATE_LIMIT_READ)
async def list_tasks(
    request: Request,
    user_id: str,
    day: date,
    api_key: str = Depends(verify_api_key)
):
    """Tasks of one day"""
    service = await get_service(user_id)
    return TaskListResponse(user_id=user_id, date=day, tasks=service.tasks_for(day.isoformat()))


@router.post("/api/v1/users/{user_id}/tasks/{day}", response_model=Task, status_code=status.HTTP_201_CREATED)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def create_task(
    request: Request,
    user_id: str,
    day: date,
    body: TaskCreateRequest,
    api_key: str = Depends(verify_api_key)
):
    """Add a task"""
    service = await get_service(user_id)
    return await service.add_task(body.title, day.isoformat())


@router.patch("/api/v1/users/{user_id}/tasks/{day}/{task_id}", response_model=Task)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def patch_task(
    request: Request,
    user_id: str,
    day: date,
    task_id: int,
    body: TaskPatch,
    api_key: str = Depends(verify_api_key)
):
    """Edit title / editing flag of a task"""
    service = await get_service(user_id)
    return await service.update_task(task_id, body, day.isoformat())


@router.post("/api/v1/users/{user_id}/tasks/{day}/{task_id}/completion", response_model=Task)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def set_completion(
    request: Request,
    user_id: str,
    day: date,
    task_id: int,
    body: TaskCompletionRequest,
    api_key: str = Depends(verify_api_key)
):
    """Mark a task done or not done"""
    service = await get_service(user_id)
    return await service.toggle_completion(task_id, body.completed, day.isoformat())


@router.delete("/api/v1/users/{user_id}/tasks/{day}/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def remove_task(
    request: Request,
    user_id: str,
    day: date,
    task_id: int,
    api_key: str = Depends(verify_api_key)
):
    """Delete a task"""
    service = await get_service(user_id)
    await service.delete_task(task_id, day.isoformat())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==========================================
# Achievements, leaderboard, history
# ==========================================

@router.get("/api/v1/users/{user_id}/achievements", response_model=AchievementResponse)
@limiter.limit(config.RATE_LIMIT_READ)
async def get_achievements(
    request: Request,
    user_id: str,
    earned: Optional[bool] = None,
    api_key: str = Depends(verify_api_key)
):
    """Evaluate achievements; ?earned=true returns only earned ones"""
    service = await get_service(user_id)
    results = service.evaluate()
    if earned:
        results = earned_only(results)
    return AchievementResponse(user_id=user_id, achievements=results)


@router.get("/api/v1/users/{user_id}/leaderboard", response_model=LeaderboardResponse)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def get_leaderboard(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Leaderboard seeded from the feed plus the current user"""
    service = await get_service(user_id)
    return LeaderboardResponse(entries=await service.refresh_leaderboard())


@router.get("/api/v1/users/{user_id}/progress", response_model=ProgressResponse)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def get_progress(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Seven-day progress series"""
    service = await get_service(user_id)
    return ProgressResponse(user_id=user_id, points=await service.refresh_history())


# ==========================================
# Quiz and reward wheel
# ==========================================

@router.post("/api/v1/users/{user_id}/quiz", response_model=QuizStatusResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def start_quiz(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Start a new quiz session"""
    service = await get_service(user_id)
    await service.start_quiz()
    return quiz_status(service)


@router.get("/api/v1/users/{user_id}/quiz", response_model=QuizStatusResponse)
@limiter.limit(config.RATE_LIMIT_READ)
async def get_quiz(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Current quiz state"""
    service = await get_service(user_id)
    return quiz_status(service)


@router.post("/api/v1/users/{user_id}/quiz/answer", response_model=AnswerResponse)
@limiter.limit(config.RATE_LIMIT_READ)
async def answer_quiz(
    request: Request,
    user_id: str,
    body: AnswerRequest,
    api_key: str = Depends(verify_api_key)
):
    """Answer the current question"""
    service = await get_service(user_id)
    result = await service.submit_answer(body.choice_index)
    return AnswerResponse(
        correct=result["correct"],
        xp_awarded=result["xp_awarded"],
        wheel_available=result["wheel_available"],
        status=quiz_status(service),
    )


@router.post("/api/v1/users/{user_id}/quiz/spin", response_model=SpinResponse)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def spin_wheel(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Spin the reward wheel for the current round"""
    service = await get_service(user_id)
    spin = await service.spin()
    return SpinResponse(
        segment=spin.segment,
        index=spin.index,
        rotation_degrees=spin.rotation_degrees,
        xp_awarded=spin.segment.reward_value,
        status=quiz_status(service),
    )


@router.post("/api/v1/users/{user_id}/quiz/skip", response_model=QuizStatusResponse)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def skip_wheel(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Continue without spinning"""
    service = await get_service(user_id)
    service.skip_spin()
    return quiz_status(service)


@router.delete("/api/v1/users/{user_id}/quiz", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(config.RATE_LIMIT_WRITE)
async def abandon_quiz(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Abandon the quiz; XP already earned is kept"""
    service = await get_service(user_id)
    service.abandon_quiz()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit(config.RATE_LIMIT_READ)
async def health_check(request: Request):
    """Health check endpoint"""
    try:
        get_container()
        state = "healthy"
    except RuntimeError as e:
        logger.error(f"Health check failed: {e}")
        state = "degraded"

    return HealthCheckResponse(
        status=state,
        store=config.STORE_BACKEND,
        timestamp=datetime.now(),
    )
