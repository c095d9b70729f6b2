"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from habit_quest.api.routes import router
from habit_quest.api.middleware import setup_cors, setup_rate_limiting
from habit_quest.config import LOG_LEVEL
from habit_quest.exceptions import HabitQuestError, NotFoundError, QuizStateError, ValidationError
from habit_quest.services.container import ServiceContainer, init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def _error_status(exc: HabitQuestError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (ValidationError, QuizStateError)):
        return 400
    return 500


def create_api_application(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        container: Container already registered with init_container()
            (tests); a container over the configured store is built otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle manager for FastAPI application"""
        logger.info("Starting API server...")
        active = container or init_container()
        yield
        logger.info("Shutting down API server...")
        await active.close()

    app = FastAPI(
        title="Habit Quest API",
        description="Progression & reward engine for the habit tracker",
        version="1.0.0",
        lifespan=lifespan
    )

    setup_cors(app)
    setup_rate_limiting(app)

    app.include_router(router)

    @app.exception_handler(HabitQuestError)
    async def habit_quest_exception_handler(request: Request, exc: HabitQuestError):
        return JSONResponse(status_code=_error_status(exc), content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app
