"""CORS and per-API-key rate limiting for the progression API"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from habit_quest import config

logger = logging.getLogger(__name__)


def rate_limit_key(request: Request) -> str:
    """Bucket by bearer key; unauthenticated requests fall back to the remote address"""
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return f"key:{credentials.strip()}"
    return f"addr:{get_remote_address(request)}"


limiter = Limiter(key_func=rate_limit_key, enabled=config.RATE_LIMIT_ENABLED)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same error shape as HabitQuestError.to_dict()"""
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    response = JSONResponse(
        status_code=429,
        content={"error": "RateLimitExceeded", "message": f"Rate limit exceeded: {exc.detail}"},
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )
    logger.info(f"CORS configured for origins: {config.CORS_ORIGINS}")


def setup_rate_limiting(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    logger.info(
        f"Rate limiting {'enabled' if limiter.enabled else 'disabled'} "
        f"(read {config.RATE_LIMIT_READ}, write {config.RATE_LIMIT_WRITE})"
    )
