"""Configuration management"""
import os
from typing import List

from dotenv import load_dotenv

from habit_quest.exceptions import ConfigurationError

load_dotenv()

# Persistent store (key/value REST API)
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory")  # memory | http
STORE_BASE_URL: str = os.getenv("STORE_BASE_URL", "http://localhost:5000/api/storage")
STORE_TIMEOUT: float = float(os.getenv("STORE_TIMEOUT", "10.0"))

# Progression economy
XP_PER_LEVEL: int = int(os.getenv("XP_PER_LEVEL", "100"))
TASK_COMPLETION_XP: int = int(os.getenv("TASK_COMPLETION_XP", "10"))
QUIZ_CORRECT_XP: int = int(os.getenv("QUIZ_CORRECT_XP", "10"))
STREAK_DISPLAY_MAX: int = int(os.getenv("STREAK_DISPLAY_MAX", "14"))

# Quiz / reward wheel
QUIZ_ROUNDS: int = int(os.getenv("QUIZ_ROUNDS", "3"))
WHEEL_EXTRA_ROTATIONS: int = int(os.getenv("WHEEL_EXTRA_ROTATIONS", "5"))

# API
API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8080"))
CORS_ORIGINS: List[str] = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if origin.strip()
]

# Rate limits, per API key (slowapi syntax)
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_READ: str = os.getenv("RATE_LIMIT_READ", "60/minute")
RATE_LIMIT_WRITE: str = os.getenv("RATE_LIMIT_WRITE", "30/minute")

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


def validate_config() -> None:
    """Validate required configuration"""
    if STORE_BACKEND not in ("memory", "http"):
        raise ConfigurationError(
            f"Unknown STORE_BACKEND '{STORE_BACKEND}'", config_key="STORE_BACKEND"
        )
    if STORE_BACKEND == "http" and not STORE_BASE_URL:
        raise ConfigurationError("STORE_BASE_URL is required", config_key="STORE_BASE_URL")
    if XP_PER_LEVEL <= 0:
        raise ConfigurationError("XP_PER_LEVEL must be positive", config_key="XP_PER_LEVEL")
    if QUIZ_ROUNDS <= 0:
        raise ConfigurationError("QUIZ_ROUNDS must be positive", config_key="QUIZ_ROUNDS")
