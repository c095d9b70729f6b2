"""
Service Layer Package

Business logic services between the presentation layer (HTTP API) and the
persistent key/value store.

- GamificationService: per-user XP, tasks, streak, quiz, wheel, leaderboard
"""

from habit_quest.services.container import ServiceContainer, get_container, init_container
from habit_quest.services.gamification_service import GamificationService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "GamificationService",
]
