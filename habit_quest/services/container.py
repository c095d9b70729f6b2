"""
Service Container - Dependency Injection Container

Holds the shared infrastructure (key/value store, leaderboard feed) and one
lazily-loaded GamificationService per user.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Optional
import logging

from habit_quest import config
from habit_quest.gamification.leaderboard import LeaderboardFeed, empty_feed
from habit_quest.storage.kv_store import HttpKeyValueStore, InMemoryStore, KeyValueStore

logger = logging.getLogger(__name__)


def create_store() -> KeyValueStore:
    """Build the configured store backend"""
    if config.STORE_BACKEND == "http":
        logger.info(f"Using HTTP key/value store at {config.STORE_BASE_URL}")
        return HttpKeyValueStore(config.STORE_BASE_URL, timeout=config.STORE_TIMEOUT)
    logger.warning("Using in-memory store - progress is NOT persisted across restarts")
    return InMemoryStore()


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Per-user services are created and loaded on first access.
    """

    store: KeyValueStore
    leaderboard_feed: LeaderboardFeed = empty_feed

    _gamification_services: Dict[str, object] = field(default_factory=dict, init=False, repr=False)
    _load_locks: Dict[str, asyncio.Lock] = field(default_factory=dict, init=False, repr=False)

    async def gamification_service(self, user_id: str, display_name: Optional[str] = None):
        """
        Get the GamificationService of a user (lazy-loaded).

        Concurrent first requests for the same user share one load, so every
        caller gets the single instance that owns the user's state.
        """
        service = self._gamification_services.get(user_id)
        if service is not None:
            return service

        lock = self._load_locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            service = self._gamification_services.get(user_id)
            if service is not None:
                return service
            from habit_quest.services.gamification_service import GamificationService
            service = GamificationService(
                self.store,
                user_id,
                display_name=display_name,
                leaderboard_feed=self.leaderboard_feed,
            )
            await service.load()
            self._gamification_services[user_id] = service
            logger.debug(f"GamificationService instantiated for user {user_id}")
        return service

    async def close(self) -> None:
        self._gamification_services.clear()
        self._load_locks.clear()
        await self.store.close()


# Global container instance (initialized in the API lifespan)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() before using services."
        )
    return _container


def init_container(
    store: Optional[KeyValueStore] = None,
    leaderboard_feed: Optional[LeaderboardFeed] = None,
) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: Key/value store (defaults to the configured backend)
        leaderboard_feed: Async leaderboard feed (defaults to an empty feed)
    """
    global _container

    _container = ServiceContainer(
        store=store or create_store(),
        leaderboard_feed=leaderboard_feed or empty_feed,
    )
    logger.info("Service container initialized")
    return _container
