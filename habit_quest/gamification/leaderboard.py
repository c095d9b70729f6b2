"""
Leaderboard

Working copy of {name, xp} entries seeded from an async feed. The current
user's entry is appended once and not refreshed afterwards.

Every seed request takes a new revision when it is issued. A response for a
request that has since been superseded by a newer seed is dropped. A response
that arrives after a local change is merged instead of replacing the local
entries: feed entries whose name is not known yet are put in front, the local
entries keep their order.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from habit_quest.models.leaderboard import LeaderboardEntry

logger = logging.getLogger(__name__)

LeaderboardFeed = Callable[[], Awaitable[Iterable[Dict[str, Any]]]]


async def empty_feed() -> List[Dict[str, Any]]:
    return []


class Leaderboard:
    """Leaderboard view with stale-seed protection"""

    def __init__(self, entries: Optional[Iterable[LeaderboardEntry]] = None):
        self._entries: List[LeaderboardEntry] = list(entries or [])
        self._revision = 0
        self._latest_seed = 0

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def entries(self) -> List[LeaderboardEntry]:
        return list(self._entries)

    def has(self, name: str) -> bool:
        return any(e.name == name for e in self._entries)

    async def seed(self, feed: LeaderboardFeed) -> int:
        """
        Load entries from the feed.

        Feed failures are logged and treated as an empty feed. A response
        overtaken by a later seed call is ignored.

        Returns:
            Number of entries on the board after seeding
        """
        self._revision += 1
        issued = self._latest_seed = self._revision
        try:
            raw = list(await feed())
            incoming = [LeaderboardEntry(**item) for item in raw]
        except PydanticValidationError as e:
            logger.error(f"Malformed leaderboard feed, using empty feed: {e}")
            incoming = []
        except Exception as e:
            logger.error(f"Error fetching leaderboard data: {e}", exc_info=True)
            incoming = []

        self._apply_seed(incoming, issued)
        return len(self._entries)

    def _apply_seed(self, incoming: List[LeaderboardEntry], issued: int) -> None:
        if issued != self._latest_seed:
            logger.debug(f"Dropping leaderboard seed {issued}, superseded by seed {self._latest_seed}")
            return

        # First occurrence of a name wins within the feed itself
        unique: Dict[str, LeaderboardEntry] = {}
        for entry in incoming:
            unique.setdefault(entry.name, entry)

        if issued == self._revision:
            self._entries = list(unique.values())
            logger.info(f"Leaderboard seeded with {len(self._entries)} entries")
        else:
            known = {e.name for e in self._entries}
            fresh = [e for e in unique.values() if e.name not in known]
            self._entries = fresh + self._entries
            logger.info(
                f"Leaderboard seed arrived after local changes (rev {issued} -> {self._revision}); "
                f"merged {len(fresh)} new entries"
            )

    def upsert_self(self, name: str, xp: int) -> bool:
        """
        Append the current user's entry if missing.

        An existing entry with the same name is left untouched.

        Returns:
            True if an entry was appended
        """
        if self.has(name):
            return False
        self._entries.append(LeaderboardEntry(name=name, xp=xp))
        self._revision += 1
        logger.debug(f"Added {name} to leaderboard with {xp} XP")
        return True

    def ranked(self) -> List[LeaderboardEntry]:
        """Entries by XP, highest first; ties keep feed order"""
        return sorted(self._entries, key=lambda e: e.xp, reverse=True)
