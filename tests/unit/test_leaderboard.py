"""Unit tests for the leaderboard (habit_quest/gamification/leaderboard.py)"""
import asyncio

import pytest

from habit_quest.gamification.leaderboard import Leaderboard, empty_feed
from habit_quest.models.leaderboard import LeaderboardEntry


def _feed(items):
    async def fetch():
        return items
    return fetch


def test_ranked_is_descending_and_stable():
    board = Leaderboard([
        LeaderboardEntry(name="a", xp=50),
        LeaderboardEntry(name="b", xp=80),
        LeaderboardEntry(name="c", xp=50),
    ])

    assert [e.name for e in board.ranked()] == ["b", "a", "c"]


def test_upsert_self_appends_once():
    board = Leaderboard()

    assert board.upsert_self("me", 30) is True
    assert board.upsert_self("me", 90) is False

    # Entry is not refreshed after insertion
    assert board.entries == [LeaderboardEntry(name="me", xp=30)]


@pytest.mark.asyncio
async def test_seed_replaces_entries():
    board = Leaderboard()
    count = await board.seed(_feed([{"name": "ana", "xp": 120}, {"name": "bo", "xp": 40}]))

    assert count == 2
    assert [e.name for e in board.ranked()] == ["ana", "bo"]


@pytest.mark.asyncio
async def test_seed_dedupes_names():
    board = Leaderboard()
    await board.seed(_feed([{"name": "ana", "xp": 120}, {"name": "ana", "xp": 10}]))
    assert board.entries == [LeaderboardEntry(name="ana", xp=120)]


@pytest.mark.asyncio
async def test_empty_feed():
    board = Leaderboard()
    assert await board.seed(empty_feed) == 0


@pytest.mark.asyncio
async def test_failing_feed_is_treated_as_empty():
    async def broken():
        raise ConnectionError("leaderboard service down")

    board = Leaderboard()
    assert await board.seed(broken) == 0
    assert board.ranked() == []


@pytest.mark.asyncio
async def test_malformed_feed_is_treated_as_empty():
    board = Leaderboard()
    assert await board.seed(_feed([{"name": "ana", "xp": -5}])) == 0


@pytest.mark.asyncio
async def test_stale_seed_merges_with_local_entry():
    """A self entry added while the feed was in flight is not lost"""
    board = Leaderboard()

    async def slow_feed():
        # Local change lands before the response
        board.upsert_self("me", 30)
        return [{"name": "ana", "xp": 120}, {"name": "me", "xp": 999}]

    await board.seed(slow_feed)

    assert board.entries == [
        LeaderboardEntry(name="ana", xp=120),
        LeaderboardEntry(name="me", xp=30),
    ]


@pytest.mark.asyncio
async def test_seed_bumps_revision():
    board = Leaderboard()
    before = board.revision
    await board.seed(empty_feed)
    assert board.revision == before + 1


@pytest.mark.asyncio
async def test_overlapping_seeds_keep_the_newer_feed():
    """An older response landing last does not overwrite the newer one"""
    board = Leaderboard()
    release_old = asyncio.Event()

    async def old_feed():
        await release_old.wait()
        return [{"name": "ana", "xp": 100}, {"name": "cy", "xp": 7}]

    old_seed = asyncio.create_task(board.seed(old_feed))
    await asyncio.sleep(0)

    await board.seed(_feed([{"name": "ana", "xp": 300}]))
    release_old.set()
    await old_seed

    assert board.entries == [LeaderboardEntry(name="ana", xp=300)]


@pytest.mark.asyncio
async def test_newer_seed_replaces_without_local_changes():
    board = Leaderboard()
    await board.seed(_feed([{"name": "ana", "xp": 100}]))
    await board.seed(_feed([{"name": "ana", "xp": 300}, {"name": "bo", "xp": 5}]))

    assert [(e.name, e.xp) for e in board.ranked()] == [("ana", 300), ("bo", 5)]
