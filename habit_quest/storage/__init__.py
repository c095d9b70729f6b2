"""Persistent store adapters"""

from habit_quest.storage.kv_store import KeyValueStore, InMemoryStore, HttpKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "HttpKeyValueStore",
]
