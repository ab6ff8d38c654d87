"""
Store implementations for Gitlack.
"""

from gitlack.store.memory import MemoryStore
from gitlack.store.sqlite import SQLiteStore, open_database

__all__ = ["MemoryStore", "SQLiteStore", "open_database"]
