"""Store and change notification implementations."""

from .change_listener import ChangeListenerManager
from .memory import MemoryStore
from .sqlite import SQLiteStore

__all__ = ["ChangeListenerManager", "MemoryStore", "SQLiteStore"]
