import asyncio
from typing import Dict


class ConversationLocks:
    """One asyncio.Lock per conversation id, created on first use."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock


_locks = None


def get_locks() -> ConversationLocks:
    global _locks
    if _locks is None:
        _locks = ConversationLocks()
    return _locks
