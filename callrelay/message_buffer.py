"""
Per-room chat history used to replay recent messages to late joiners
"""

from collections import deque
from typing import Deque, Dict, List

from .constants import DEFAULT_HISTORY_LIMIT
from .models import ChatEntry
from .logger import get_logger

logger = get_logger()


class MessageBuffer:
    """
    Ordered, bounded chat history per room path.

    Each room keeps at most ``history_limit`` entries; the oldest are
    evicted first. Not durable. Callers serialize access.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self.history_limit = history_limit
        # Room path -> entries in append order
        self._history: Dict[str, Deque[ChatEntry]] = {}

    def append(self, room_path: str, entry: ChatEntry):
        history = self._history.get(room_path)
        if history is None:
            history = deque(maxlen=self.history_limit)
            self._history[room_path] = history
        history.append(entry)

    def history_of(self, room_path: str) -> List[ChatEntry]:
        """Entries recorded for the room, oldest first"""
        return list(self._history.get(room_path, ()))

    def clear(self, room_path: str):
        history = self._history.pop(room_path, None)
        if history is not None:
            logger.info(f"History cleared: {room_path} ({len(history)} entries)")

    def get_stats(self) -> Dict[str, int]:
        return {
            "rooms_with_history": len(self._history),
            "buffered_messages": sum(len(h) for h in self._history.values()),
            "history_limit": self.history_limit,
        }
