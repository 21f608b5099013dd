"""
Data models for the call signaling relay
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    IN_ROOM = "in_room"
    DISCONNECTED = "disconnected"


class RoomState(str, Enum):
    EMPTY = "empty"
    ACTIVE = "active"
    DESTROYED = "destroyed"


@dataclass
class Connection:
    """One live transport session"""
    connection_id: str
    room_path: Optional[str] = None
    joined_at: Optional[datetime] = None
    connected_at: datetime = field(default_factory=utcnow)

    @property
    def state(self) -> ConnectionState:
        if self.room_path is None:
            return ConnectionState.CONNECTED
        return ConnectionState.IN_ROOM


@dataclass
class Room:
    """Live membership of one room path, ordered by join"""
    path: str
    members: List[str] = field(default_factory=list)
    state: RoomState = RoomState.EMPTY

    def add(self, connection_id: str) -> bool:
        if self.state is RoomState.DESTROYED:
            raise RuntimeError(f"Room {self.path} is destroyed")
        self.state = RoomState.ACTIVE
        if connection_id in self.members:
            return False
        self.members.append(connection_id)
        return True

    def remove(self, connection_id: str) -> bool:
        if connection_id not in self.members:
            return False
        self.members.remove(connection_id)
        if not self.members:
            self.state = RoomState.DESTROYED
        return True

    def snapshot(self) -> List[str]:
        return list(self.members)


@dataclass(frozen=True)
class ChatEntry:
    """Sanitized chat line buffered for replay"""
    content: str
    sender: str
    connection_id: str

    def to_args(self) -> Tuple[str, str, str]:
        """Positional arguments of the outbound chat-message event"""
        return (self.content, self.sender, self.connection_id)
