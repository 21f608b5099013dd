"""
In-memory room and presence registry
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .models import Connection, ConnectionState, Room, RoomState, utcnow
from .logger import get_logger, log_connection_event

logger = get_logger()

RoomDestroyedListener = Callable[[str], None]


@dataclass
class LeaveResult:
    """Outcome of removing a connection from its room"""
    room_path: Optional[str] = None
    members: List[str] = field(default_factory=list)
    destroyed: bool = False
    # Set by unregister: seconds since the connection was registered
    connected_seconds: Optional[float] = None


class RoomRegistry:
    """
    Authoritative mapping of room path -> ordered members and
    connection id -> Connection.

    The registry performs no locking of its own: SignalingRelay serializes
    every call under its lock. Listeners registered with
    ``add_destroy_listener`` run synchronously when a room loses its last
    member.
    """

    def __init__(self):
        # Room path -> Room
        self._rooms: Dict[str, Room] = {}
        # Connection id -> Connection
        self._connections: Dict[str, Connection] = {}
        self._destroy_listeners: List[RoomDestroyedListener] = []

    def add_destroy_listener(self, listener: RoomDestroyedListener):
        self._destroy_listeners.append(listener)

    def register(self, connection_id: str) -> Connection:
        """
        Track a new transport connection (state Connected)

        Args:
            connection_id: Transport session identifier

        Returns:
            The Connection record
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            connection = Connection(connection_id=connection_id)
            self._connections[connection_id] = connection
            log_connection_event(connection_id, "", "connect")
        return connection

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def state_of(self, connection_id: str) -> ConnectionState:
        connection = self._connections.get(connection_id)
        if connection is None:
            return ConnectionState.DISCONNECTED
        return connection.state

    def join(self, room_path: str, connection_id: str) -> List[str]:
        """
        Add a connection to a room, creating the room on first join

        Joining the same room twice is a no-op. Joining a different room
        first leaves the current one.

        Args:
            room_path: Full room path
            connection_id: Joining connection

        Returns:
            Snapshot of the ordered member list
        """
        connection = self.register(connection_id)

        if connection.room_path is not None and connection.room_path != room_path:
            self.leave(connection_id)

        room = self._rooms.get(room_path)
        if room is None:
            room = Room(path=room_path)
            self._rooms[room_path] = room
            logger.info(f"Room created: {room_path}")

        if room.add(connection_id):
            connection.room_path = room_path
            connection.joined_at = utcnow()
            log_connection_event(connection_id, room_path, "join")

        return room.snapshot()

    def leave(self, connection_id: str) -> LeaveResult:
        """
        Remove a connection from the room it is in

        The room entry is deleted when its last member leaves and the
        destroy listeners are notified.

        Args:
            connection_id: Leaving connection

        Returns:
            LeaveResult with the room left (None if not a member) and the
            remaining members
        """
        connection = self._connections.get(connection_id)
        if connection is None or connection.room_path is None:
            return LeaveResult()

        room_path = connection.room_path
        connection.room_path = None
        connection.joined_at = None

        room = self._rooms.get(room_path)
        if room is None or not room.remove(connection_id):
            return LeaveResult()

        log_connection_event(connection_id, room_path, "leave")

        destroyed = room.state is RoomState.DESTROYED
        if destroyed:
            del self._rooms[room_path]
            logger.info(f"Room destroyed: {room_path} (empty)")
            for listener in self._destroy_listeners:
                listener(room_path)

        return LeaveResult(room_path=room_path, members=room.snapshot(), destroyed=destroyed)

    def unregister(self, connection_id: str) -> LeaveResult:
        """Leave any room and forget the connection (state Disconnected)"""
        result = self.leave(connection_id)
        connection = self._connections.pop(connection_id, None)
        if connection is not None:
            result.connected_seconds = (utcnow() - connection.connected_at).total_seconds()
            log_connection_event(connection_id, result.room_path or "", "disconnect")
            logger.debug(f"Connection {connection_id} was online for {result.connected_seconds:.1f}s")
        return result

    def members_of(self, room_path: str) -> List[str]:
        room = self._rooms.get(room_path)
        if room is None:
            return []
        return room.snapshot()

    def room_of(self, connection_id: str) -> Optional[str]:
        connection = self._connections.get(connection_id)
        if connection is None:
            return None
        return connection.room_path

    def room_state(self, room_path: str) -> RoomState:
        room = self._rooms.get(room_path)
        if room is None:
            return RoomState.EMPTY
        return room.state

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def get_stats(self) -> Dict[str, int]:
        return {
            "rooms": len(self._rooms),
            "connections": len(self._connections),
        }
