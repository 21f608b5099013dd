"""
Signaling relay: join, signal forwarding, chat broadcast and disconnect cleanup
"""

import asyncio
from functools import partial
from typing import Any, Dict, List, Optional, Protocol

from .message_buffer import MessageBuffer
from .models import ChatEntry
from .persistence import DurableWriter
from .room_registry import RoomRegistry
from .storage import ChatStore, MemoryStore, User
from .validators import (
    is_linkable_room_code,
    room_code_from_path,
    sanitize,
    user_id_from_payload,
    validate_join_payload,
)
from .constants import (
    EVENT_CHAT_MESSAGE,
    EVENT_SIGNAL,
    EVENT_USER_JOINED,
    EVENT_USER_LEFT,
    MAX_CHAT_LENGTH,
    MAX_SENDER_LENGTH,
)
from .logger import get_logger, log_message_event, log_signal_event

logger = get_logger()


class Transport(Protocol):
    """Ordered, reliable per-connection delivery of outbound events"""

    async def send(self, connection_id: str, event: str, *args: Any) -> None: ...


class SignalingRelay:
    """
    Orchestrates the per-connection event flows against the room registry
    and the message buffer.

    Every in-memory phase (registry/buffer mutation plus the broadcast it
    triggers) runs under a single lock, so events from concurrent
    connections are applied one at a time and each recipient sees them in
    the same order. Durable writes are queued on the DurableWriter after
    the lock is released and never delay or break the live path.
    """

    def __init__(self, transport: Transport,
                 registry: Optional[RoomRegistry] = None,
                 buffer: Optional[MessageBuffer] = None,
                 store: Optional[ChatStore] = None,
                 writer: Optional[DurableWriter] = None):
        self.transport = transport
        self.registry = registry or RoomRegistry()
        self.buffer = buffer or MessageBuffer()
        self.store = store or MemoryStore()
        self.writer = writer or DurableWriter()
        self._lock = asyncio.Lock()

        # History must not outlive the last member of a room
        self.registry.add_destroy_listener(self.buffer.clear)

    async def connect(self, connection_id: str):
        async with self._lock:
            self.registry.register(connection_id)

    async def join(self, connection_id: str, payload: Any) -> bool:
        """
        Handle a join-call event

        Args:
            connection_id: Joining connection
            payload: ``{"path": str, "userId": str}``

        Returns:
            True if the connection joined the room
        """
        is_valid, error_msg = validate_join_payload(payload)
        if not is_valid:
            logger.warning(f"Join dropped for {connection_id}: {error_msg}")
            return False

        room_path = payload["path"]
        room_code = room_code_from_path(room_path)
        user_id = user_id_from_payload(payload)

        async with self._lock:
            if not self.registry.is_connected(connection_id):
                logger.info(f"Join ignored for closed connection {connection_id}")
                return False

            current = self.registry.room_of(connection_id)
            if current is not None and current != room_path:
                left = self.registry.leave(connection_id)
                await self._broadcast(left.members, EVENT_USER_LEFT, connection_id)

            members = self.registry.join(room_path, connection_id)
            history = self.buffer.history_of(room_path)

            await self._broadcast(members, EVENT_USER_JOINED, connection_id, members)
            for entry in history:
                await self._send(connection_id, EVENT_CHAT_MESSAGE, *entry.to_args())
            if history:
                log_message_event(connection_id, room_path, "replay", f"entries={len(history)}")

        if user_id and is_linkable_room_code(room_code):
            self.writer.submit(
                f"link_member {user_id}->{room_code}",
                partial(self._link_member, room_code, user_id),
            )
        return True

    async def signal(self, connection_id: str, to_connection_id: Any, payload: Any) -> bool:
        """
        Forward an opaque signaling payload to one connection

        Returns:
            True if the payload was forwarded
        """
        if not isinstance(to_connection_id, str):
            log_signal_event(connection_id, repr(to_connection_id), "dropped_invalid_target")
            return False

        async with self._lock:
            if not self.registry.is_connected(connection_id):
                return False
            if not self.registry.is_connected(to_connection_id):
                log_signal_event(connection_id, to_connection_id, "dropped_unknown_target")
                return False
            await self._send(to_connection_id, EVENT_SIGNAL, connection_id, payload)

        log_signal_event(connection_id, to_connection_id, "forwarded")
        return True

    async def chat_message(self, connection_id: str, content: Any, sender: Any) -> bool:
        """
        Buffer and broadcast a chat line to the sender's room

        A connection that is not in a room has its message dropped.
        Content and sender are truncated to their length caps before
        sanitizing.

        Returns:
            True if the message was broadcast
        """
        clean_content = sanitize(content, max_length=MAX_CHAT_LENGTH)
        clean_sender = sanitize(sender, max_length=MAX_SENDER_LENGTH)

        async with self._lock:
            room_path = self.registry.room_of(connection_id)
            if room_path is None:
                log_message_event(connection_id, "", "dropped", "sender not in a room")
                return False

            entry = ChatEntry(content=clean_content, sender=clean_sender, connection_id=connection_id)
            self.buffer.append(room_path, entry)
            members = self.registry.members_of(room_path)
            await self._broadcast(members, EVENT_CHAT_MESSAGE, *entry.to_args())

        log_message_event(connection_id, room_path, "broadcast", f"recipients={len(members)}")
        self.writer.submit(
            f"record_chat {room_path}",
            self._record_chat_job(room_code_from_path(room_path), entry),
        )
        return True

    async def disconnect(self, connection_id: str):
        """Remove the connection for good and notify the rest of its room"""
        async with self._lock:
            result = self.registry.unregister(connection_id)
            if result.room_path is not None:
                await self._broadcast(result.members, EVENT_USER_LEFT, connection_id)

    async def close(self):
        await self.writer.stop()
        await self.store.close()

    def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self.registry.get_stats())
        stats.update(self.buffer.get_stats())
        stats["durable_writes"] = self.writer.get_stats()
        return stats

    async def _send(self, connection_id: str, event: str, *args: Any) -> bool:
        try:
            await self.transport.send(connection_id, event, *args)
            return True
        except Exception as e:
            # A broken recipient must not stop delivery to the others
            logger.error(f"Failed to send {event} to {connection_id}: {e}")
            return False

    async def _broadcast(self, members: List[str], event: str, *args: Any) -> int:
        delivered = 0
        for member in members:
            if await self._send(member, event, *args):
                delivered += 1
        return delivered

    async def _link_member(self, room_code: str, user_id: str):
        group = await self.store.find_group(room_code)
        if group is None:
            await self.store.create_group(room_code, user_id)
        elif group.add_member(user_id):
            await self.store.save_group(group)

        user = await self.store.find_user(user_id)
        if user is None:
            await self.store.save_user(User(username=user_id, groups=[room_code]))
        elif user.add_group(room_code):
            await self.store.save_user(user)

    def _record_chat_job(self, room_code: str, entry: ChatEntry):
        created = {}

        async def job():
            # Retries reuse the record created by an earlier attempt
            record = created.get("record")
            if record is None:
                record = await self.store.create_chat_record(entry.content, entry.sender)
                created["record"] = record

            if not is_linkable_room_code(room_code):
                return
            group = await self.store.find_group(room_code)
            if group is not None:
                group.append_message(record.id)
                await self.store.save_group(group)

        return job
