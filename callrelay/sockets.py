"""
Socket.IO transport adapter for the signaling relay
"""

import functools
from typing import Any, List

import socketio

from .constants import EVENT_CHAT_MESSAGE, EVENT_JOIN_CALL, EVENT_SIGNAL, MAX_EVENT_BYTES
from .relay import SignalingRelay
from .logger import get_logger, log_security_event, log_system_event

logger = get_logger()


class SocketIOTransport:
    """Delivers relay events to socket.io sessions, one room per sid"""

    def __init__(self, sio: socketio.AsyncServer):
        self.sio = sio

    async def send(self, connection_id: str, event: str, *args: Any) -> None:
        # A tuple is delivered as multiple positional arguments on the client
        data = args[0] if len(args) == 1 else tuple(args)
        await self.sio.emit(event, data, to=connection_id)


def create_socket_server(allowed_origins: List[str]) -> socketio.AsyncServer:
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=allowed_origins,
        ping_timeout=25,
        ping_interval=20,
        max_http_buffer_size=MAX_EVENT_BYTES,
    )


def guarded(event: str):
    """Keep handler failures from reaching the socket.io server"""
    def decorator(handler):
        @functools.wraps(handler)
        async def wrapper(sid, *args):
            try:
                return await handler(sid, *args)
            except Exception as e:
                logger.error(f"Unhandled error in {event} handler for {sid}: {e}")
                log_security_event("handler_error", {
                    "event": event,
                    "connection": sid,
                    "error": str(e),
                })
                return None
        return wrapper
    return decorator


def register_handlers(sio: socketio.AsyncServer, relay: SignalingRelay):
    """Bind the inbound transport events to the relay"""

    @sio.event
    @guarded("connect")
    async def connect(sid, environ=None, auth=None):
        await relay.connect(sid)

    @sio.on(EVENT_JOIN_CALL)
    @guarded(EVENT_JOIN_CALL)
    async def join_call(sid, data=None):
        await relay.join(sid, data)

    @sio.on(EVENT_SIGNAL)
    @guarded(EVENT_SIGNAL)
    async def signal(sid, to_id=None, message=None):
        await relay.signal(sid, to_id, message)

    @sio.on(EVENT_CHAT_MESSAGE)
    @guarded(EVENT_CHAT_MESSAGE)
    async def chat_message(sid, data=None, sender=None):
        await relay.chat_message(sid, data, sender)

    @sio.event
    @guarded("disconnect")
    async def disconnect(sid, reason=None):
        await relay.disconnect(sid)

    log_system_event("socket_handlers", "join-call, signal, chat-message, disconnect registered")
