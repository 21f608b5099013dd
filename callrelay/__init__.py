"""
Call Signaling Relay
In-memory room presence, WebRTC signal forwarding and ephemeral chat history
"""

from .models import ChatEntry, Connection, ConnectionState, Room, RoomState
from .validators import sanitize, room_code_from_path, is_linkable_room_code, validate_join_payload
from .room_registry import RoomRegistry, LeaveResult
from .message_buffer import MessageBuffer
from .storage import ChatStore, MemoryStore, RedisStore, User, Group, ChatRecord
from .persistence import DurableWriter
from .relay import SignalingRelay, Transport
from .config import Settings, get_settings
from .server import create_app, create_asgi_app
from .constants import *
from .logger import (
    get_logger,
    set_log_level,
    log_security_event,
    log_connection_event,
    log_message_event,
    log_signal_event,
    log_storage_event,
    log_system_event
)

__all__ = [
    'ChatEntry',
    'Connection',
    'ConnectionState',
    'Room',
    'RoomState',
    'sanitize',
    'room_code_from_path',
    'is_linkable_room_code',
    'validate_join_payload',
    'RoomRegistry',
    'LeaveResult',
    'MessageBuffer',
    'ChatStore',
    'MemoryStore',
    'RedisStore',
    'User',
    'Group',
    'ChatRecord',
    'DurableWriter',
    'SignalingRelay',
    'Transport',
    'Settings',
    'get_settings',
    'create_app',
    'create_asgi_app',
    'get_logger',
    'set_log_level',
    'log_security_event',
    'log_connection_event',
    'log_message_event',
    'log_signal_event',
    'log_storage_event',
    'log_system_event'
]
