"""
Input sanitization and payload validation for the call signaling relay
"""

import re
from typing import Any, List, Optional, Tuple

from .constants import (
    CONTROL_CHARACTER_PATTERN,
    EXECUTABLE_TAGS,
    LINKABLE_ROOM_CODE_LENGTH,
    TAG_NAME_PATTERN,
    TAG_START_PATTERN,
)
from .logger import log_security_event

_CONTROL_RE = re.compile(CONTROL_CHARACTER_PATTERN)
_TAG_START_RE = re.compile(TAG_START_PATTERN)
_TAG_NAME_RE = re.compile(TAG_NAME_PATTERN)


def coerce_text(value: Any) -> str:
    """Turn an untrusted event argument into a string"""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _strip_markup(text: str) -> str:
    """Single left-to-right pass; every find moves forward, so linear in len(text)"""
    lowered = text.lower()
    parts: List[str] = []
    pos = 0

    while True:
        start = text.find('<', pos)
        if start == -1:
            parts.append(text[pos:])
            break
        if not _TAG_START_RE.match(text, start):
            # "a < b", "I <3": not markup
            parts.append(text[pos:start + 1])
            pos = start + 1
            continue

        parts.append(text[pos:start])
        end = text.find('>', start)
        if end == -1:
            # Unterminated tag: drop the rest
            break

        name_match = _TAG_NAME_RE.match(text, start)
        name = name_match.group(1).lower() if name_match else ""
        if name in EXECUTABLE_TAGS and text[start + 1] != '/':
            close = lowered.find('</' + name, end + 1)
            close_end = text.find('>', close) if close != -1 else -1
            if close_end == -1:
                # Unclosed executable block: drop the rest
                break
            pos = close_end + 1
        else:
            pos = end + 1

    # Kept "<" characters can end up next to a letter once tags between them are gone
    return _TAG_START_RE.sub(lambda m: "&lt;" + m.group(0)[1:], ''.join(parts))


def sanitize(text: Any, max_length: Optional[int] = None) -> str:
    """
    Strip executable and markup content from untrusted text

    Plain text passes through unchanged. Script-like blocks are removed
    with their bodies, remaining tags are removed and their inner text kept,
    an unterminated tag is removed with everything after it. Runs in linear
    time and never raises.

    Args:
        text: Raw text from a client
        max_length: Truncate the input to this many characters first

    Returns:
        Sanitized text
    """
    original = coerce_text(text)
    cleaned = original
    if max_length is not None and len(cleaned) > max_length:
        log_security_event("text_truncated", {"length": len(cleaned), "max_length": max_length})
        cleaned = cleaned[:max_length]

    cleaned = _strip_markup(_CONTROL_RE.sub('', cleaned))

    if cleaned != original:
        log_security_event("markup_stripped", {
            "original_length": len(original),
            "sanitized_length": len(cleaned),
        })
    return cleaned


def room_code_from_path(path: str) -> str:
    """
    Return the trailing segment of a room path

    A path without separators is its own room code.
    """
    return path.split("/")[-1]


def is_linkable_room_code(room_code: str) -> bool:
    """Only room codes of the linkable length touch durable records"""
    return len(room_code) == LINKABLE_ROOM_CODE_LENGTH


def validate_join_payload(payload: Any) -> Tuple[bool, str]:
    """
    Validate a join-call payload

    Args:
        payload: Event payload from the transport

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(payload, dict):
        log_security_event("invalid_join_payload_type", {"payload_type": type(payload).__name__})
        return False, "join-call payload must be an object"

    path = payload.get("path")
    if not isinstance(path, str) or not path.strip():
        log_security_event("invalid_join_path", {"path_type": type(path).__name__})
        return False, "join-call path must be a non-empty string"

    return True, ""


def user_id_from_payload(payload: dict) -> Optional[str]:
    """Extract the user id of a join-call payload, None when absent"""
    user_id = payload.get("userId")
    if user_id is None:
        return None
    user_id = coerce_text(user_id).strip()
    return user_id or None
