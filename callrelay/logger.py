"""
Logging configuration for the call signaling relay
"""

import logging
import sys
from typing import Optional

from .constants import LOG_LEVEL

ROOT_LOGGER_NAME = "callrelay"


class SecureFormatter(logging.Formatter):
    """Custom formatter that masks credentials in log lines"""

    def format(self, record):
        message = super().format(record)
        sanitized = message.replace('password=', 'password=***')
        sanitized = sanitized.replace('token=', 'token=***')
        return sanitized


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance with the relay's formatting

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)

        formatter = SecureFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)
        logger.setLevel(LOG_LEVEL)

        # Prevent propagation to root logger
        logger.propagate = False

    return logger


def set_log_level(level: str, name: str = ROOT_LOGGER_NAME):
    """Apply a level name such as "DEBUG" to the relay logger"""
    logger = get_logger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def log_security_event(event_type: str, details: dict, logger: Optional[logging.Logger] = None):
    """
    Log security-related events with structured data

    Args:
        event_type: Type of security event
        details: Event details
        logger: Logger instance (optional)
    """
    if logger is None:
        logger = get_logger()

    logger.warning(f"SECURITY_EVENT: {event_type} | {details}")


def log_connection_event(connection_id: str, room: str, action: str):
    """
    Log connection lifecycle events

    Args:
        connection_id: Transport connection identifier
        room: Room path (empty when not in a room)
        action: Action (connect/join/leave/disconnect)
    """
    logger = get_logger()
    logger.info(f"CONNECTION_EVENT: {action} | conn={connection_id} | room={room or '-'}")


def log_message_event(connection_id: str, room: str, action: str, details: str = ""):
    """
    Log chat message events

    Args:
        connection_id: Originating connection
        room: Room path
        action: Action (buffered/broadcast/replay/dropped)
        details: Additional details
    """
    logger = get_logger()
    logger.info(f"MESSAGE_EVENT: {action} | conn={connection_id} | room={room or '-'} | {details}")


def log_signal_event(from_id: str, to_id: str, action: str):
    """Log signal forwarding; payloads are never logged"""
    logger = get_logger()
    logger.debug(f"SIGNAL_EVENT: {action} | from={from_id} | to={to_id}")


def log_storage_event(operation: str, action: str, details: str = "", level: str = "info"):
    """
    Log durable storage writes

    Args:
        operation: Description of the durable write
        action: Outcome (ok/retry/failed/dropped)
        details: Additional details
        level: Log level (info/warning/error)
    """
    logger = get_logger()
    log_message = f"STORAGE_EVENT: {action} | op={operation} | {details}"

    if level == "warning":
        logger.warning(log_message)
    elif level == "error":
        logger.error(log_message)
    else:
        logger.info(log_message)


def log_system_event(event_type: str, details: str, level: str = "info"):
    """
    Log system-level events

    Args:
        event_type: Type of system event
        details: Event details
        level: Log level (info/warning/error)
    """
    logger = get_logger()
    log_message = f"SYSTEM_EVENT: {event_type} | {details}"

    if level == "warning":
        logger.warning(log_message)
    elif level == "error":
        logger.error(log_message)
    else:
        logger.info(log_message)
