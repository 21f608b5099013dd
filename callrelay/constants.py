"""
Constants for the call signaling relay
"""

# Room codes of this length are linked to durable user/group records
LINKABLE_ROOM_CODE_LENGTH = 5

# Chat history limits
DEFAULT_HISTORY_LIMIT = 500

# Durable storage settings
DEFAULT_STORE_TIMEOUT_SECONDS = 5.0
DEFAULT_STORE_RETRIES = 2
STORE_RETRY_BACKOFF_SECONDS = 0.25
SHUTDOWN_DRAIN_SECONDS = 10.0
DEFAULT_STORE_QUEUE_SIZE = 1000

# Server defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4001
DEFAULT_REDIS_URL = "redis://localhost:6379/0"

# Message limits
MAX_CHAT_LENGTH = 5000
MAX_SENDER_LENGTH = 100
MAX_EVENT_BYTES = 65536

# Sanitization
CONTROL_CHARACTER_PATTERN = r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]'
TAG_START_PATTERN = r'<(?:/?[a-zA-Z]|!)'
TAG_NAME_PATTERN = r'</?([a-zA-Z][a-zA-Z0-9]*)'
EXECUTABLE_TAGS = ("script", "style", "iframe", "object", "embed", "noscript")

# Logging levels
LOG_LEVEL = "INFO"

# CORS
DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:8000",
    "http://localhost:3000",
    "https://talkpotalk.netlify.app",
]
CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE"]

# Inbound transport events
EVENT_JOIN_CALL = "join-call"
EVENT_SIGNAL = "signal"
EVENT_CHAT_MESSAGE = "chat-message"

# Outbound transport events
EVENT_USER_JOINED = "user-joined"
EVENT_USER_LEFT = "user-left"

# Error messages
ERROR_MESSAGES = {
    "user_exists": "User already exists",
    "user_not_found": "User not found",
    "group_exists": "Group already exists",
    "group_not_found": "Group not found",
    "internal": "Internal Server Error",
}
