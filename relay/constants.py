"""
Application-level constants for the relay protocol.

These values define the wire protocol and client-facing messages and should
NEVER be changed via environment variables. For configurable values see
relay/settings.py.
"""

# ============================================================================
# Event names
# ============================================================================

# Inbound events sent by clients
EVENT_JOIN = "join"
EVENT_SEND_MESSAGE = "sendMessage"

# Outbound events emitted by the relay
EVENT_ERROR = "error"
EVENT_JOINED = "joined"
EVENT_RECEIVE_MESSAGE = "receiveMessage"


# ============================================================================
# Client-facing error messages
# ============================================================================

INVALID_JOIN_MESSAGE = "Invalid join data. chatId required."
INVALID_MESSAGE_MESSAGE = "Invalid message data."
NOT_A_MEMBER_MESSAGE = "Must join room first"


# ============================================================================
# Message defaults
# ============================================================================

# Display name used when a message carries neither username nor sender
ANONYMOUS = "Anonymous"

# Number of message characters included in log lines
MESSAGE_PREVIEW_LENGTH = 50


# ============================================================================
# WebSocket close codes (RFC 6455)
# ============================================================================

WS_NORMAL_CLOSURE_CODE = 1000
WS_GOING_AWAY_CODE = 1001

# Used when rejecting upgrades from a disallowed origin
WS_POLICY_VIOLATION_CODE = 1008

WS_INTERNAL_ERROR_CODE = 1011


# ============================================================================
# Logging
# ============================================================================

# Loki rejects log lines above this size
LOKI_MAX_LOG_SIZE_BYTES = 256 * 1024


# ============================================================================
# HTTP
# ============================================================================

# Listed in the body of 404 responses
AVAILABLE_ENDPOINTS = ["/", "/health", "/ping", "/metrics"]
