"""
Application-level constants for the chat relay protocol.

These values are part of the wire contract with clients and should not be
changed via environment variables. For configurable values (timeouts, paths,
log levels), see relay/settings.py.
"""

from starlette import status

# ============================================================================
# WebSocket Protocol Constants
# ============================================================================

# Path of the chat WebSocket endpoint
WS_CHAT_PATH = "/ws"

# Close code used when the first payload is not a valid join
# (undecodable, or missing a display name)
WS_HANDSHAKE_REJECTED_CODE = status.WS_1008_POLICY_VIOLATION

# Close code used when an established connection sends undecodable data
WS_DECODE_FAILED_CODE = status.WS_1003_UNSUPPORTED_DATA

# Close code used when a connection is pruned after a failed delivery
WS_PRUNED_CODE = status.WS_1011_INTERNAL_ERROR
