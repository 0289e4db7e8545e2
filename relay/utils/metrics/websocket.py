"""
Prometheus metrics for the chat WebSocket and the broadcast hub.

Connection metrics are recorded by the endpoint; participant, broadcast and
pruning metrics are recorded by the hub.
"""

from relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
    _get_or_create_histogram,
)

# WebSocket Connection Metrics
ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of open chat WebSocket connections"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total",
    "Total chat WebSocket connections",
    ["status"],  # accepted, rejected_handshake
)

ws_messages_received_total = _get_or_create_counter(
    "ws_messages_received_total", "Total chat messages received from clients"
)

ws_messages_dropped_total = _get_or_create_counter(
    "ws_messages_dropped_total",
    "Total inbound chat messages dropped without broadcast",
    ["reason"],  # empty_text, not_registered
)

# Hub Metrics
chat_participants = _get_or_create_gauge(
    "chat_participants", "Number of connections registered in the hub"
)

chat_broadcasts_total = _get_or_create_counter(
    "chat_broadcasts_total", "Total broadcasts performed by the hub", ["type"]
)

chat_broadcast_duration_seconds = _get_or_create_histogram(
    "chat_broadcast_duration_seconds",
    "Time spent fanning out one message, including lock wait",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)

chat_connections_pruned_total = _get_or_create_counter(
    "chat_connections_pruned_total",
    "Total connections removed after a failed delivery",
)
