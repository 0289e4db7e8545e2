"""
Prometheus metrics definitions and utilities.

All metrics are re-exported here:

    from relay.utils.metrics import ws_connections_active

Application code should record through the MetricsCollector facade:

    from relay.utils.metrics import MetricsCollector
    MetricsCollector.record_ws_message_received()
"""

from relay.utils.metrics.collector import MetricsCollector
from relay.utils.metrics.websocket import (
    chat_broadcast_duration_seconds,
    chat_broadcasts_total,
    chat_connections_pruned_total,
    chat_participants,
    ws_connections_active,
    ws_connections_total,
    ws_messages_dropped_total,
    ws_messages_received_total,
)

__all__ = [
    "MetricsCollector",
    "chat_broadcast_duration_seconds",
    "chat_broadcasts_total",
    "chat_connections_pruned_total",
    "chat_participants",
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_dropped_total",
    "ws_messages_received_total",
]
