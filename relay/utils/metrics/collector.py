"""
Facade for centralized metrics emission.

Provides high-level methods for recording metrics without exposing
Prometheus implementation details to the hub and the endpoint.
"""


class MetricsCollector:
    """
    Centralized facade for all Prometheus metrics.

    All methods are static for easy use without instantiation.
    """

    # ========== WebSocket Metrics ==========

    @staticmethod
    def record_ws_connection_accepted() -> None:
        """Record a connection that completed the join handshake."""
        from relay.utils.metrics import ws_connections_active, ws_connections_total

        ws_connections_total.labels(status="accepted").inc()
        ws_connections_active.inc()

    @staticmethod
    def record_ws_connection_rejected(reason: str) -> None:
        """
        Record rejected WebSocket connection.

        Args:
            reason: Rejection reason, e.g. 'handshake'
        """
        from relay.utils.metrics import ws_connections_total

        ws_connections_total.labels(status=f"rejected_{reason}").inc()

    @staticmethod
    def record_ws_disconnection() -> None:
        """Record disconnection of an accepted connection."""
        from relay.utils.metrics import ws_connections_active

        ws_connections_active.dec()

    @staticmethod
    def record_ws_message_received() -> None:
        from relay.utils.metrics import ws_messages_received_total

        ws_messages_received_total.inc()

    @staticmethod
    def record_ws_message_dropped(reason: str) -> None:
        """
        Record an inbound message that was not broadcast.

        Args:
            reason: One of 'empty_text', 'not_registered'
        """
        from relay.utils.metrics import ws_messages_dropped_total

        ws_messages_dropped_total.labels(reason=reason).inc()

    # ========== Hub Metrics ==========

    @staticmethod
    def record_broadcast(message_type: str, duration: float) -> None:
        """
        Record a completed broadcast.

        Args:
            message_type: Type of the broadcast message (join, msg, leave)
            duration: Seconds spent in the broadcast, including lock wait
        """
        from relay.utils.metrics import (
            chat_broadcast_duration_seconds,
            chat_broadcasts_total,
        )

        chat_broadcasts_total.labels(type=message_type).inc()
        chat_broadcast_duration_seconds.observe(duration)

    @staticmethod
    def record_connections_pruned(count: int) -> None:
        from relay.utils.metrics import chat_connections_pruned_total

        chat_connections_pruned_total.inc(count)

    @staticmethod
    def set_participants(count: int) -> None:
        """Set the number of registered participants."""
        from relay.utils.metrics import chat_participants

        chat_participants.set(count)
