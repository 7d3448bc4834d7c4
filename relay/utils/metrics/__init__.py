"""
Prometheus metrics for the relay.

Connection and room gauges mirror the registry; counters track joins,
broadcasts, per-recipient deliveries, rejected client requests and
invariant violations.
"""

from relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
)

# Connection Metrics
relay_connections_active = _get_or_create_gauge(
    "relay_connections_active", "Number of live relay connections"
)

relay_connections_total = _get_or_create_counter(
    "relay_connections_total", "Total relay connections accepted"
)

# Room Metrics
relay_rooms_active = _get_or_create_gauge(
    "relay_rooms_active", "Number of rooms with at least one member"
)

relay_joins_total = _get_or_create_counter(
    "relay_joins_total", "Total successful room joins"
)

# Message Metrics
relay_messages_broadcast_total = _get_or_create_counter(
    "relay_messages_broadcast_total", "Total messages broadcast to a room"
)

relay_messages_delivered_total = _get_or_create_counter(
    "relay_messages_delivered_total",
    "Total receiveMessage events handed to recipients",
)

relay_rejections_total = _get_or_create_counter(
    "relay_rejections_total",
    "Client requests rejected with an error event",
    ["reason"],  # invalid_join, invalid_message, not_member
)

relay_invariant_violations_total = _get_or_create_counter(
    "relay_invariant_violations_total",
    "Events that a correct transport should never produce",
    ["kind"],
)


__all__ = [
    "relay_connections_active",
    "relay_connections_total",
    "relay_rooms_active",
    "relay_joins_total",
    "relay_messages_broadcast_total",
    "relay_messages_delivered_total",
    "relay_rejections_total",
    "relay_invariant_violations_total",
]
