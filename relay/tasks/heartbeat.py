"""
Periodic heartbeat log line.

Logs uptime and connection counters at a fixed interval so an idle server
still shows signs of life in the logs.
"""

from asyncio import CancelledError, sleep

from relay.logging import logger
from relay.registry import ConnectionRegistry, connection_registry
from relay.settings import app_settings
from relay.uptime import uptime_seconds


def format_uptime(seconds: float) -> str:
    """Format an uptime as ``<minutes>m <seconds>s``."""
    total = int(seconds)
    return f"{total // 60}m {total % 60}s"


async def heartbeat_task(
    registry: ConnectionRegistry = connection_registry,
    interval: float | None = None,
) -> None:
    """
    Log uptime, live connections and total connections every interval.

    Args:
        registry: Registry to read counters from.
        interval: Seconds between heartbeats; defaults to
            HEARTBEAT_INTERVAL_SECONDS.
    """
    interval = interval or app_settings.HEARTBEAT_INTERVAL_SECONDS

    while True:
        try:
            await sleep(interval)
            logger.info(
                f"Heartbeat - Uptime: {format_uptime(uptime_seconds())} "
                f"| Clients: {registry.connection_count()} "
                f"| Connections: {registry.total_connections_ever()} "
                f"| Rooms: {registry.room_count()}"
            )
        except CancelledError:
            logger.info("Heartbeat task cancelled!")
            break
