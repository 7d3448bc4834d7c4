"""Process start time, recorded once by the application startup handler."""

import time

_started_at: float | None = None


def mark_started() -> None:
    global _started_at
    _started_at = time.monotonic()


def uptime_seconds() -> float:
    """
    Seconds since ``mark_started`` was called.

    Returns:
        Elapsed seconds, or 0.0 before startup has run.
    """
    if _started_at is None:
        return 0.0
    return time.monotonic() - _started_at
