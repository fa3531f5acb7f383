"""Liveness info for the ping action."""

import time

_STARTED_AT = time.monotonic()


def uptime_seconds() -> int:
    return int(time.monotonic() - _STARTED_AT)


def ping() -> str:
    total = uptime_seconds()
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"Pong! Uptime: {hours}h {minutes}m {seconds}s"
