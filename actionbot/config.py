"""Runtime configuration — read once from the environment."""

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


CONFIG = {
    # Credentials (the store may override these per deployment)
    "openweathermap_api_key": os.getenv("OPENWEATHERMAP_API_KEY", ""),
    "twitch_client_id": os.getenv("TWITCH_CLIENT_ID", ""),
    "twitch_access_token": os.getenv("TWITCH_ACCESS_TOKEN", ""),
    # Behaviour
    "translate_target": os.getenv("TRANSLATE_TARGET", "en"),
    "store_path": os.getenv("ACTIONBOT_STORE", "memory/actionbot.json"),
    "outbound_queue_size": _int_env("OUTBOUND_QUEUE_SIZE", 100),
    "http_timeout": _float_env("HTTP_TIMEOUT", 10.0),
    # HTTP surface
    "host": os.getenv("HOST", "127.0.0.1"),
    "port": _int_env("PORT", 8080),
}
