"""Outbound ports — interfaces for storage, external APIs and chat delivery."""

from typing import Optional, Protocol, Tuple, runtime_checkable

from actionbot.domain.models import Translation, Weather


@runtime_checkable
class PersistencePort(Protocol):
    """Interface for persisted per-channel / per-user state.

    Implementations raise NotFoundError for a missing record and
    PersistenceError for any other storage fault.
    """

    def get_spotify_access_token(self, channel: str) -> Tuple[str, str]: ...
    def increment_currency(self, username: str) -> None: ...
    def get_currency(self, username: str) -> int: ...
    def add_hitman(self, channel: str, user: str) -> None: ...
    def set_hitman_protection(self, channel: str, user: str, protected: bool) -> None: ...

    def take_hitman_protection(self, channel: str, user: str) -> bool:
        """Return the protection flag and clear it in one atomic step."""
        ...

    def get_credential(self, key: str) -> str: ...


@runtime_checkable
class WeatherPort(Protocol):
    async def get_weather(self, location: str) -> Weather: ...


@runtime_checkable
class MusicPort(Protocol):
    """Now-playing lookups; each call takes the channel's access token."""

    async def get_current_song(self, access_token: str) -> Optional[str]: ...
    async def get_current_playlist(self, access_token: str) -> Optional[str]: ...
    async def get_recently_played(self, access_token: str) -> str: ...


@runtime_checkable
class TranslationPort(Protocol):
    async def translate(self, text: str) -> Translation: ...


@runtime_checkable
class ModerationPort(Protocol):
    """Chat-platform API calls that are not plain chat commands."""

    async def run_ad(self, channel: str, duration: int) -> None: ...


@runtime_checkable
class ChatSender(Protocol):
    """Transport side of the outbound channel."""

    async def say(self, channel: str, text: str) -> None: ...
    async def send_raw(self, channel: str, text: str) -> None: ...
