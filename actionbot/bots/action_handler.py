"""Action dispatcher — maps a built-in action name to its handler."""

import asyncio
import sys
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set

from actionbot.bots import sys_info
from actionbot.bots.moderation import Sleep, TimedModeration
from actionbot.channel import OutboundChannel
from actionbot.config import CONFIG
from actionbot.domain.models import ActionRequest, ActionResult, NoReply, Reply
from actionbot.errors import (
    ActionError,
    ExternalAPIError,
    InvalidArguments,
    InvalidLocation,
    NotFoundError,
    UnknownAction,
)
from actionbot.ports.outbound import (
    ModerationPort,
    MusicPort,
    PersistencePort,
    TranslationPort,
    WeatherPort,
)


def _log(msg: str):
    print(msg, file=sys.stderr)


Handler = Callable[[List[str], str, OutboundChannel], Awaitable[ActionResult]]

AD_DURATIONS = frozenset({60, 120, 180})
NOT_CONFIGURED_REPLY = "not configured for this channel"
USER_NOT_SPECIFIED_REPLY = "user not specified"


class ActionHandler:
    """Runs built-in actions against the store, the external APIs and the outbound channel.

    Every invocation returns exactly one ActionResult. Handler errors that
    subclass ActionError become Failure results here; soft failures are
    already Replies by the time they get back to run().
    """

    def __init__(
        self,
        store: PersistencePort,
        weather: WeatherPort,
        music: MusicPort,
        translator: TranslationPort,
        moderation_api: ModerationPort,
        sleep: Sleep = asyncio.sleep,
    ):
        self._store = store
        self._weather = weather
        self._music = music
        self._translator = translator
        self._moderation_api = moderation_api
        self._timers = TimedModeration(store, sleep=sleep)
        self._background: Set[asyncio.Task] = set()

        self._actions: Dict[str, Handler] = {
            "spotify": self._spotify,
            "spotify.playlist": self._spotify_playlist,
            "lastsong": self._last_song,
            "hitman": self._hitman,
            "bodyguard": self._bodyguard,
            "ping": self._ping,
            "commercial": self._commercial,
            "weather": self._get_weather,
            "translate": self._translate,
            "emoteonly": self._emote_only,
            "increment": self._increment,
            "currency": self._currency,
        }

    @classmethod
    def from_config(cls, store: PersistencePort, **kwargs) -> "ActionHandler":
        """Wire the HTTP adapters, preferring stored credentials over CONFIG."""
        from actionbot.adapters.spotify import SpotifyClient
        from actionbot.adapters.translate import TranslationClient
        from actionbot.adapters.twitch_api import TwitchApi
        from actionbot.adapters.weather import WeatherClient

        def credential(key: str) -> str:
            try:
                return store.get_credential(key)
            except NotFoundError:
                return CONFIG.get(key, "")

        return cls(
            store=store,
            weather=WeatherClient(credential("openweathermap_api_key")),
            music=SpotifyClient(),
            translator=TranslationClient(target=CONFIG["translate_target"]),
            moderation_api=TwitchApi(
                client_id=credential("twitch_client_id"),
                access_token=credential("twitch_access_token"),
            ),
            **kwargs,
        )

    @property
    def actions(self) -> List[str]:
        return sorted(self._actions)

    async def run(
        self,
        action: str,
        args: Sequence[str],
        channel: str,
        outbound: OutboundChannel,
    ) -> ActionResult:
        _log(f"[ActionHandler] executing {action} with args {list(args)} in #{channel}")

        handler = self._actions.get(action)
        if handler is None:
            return UnknownAction(action).to_failure()

        try:
            return await handler(list(args), channel, outbound)
        except ActionError as e:
            _log(f"[ActionHandler] {action} failed ({e.kind.value}): {e.detail}")
            return e.to_failure()

    async def dispatch(self, request: ActionRequest, outbound: OutboundChannel) -> ActionResult:
        return await self.run(request.name, request.args, request.channel, outbound)

    async def join(self):
        """Wait for every fire-and-forget task (emote-only windows) to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    @property
    def pending_tasks(self) -> int:
        return len(self._background)

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------
    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task):
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _log(f"[ActionHandler] background task {task.get_name()} failed: {exc!r}")

    # ------------------------------------------------------------------
    # Music service
    # ------------------------------------------------------------------
    def _access_token(self, channel: str) -> Optional[str]:
        try:
            access_token, _ = self._store.get_spotify_access_token(channel)
        except NotFoundError:
            return None
        return access_token

    async def _spotify(self, args, channel, outbound) -> ActionResult:
        token = self._access_token(channel)
        if token is None:
            return Reply(NOT_CONFIGURED_REPLY)
        song = await self._music.get_current_song(token)
        return Reply(song or "no song is currently playing")

    async def _spotify_playlist(self, args, channel, outbound) -> ActionResult:
        token = self._access_token(channel)
        if token is None:
            return Reply(NOT_CONFIGURED_REPLY)
        playlist = await self._music.get_current_playlist(token)
        return Reply(playlist or "not currently playing a playlist")

    async def _last_song(self, args, channel, outbound) -> ActionResult:
        token = self._access_token(channel)
        if token is None:
            return Reply(NOT_CONFIGURED_REPLY)
        try:
            return Reply(await self._music.get_recently_played(token))
        except ExternalAPIError as e:
            return Reply(f"error getting last song: {e!r}")

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------
    async def _hitman(self, args, channel, outbound) -> ActionResult:
        if not args:
            return Reply(USER_NOT_SPECIFIED_REPLY)
        return await self._timers.hitman(channel, args[0].replace("@", ""), outbound)

    async def _bodyguard(self, args, channel, outbound) -> ActionResult:
        if not args:
            return Reply(USER_NOT_SPECIFIED_REPLY)
        return await self._timers.bodyguard(channel, args[0].replace("@", ""), outbound)

    async def _emote_only(self, args, channel, outbound) -> ActionResult:
        if not args:
            raise InvalidArguments("Missing duration")
        try:
            duration = int(args[0])
        except ValueError:
            raise InvalidArguments("invalid duration")
        if duration < 0:
            raise InvalidArguments("invalid duration")

        self._spawn(
            self._timers.emote_only(channel, duration, outbound),
            name=f"emoteonly:{channel}",
        )
        return NoReply()

    async def _commercial(self, args, channel, outbound) -> ActionResult:
        if not args:
            raise InvalidArguments("Missing ad duration")
        try:
            duration = int(args[0])
        except ValueError:
            return Reply("Invalid ad duration")
        if duration not in AD_DURATIONS:
            return Reply("Invalid ad duration")

        await self._moderation_api.run_ad(channel, duration)
        return Reply(f"Running an ad for {duration} seconds")

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------
    async def _ping(self, args, channel, outbound) -> ActionResult:
        return Reply(sys_info.ping())

    async def _get_weather(self, args, channel, outbound) -> ActionResult:
        if not args:
            return Reply("location not specified")
        try:
            weather = await self._weather.get_weather(" ".join(args))
        except InvalidLocation:
            return Reply("location not found")
        except ExternalAPIError as e:
            return Reply(f"Failed getting weather: {e!r}")
        return Reply(f"{weather.name}, {weather.country}: {weather.temp}°C, {weather.description}")

    async def _translate(self, args, channel, outbound) -> ActionResult:
        if not args:
            raise InvalidArguments("Missing text")
        try:
            translation = await self._translator.translate(" ".join(args))
        except ExternalAPIError as e:
            return Reply(f"error when translating: {e!r}")
        return Reply(f"{translation.src} -> {translation.dest}: {translation.text}")

    async def _increment(self, args, channel, outbound) -> ActionResult:
        if not args:
            raise InvalidArguments("Missing username")
        self._store.increment_currency(args[0])
        return NoReply()

    async def _currency(self, args, channel, outbound) -> ActionResult:
        if not args:
            raise InvalidArguments("Missing username")
        return Reply(str(self._store.get_currency(args[0])))
