"""Timed moderation — hitman / bodyguard and emote-only windows.

Hitman: Armed -> (Protected | Expired).
The hitman arms a record for (channel, user), announces the countdown,
parks for HITMAN_DELAY_SECONDS and then claims the protection flag.
A bodyguard call that lands before the claim cancels the timeout.
"""

import asyncio
import sys
from typing import Awaitable, Callable

from actionbot.channel import OutboundChannel
from actionbot.domain.models import Reply
from actionbot.ports.outbound import PersistencePort

Sleep = Callable[[float], Awaitable[None]]

HITMAN_DELAY_SECONDS = 15
TIMEOUT_SECONDS = 600


def _log(msg: str):
    print(msg, file=sys.stderr)


class TimedModeration:
    """Stateful timer actions. Each call is one task; none of them block each other."""

    def __init__(self, store: PersistencePort, sleep: Sleep = asyncio.sleep):
        self._store = store
        self._sleep = sleep

    async def hitman(self, channel: str, user: str, outbound: OutboundChannel) -> Reply:
        # A failed write aborts before anything reaches chat
        self._store.add_hitman(channel, user)

        await outbound.say(channel, f"Timing out {user} in {HITMAN_DELAY_SECONDS} seconds...")
        await self._sleep(HITMAN_DELAY_SECONDS)

        # Check and clear in one step, so a late bodyguard is never lost
        if self._store.take_hitman_protection(channel, user):
            _log(f"[Moderation] {user} was protected in #{channel}")
            return Reply("")

        await outbound.raw(channel, f"/timeout {user} {TIMEOUT_SECONDS}")
        _log(f"[Moderation] timed out {user} in #{channel}")
        return Reply(f"{user} timed out for {TIMEOUT_SECONDS // 60} minutes!")

    async def bodyguard(self, channel: str, user: str, outbound: OutboundChannel) -> Reply:
        self._store.set_hitman_protection(channel, user, True)
        await outbound.say(channel, f"{user} has been guarded!")
        return Reply("")

    async def emote_only(self, channel: str, duration: int, outbound: OutboundChannel) -> None:
        await outbound.say(channel, f"Emote-only enabled for {duration} seconds!")
        await outbound.raw(channel, "/emoteonly")

        await self._sleep(duration)

        await outbound.raw(channel, "/emoteonlyoff")
        _log(f"[Moderation] emote-only window closed in #{channel}")
