"""Tests for the timed moderation actions — hitman, bodyguard, emote-only."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from actionbot.adapters.json_store import JsonStore
from actionbot.bots.action_handler import ActionHandler
from actionbot.bots.moderation import HITMAN_DELAY_SECONDS
from actionbot.channel import OutboundChannel
from actionbot.domain.models import ErrorKind, Failure, NoReply, Raw, Reply, Say
from actionbot.errors import OutboundChannelClosed, PersistenceError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

CHANNEL = "streamer"


class GatedSleep:
    """Sleep replacement that parks until the test releases it."""

    def __init__(self):
        self.calls = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, seconds):
        self.calls.append(seconds)
        self.started.set()
        await self.release.wait()


def _make_handler(store, sleep) -> ActionHandler:
    return ActionHandler(
        store=store,
        weather=AsyncMock(),
        music=AsyncMock(),
        translator=AsyncMock(),
        moderation_api=AsyncMock(),
        sleep=sleep,
    )


# ---------------------------------------------------------------------------
# hitman
# ---------------------------------------------------------------------------

class TestHitman:
    @pytest.mark.asyncio
    async def test_unprotected_user_is_timed_out(self, tmp_path):
        store = JsonStore(str(tmp_path / "store.json"))
        sleep = AsyncMock()
        handler = _make_handler(store, sleep)
        outbound = OutboundChannel()

        result = await handler.run("hitman", ["alice"], CHANNEL, outbound)

        assert result == Reply("alice timed out for 10 minutes!")
        sleep.assert_awaited_once_with(HITMAN_DELAY_SECONDS)
        messages = outbound.drain()
        assert messages == [
            Say(CHANNEL, "Timing out alice in 15 seconds..."),
            Raw(CHANNEL, "/timeout alice 600"),
        ]
        assert len([m for m in messages if isinstance(m, Raw)]) == 1

    @pytest.mark.asyncio
    async def test_at_prefix_is_stripped(self, tmp_path):
        store = JsonStore(str(tmp_path / "store.json"))
        handler = _make_handler(store, AsyncMock())
        outbound = OutboundChannel()

        result = await handler.run("hitman", ["@alice"], CHANNEL, outbound)

        assert result == Reply("alice timed out for 10 minutes!")
        assert Raw(CHANNEL, "/timeout alice 600") in outbound.drain()

    @pytest.mark.asyncio
    async def test_bodyguard_during_countdown_cancels_timeout(self, tmp_path):
        store = JsonStore(str(tmp_path / "store.json"))
        gate = GatedSleep()
        handler = _make_handler(store, gate)
        outbound = OutboundChannel()

        hit = asyncio.create_task(handler.run("hitman", ["alice"], CHANNEL, outbound))
        await gate.started.wait()

        guarded = await handler.run("bodyguard", ["alice"], CHANNEL, outbound)
        assert guarded == Reply("")
        assert store.get_hitman_protected(CHANNEL, "alice") is True

        gate.release.set()
        result = await hit

        assert result == Reply("")
        assert store.get_hitman_protected(CHANNEL, "alice") is False
        assert outbound.drain() == [
            Say(CHANNEL, "Timing out alice in 15 seconds..."),
            Say(CHANNEL, "alice has been guarded!"),
        ]

    @pytest.mark.asyncio
    async def test_new_hitman_resets_stale_protection(self, tmp_path):
        store = JsonStore(str(tmp_path / "store.json"))
        store.set_hitman_protection(CHANNEL, "alice", True)
        handler = _make_handler(store, AsyncMock())

        result = await handler.run("hitman", ["alice"], CHANNEL, OutboundChannel())

        assert result == Reply("alice timed out for 10 minutes!")

    @pytest.mark.asyncio
    async def test_parked_hitman_does_not_block_other_actions(self, tmp_path):
        store = JsonStore(str(tmp_path / "store.json"))
        gate = GatedSleep()
        handler = _make_handler(store, gate)
        outbound = OutboundChannel()

        first = asyncio.create_task(handler.run("hitman", ["alice"], CHANNEL, outbound))
        second = asyncio.create_task(handler.run("hitman", ["bob"], CHANNEL, outbound))
        await gate.started.wait()
        await asyncio.sleep(0)

        pong = await handler.run("ping", [], CHANNEL, outbound)
        assert isinstance(pong, Reply)
        assert not first.done() and not second.done()

        gate.release.set()
        results = await asyncio.gather(first, second)

        assert results == [
            Reply("alice timed out for 10 minutes!"),
            Reply("bob timed out for 10 minutes!"),
        ]
        raws = [m for m in outbound.drain() if isinstance(m, Raw)]
        assert sorted(m.text for m in raws) == ["/timeout alice 600", "/timeout bob 600"]

    @pytest.mark.asyncio
    async def test_protection_is_per_channel(self, tmp_path):
        store = JsonStore(str(tmp_path / "store.json"))
        gate = GatedSleep()
        handler = _make_handler(store, gate)
        outbound = OutboundChannel()

        hit = asyncio.create_task(handler.run("hitman", ["alice"], CHANNEL, outbound))
        await gate.started.wait()
        await handler.run("bodyguard", ["alice"], "other", outbound)
        gate.release.set()

        assert await hit == Reply("alice timed out for 10 minutes!")

    @pytest.mark.asyncio
    async def test_missing_user(self):
        store = MagicMock()
        handler = _make_handler(store, AsyncMock())
        outbound = OutboundChannel()

        assert await handler.run("hitman", [], CHANNEL, outbound) == Reply("user not specified")
        assert await handler.run("bodyguard", [], CHANNEL, outbound) == Reply("user not specified")
        store.add_hitman.assert_not_called()
        assert outbound.empty()

    @pytest.mark.asyncio
    async def test_write_failure_aborts_before_announcement(self):
        store = MagicMock()
        store.add_hitman.side_effect = PersistenceError("locked")
        sleep = AsyncMock()
        handler = _make_handler(store, sleep)
        outbound = OutboundChannel()

        result = await handler.run("hitman", ["alice"], CHANNEL, outbound)

        assert result == Failure(ErrorKind.PERSISTENCE_ERROR, "locked")
        assert outbound.empty()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_read_failure_after_delay(self):
        store = MagicMock()
        store.take_hitman_protection.side_effect = PersistenceError("gone")
        handler = _make_handler(store, AsyncMock())
        outbound = OutboundChannel()

        result = await handler.run("hitman", ["alice"], CHANNEL, outbound)

        assert result == Failure(ErrorKind.PERSISTENCE_ERROR, "gone")
        assert outbound.drain() == [Say(CHANNEL, "Timing out alice in 15 seconds...")]

    @pytest.mark.asyncio
    async def test_closed_channel_is_fatal(self):
        handler = _make_handler(MagicMock(), AsyncMock())
        outbound = OutboundChannel()
        outbound.close()

        with pytest.raises(OutboundChannelClosed):
            await handler.run("hitman", ["alice"], CHANNEL, outbound)

    @pytest.mark.asyncio
    async def test_close_releases_hitman_blocked_on_full_channel(self):
        handler = _make_handler(MagicMock(), AsyncMock())
        outbound = OutboundChannel(maxsize=1)
        await outbound.say(CHANNEL, "filler")

        task = asyncio.create_task(handler.run("hitman", ["alice"], CHANNEL, outbound))
        await asyncio.sleep(0.01)
        assert not task.done()

        outbound.close()
        with pytest.raises(OutboundChannelClosed):
            await asyncio.wait_for(task, timeout=1.0)


# ---------------------------------------------------------------------------
# bodyguard
# ---------------------------------------------------------------------------

class TestBodyguard:
    @pytest.mark.asyncio
    async def test_sets_protection_and_confirms(self):
        store = MagicMock()
        handler = _make_handler(store, AsyncMock())
        outbound = OutboundChannel()

        result = await handler.run("bodyguard", ["@bob"], CHANNEL, outbound)

        assert result == Reply("")
        store.set_hitman_protection.assert_called_once_with(CHANNEL, "bob", True)
        assert outbound.drain() == [Say(CHANNEL, "bob has been guarded!")]


# ---------------------------------------------------------------------------
# emote-only window
# ---------------------------------------------------------------------------

class TestEmoteOnly:
    @pytest.mark.asyncio
    async def test_window_messages_in_order(self):
        sleep = AsyncMock()
        handler = _make_handler(MagicMock(), sleep)
        outbound = OutboundChannel()

        result = await handler.run("emoteonly", ["30"], CHANNEL, outbound)
        assert result == NoReply()
        await handler.join()

        sleep.assert_awaited_once_with(30)
        assert outbound.drain() == [
            Say(CHANNEL, "Emote-only enabled for 30 seconds!"),
            Raw(CHANNEL, "/emoteonly"),
            Raw(CHANNEL, "/emoteonlyoff"),
        ]

    @pytest.mark.asyncio
    async def test_dispatch_returns_before_window_closes(self):
        gate = GatedSleep()
        handler = _make_handler(MagicMock(), gate)
        outbound = OutboundChannel()

        result = await handler.run("emoteonly", ["60"], CHANNEL, outbound)
        assert result == NoReply()
        await gate.started.wait()
        assert handler.pending_tasks == 1
        assert Raw(CHANNEL, "/emoteonlyoff") not in outbound.drain()

        gate.release.set()
        await handler.join()
        assert handler.pending_tasks == 0
        assert outbound.drain() == [Raw(CHANNEL, "/emoteonlyoff")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("duration", ["soon", "1.5", "-10", ""])
    async def test_invalid_duration(self, duration):
        handler = _make_handler(MagicMock(), AsyncMock())
        outbound = OutboundChannel()

        result = await handler.run("emoteonly", [duration], CHANNEL, outbound)

        assert result == Failure(ErrorKind.INVALID_ARGUMENTS, "invalid duration")
        assert handler.pending_tasks == 0
        assert outbound.empty()

    @pytest.mark.asyncio
    async def test_missing_duration(self):
        handler = _make_handler(MagicMock(), AsyncMock())
        outbound = OutboundChannel()
        result = await handler.run("emoteonly", [], CHANNEL, outbound)
        assert result == Failure(ErrorKind.INVALID_ARGUMENTS, "Missing duration")
        assert outbound.empty()

    @pytest.mark.asyncio
    async def test_background_failure_is_contained(self):
        handler = _make_handler(MagicMock(), AsyncMock())
        outbound = OutboundChannel()
        outbound.close()

        result = await handler.run("emoteonly", ["5"], CHANNEL, outbound)
        assert result == NoReply()
        await handler.join()
        assert handler.pending_tasks == 0
