"""Outbound channel — queue of chat operations waiting for the transport."""

import asyncio
import sys
from typing import Optional

from actionbot.domain.models import OutboundMessage, Raw, Say
from actionbot.errors import OutboundChannelClosed
from actionbot.ports.outbound import ChatSender


def _log(msg: str):
    print(msg, file=sys.stderr)


async def _first_of(primary: "asyncio.Future", closed: "asyncio.Future"):
    """Wait until either future finishes; always cancels `closed`, and `primary` if it lost."""
    try:
        await asyncio.wait({primary, closed}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        closed.cancel()
        if not primary.done():
            primary.cancel()


class OutboundChannel:
    """Multi-producer, single-consumer queue of Say/Raw messages.

    A full queue suspends the producer until the consumer catches up.
    Once closed, every further send raises OutboundChannelClosed, and so
    does every send already parked on a full queue.
    """

    def __init__(self, maxsize: int = 100):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self):
        self._closed.set()

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    async def send(self, message: OutboundMessage) -> None:
        if self.closed:
            raise OutboundChannelClosed(f"outbound channel closed, dropped {message!r}")
        try:
            self._queue.put_nowait(message)
            return
        except asyncio.QueueFull:
            pass

        put = asyncio.ensure_future(self._queue.put(message))
        await _first_of(put, asyncio.ensure_future(self._closed.wait()))
        # A put that finished alongside close() still delivered the message
        if put.done() and not put.cancelled():
            return put.result()
        raise OutboundChannelClosed(f"outbound channel closed while waiting, dropped {message!r}")

    async def say(self, channel: str, text: str) -> None:
        await self.send(Say(channel, text))

    async def raw(self, channel: str, text: str) -> None:
        await self.send(Raw(channel, text))

    async def receive(self) -> OutboundMessage:
        return await self._queue.get()

    def receive_nowait(self) -> OutboundMessage:
        return self._queue.get_nowait()

    async def next_message(self) -> Optional[OutboundMessage]:
        """Next queued message, or None once the channel is closed and drained."""
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self.closed:
            return None

        get = asyncio.ensure_future(self._queue.get())
        await _first_of(get, asyncio.ensure_future(self._closed.wait()))
        if get.done() and not get.cancelled():
            return get.result()
        # Closed while idle; anything that raced in is still drained in order
        if not self._queue.empty():
            return self._queue.get_nowait()
        return None

    def drain(self) -> list:
        """Pop everything currently queued, in order."""
        messages = []
        while not self._queue.empty():
            try:
                messages.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break
        return messages


async def deliver(outbound: OutboundChannel, sender: ChatSender):
    """Forward queued messages to the transport until the channel is closed and empty."""
    while True:
        message = await outbound.next_message()
        if message is None:
            return

        try:
            if isinstance(message, Say):
                await sender.say(message.channel, message.text)
            elif isinstance(message, Raw):
                await sender.send_raw(message.channel, message.text)
            else:
                _log(f"[Outbound] unknown message type: {message!r}")
        except Exception as e:
            _log(f"[Outbound] delivery to {message.channel} failed: {e}")
