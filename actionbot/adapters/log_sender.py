"""ChatSender that only writes outbound traffic to stderr."""

import sys


def _log(msg: str):
    print(msg, file=sys.stderr)


class LogChatSender:
    """Stand-in transport when no chat connection is attached."""

    async def say(self, channel: str, text: str) -> None:
        _log(f"[#{channel}] {text}")

    async def send_raw(self, channel: str, text: str) -> None:
        _log(f"[#{channel}] (raw) {text}")
