"""Twitch Helix calls used by the moderation actions."""

import asyncio

import aiohttp

from actionbot.config import CONFIG
from actionbot.errors import ExternalAPIError

HELIX_BASE = "https://api.twitch.tv/helix"


class TwitchApi:
    """ModerationPort implementation (ad breaks)."""

    def __init__(self, client_id: str, access_token: str, base_url: str = HELIX_BASE):
        self._client_id = client_id
        self._access_token = access_token
        self._base_url = base_url

    @property
    def is_configured(self) -> bool:
        return bool(self._client_id and self._access_token)

    def _headers(self) -> dict:
        return {
            "Client-Id": self._client_id,
            "Authorization": f"Bearer {self._access_token}",
        }

    async def run_ad(self, channel: str, duration: int) -> None:
        if not self.is_configured:
            raise ExternalAPIError("Twitch API not configured. Set TWITCH_CLIENT_ID and TWITCH_ACCESS_TOKEN.")

        timeout = aiohttp.ClientTimeout(total=CONFIG["http_timeout"])
        try:
            async with aiohttp.ClientSession(headers=self._headers(), timeout=timeout) as session:
                broadcaster_id = await self._get_user_id(session, channel)
                payload = {"broadcaster_id": broadcaster_id, "length": duration}
                async with session.post(f"{self._base_url}/channels/commercial", json=payload) as resp:
                    if resp.status != 200:
                        raise ExternalAPIError(await resp.text(), status=resp.status)
        except asyncio.TimeoutError as e:
            raise ExternalAPIError("request timed out") from e
        except aiohttp.ClientError as e:
            raise ExternalAPIError(str(e)) from e
        except ValueError as e:
            raise ExternalAPIError(f"malformed response: {e}") from e

    async def _get_user_id(self, session: aiohttp.ClientSession, login: str) -> str:
        async with session.get(f"{self._base_url}/users", params={"login": login}) as resp:
            if resp.status != 200:
                raise ExternalAPIError(await resp.text(), status=resp.status)
            data = await resp.json()
        users = data.get("data") if isinstance(data, dict) else None
        if not users or not isinstance(users[0], dict) or "id" not in users[0]:
            raise ExternalAPIError(f"unknown channel: {login}")
        return users[0]["id"]
