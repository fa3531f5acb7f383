"""Spotify Web API client for now-playing style lookups."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from actionbot.config import CONFIG
from actionbot.errors import ExternalAPIError

API_BASE = "https://api.spotify.com/v1"


def _format_track(track: Dict[str, Any]) -> str:
    artists = ", ".join(a.get("name", "") for a in track.get("artists", []))
    name = track.get("name", "")
    url = track.get("external_urls", {}).get("spotify", "")
    text = f"{artists} - {name}" if artists else name
    return f"{text} {url}".strip()


class SpotifyClient:
    """MusicPort implementation. Tokens come from the store per channel."""

    def __init__(self, base_url: str = API_BASE):
        self._base_url = base_url

    async def _get(self, path: str, access_token: str, params: Optional[dict] = None) -> Optional[dict]:
        """GET a Web API resource. Returns None for 204 No Content."""
        headers = {"Authorization": f"Bearer {access_token}"}
        timeout = aiohttp.ClientTimeout(total=CONFIG["http_timeout"])
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(f"{self._base_url}{path}", headers=headers, params=params) as resp:
                    if resp.status == 204:
                        return None
                    if resp.status != 200:
                        raise ExternalAPIError(await resp.text(), status=resp.status)
                    data = await resp.json()
                    if not isinstance(data, dict):
                        raise ExternalAPIError(f"unexpected payload from {path}", status=resp.status)
                    return data
        except asyncio.TimeoutError as e:
            raise ExternalAPIError("request timed out") from e
        except aiohttp.ClientError as e:
            raise ExternalAPIError(str(e)) from e
        except ValueError as e:
            raise ExternalAPIError(f"malformed response: {e}") from e

    async def get_current_song(self, access_token: str) -> Optional[str]:
        data = await self._get("/me/player/currently-playing", access_token)
        if not data or not data.get("item"):
            return None
        return _format_track(data["item"])

    async def get_current_playlist(self, access_token: str) -> Optional[str]:
        data = await self._get("/me/player/currently-playing", access_token)
        context = (data or {}).get("context") or {}
        if context.get("type") != "playlist":
            return None

        playlist_id = context.get("uri", "").rsplit(":", 1)[-1]
        url = context.get("external_urls", {}).get("spotify", "")
        playlist = await self._get(f"/playlists/{playlist_id}", access_token, params={"fields": "name"})
        name = (playlist or {}).get("name", "")
        return f"{name} {url}".strip() or None

    async def get_recently_played(self, access_token: str) -> str:
        data = await self._get("/me/player/recently-played", access_token, params={"limit": 1})
        items = (data or {}).get("items") or []
        if not items:
            raise ExternalAPIError("no recently played tracks")
        return _format_track(items[0].get("track", {}))
