"""Translation via the public Google Translate endpoint."""

import asyncio

import aiohttp

from actionbot.config import CONFIG
from actionbot.domain.models import Translation
from actionbot.errors import ExternalAPIError

API_URL = "https://translate.googleapis.com/translate_a/single"


class TranslationClient:
    """TranslationPort implementation; source language is auto-detected."""

    def __init__(self, target: str = "en", base_url: str = API_URL):
        self.target = target
        self._base_url = base_url

    async def translate(self, text: str) -> Translation:
        params = {"client": "gtx", "sl": "auto", "tl": self.target, "dt": "t", "q": text}
        timeout = aiohttp.ClientTimeout(total=CONFIG["http_timeout"])
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self._base_url, params=params) as resp:
                    if resp.status != 200:
                        raise ExternalAPIError(await resp.text(), status=resp.status)
                    data = await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ExternalAPIError("request timed out") from e
        except aiohttp.ClientError as e:
            raise ExternalAPIError(str(e)) from e
        except ValueError as e:
            raise ExternalAPIError(f"malformed response: {e}") from e

        return self._parse(data)

    def _parse(self, data) -> Translation:
        # [[["translated", "original", ...], ...], None, "src", ...]
        try:
            segments = data[0] or []
            translated = "".join(seg[0] for seg in segments if seg and seg[0])
            src = data[2] or "auto"
        except (IndexError, TypeError) as e:
            raise ExternalAPIError(f"unexpected translation payload: {e}") from e
        return Translation(src=src, dest=self.target, text=translated)
