"""OpenWeatherMap client (current conditions, metric units)."""

import asyncio

import aiohttp

from actionbot.config import CONFIG
from actionbot.domain.models import Weather
from actionbot.errors import ExternalAPIError, InvalidLocation

API_URL = "https://api.openweathermap.org/data/2.5/weather"


class WeatherClient:
    """WeatherPort implementation backed by the OpenWeatherMap REST API."""

    def __init__(self, api_key: str, base_url: str = API_URL):
        self._api_key = api_key
        self._base_url = base_url

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def get_weather(self, location: str) -> Weather:
        if not self.is_configured:
            raise ExternalAPIError("OpenWeatherMap API key not configured")

        params = {"q": location, "appid": self._api_key, "units": "metric"}
        timeout = aiohttp.ClientTimeout(total=CONFIG["http_timeout"])
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self._base_url, params=params) as resp:
                    if resp.status == 404:
                        raise InvalidLocation(location, status=404)
                    if resp.status != 200:
                        raise ExternalAPIError(await resp.text(), status=resp.status)
                    data = await resp.json()
        except asyncio.TimeoutError as e:
            raise ExternalAPIError("request timed out") from e
        except aiohttp.ClientError as e:
            raise ExternalAPIError(str(e)) from e
        except ValueError as e:
            raise ExternalAPIError(f"malformed response: {e}") from e

        return self._parse(data)

    @staticmethod
    def _parse(data: dict) -> Weather:
        try:
            conditions = data.get("weather") or [{}]
            return Weather(
                name=data["name"],
                country=data.get("sys", {}).get("country") or "",
                temp=data["main"]["temp"],
                description=conditions[0].get("description", ""),
            )
        except (AttributeError, KeyError, TypeError) as e:
            raise ExternalAPIError(f"unexpected weather payload: {e}") from e
