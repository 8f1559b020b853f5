"""Current weather tool backed by OpenWeatherMap."""

from typing import Any

import httpx
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from rudra.models.tools import WEATHER_TOOL, WeatherResult
from rudra.tools.base import FETCH_ERRORS, fetch_json
from rudra.utils.logging import get_logger

logger = get_logger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"


class WeatherInput(BaseModel):
    """Input schema for the weather tool."""

    location: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="City name like London or Mumbai",
        examples=["London", "Mumbai"],
    )


def parse_weather(location: str, data: dict[str, Any]) -> WeatherResult:
    """Convert an OpenWeatherMap response into a weather result."""
    if str(data.get("cod")) != "200":
        return WeatherResult.unknown(location, "Location not found")

    return WeatherResult(
        location=data["name"],
        temperature=round(data["main"]["temp"]),
        condition=data["weather"][0]["main"],
        humidity=data["main"]["humidity"],
        wind=round(data["wind"]["speed"] * 3.6),  # m/s to km/h
    )


def create_weather_tool(client: httpx.AsyncClient, api_key: str | None):
    @tool(WEATHER_TOOL, args_schema=WeatherInput)
    async def get_weather(location: str) -> dict[str, Any]:
        """Get current weather for a location."""
        params = {"q": location, "appid": api_key or "", "units": "metric"}
        try:
            data = await fetch_json(client, OPENWEATHER_URL, params)
            result = parse_weather(location, data)
        except FETCH_ERRORS as e:
            logger.warning(f"Weather lookup failed for {location!r}: {e}")
            result = WeatherResult.unknown(location, "Failed to fetch weather")

        return result.as_result()

    return get_weather
