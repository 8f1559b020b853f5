"""Next Formula 1 race tool backed by an Ergast-compatible API."""

from typing import Any

import httpx
from langchain_core.tools import tool

from rudra.models.tools import RACE_API_ERROR, RACE_TOOL, UNKNOWN_RACE, RaceResult
from rudra.tools.base import FETCH_ERRORS, EmptyInput, fetch_json
from rudra.utils.logging import get_logger

logger = get_logger(__name__)


def parse_next_race(data: dict[str, Any]) -> RaceResult:
    """Convert an Ergast ``current/next`` response into a race result."""
    races = data["MRData"]["RaceTable"]["Races"]
    if not races:
        return RaceResult.failed(UNKNOWN_RACE, "No upcoming race found")

    race = races[0]
    circuit = race["Circuit"]
    return RaceResult(
        race_name=race["raceName"],
        circuit=circuit["circuitName"],
        location=circuit["Location"]["locality"],
        country=circuit["Location"]["country"],
        date=race["date"],
        time=race.get("time") or "TBA",
        round=str(race["round"]),
    )


def create_f1_tool(client: httpx.AsyncClient, api_url: str):
    @tool(RACE_TOOL, args_schema=EmptyInput)
    async def get_f1_race() -> dict[str, Any]:
        """Get information about the next F1 race."""
        try:
            data = await fetch_json(client, api_url)
            result = parse_next_race(data)
        except FETCH_ERRORS as e:
            logger.warning(f"F1 schedule lookup failed: {e}")
            result = RaceResult.failed(RACE_API_ERROR, "Failed to fetch F1 data")

        return result.as_result()

    return get_f1_race
