"""Result payloads returned by the data tools.

Tool failures are not exceptions. Each payload carries either its success fields or
a sentinel value in a designated field, so failed results travel through the same
streaming, rendering and storage paths as successful ones.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

WEATHER_TOOL = "getWeather"
STOCK_TOOL = "getStockPrice"
RACE_TOOL = "getF1Race"

UNKNOWN_LOCATION = "Unknown Location"
ZERO_PRICE = "0"
UNKNOWN_RACE = "Unknown Race"
RACE_API_ERROR = "API Error"


class ToolPayload(BaseModel):
    """Base for tool payloads, serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    error: str | None = None

    def as_result(self) -> dict[str, Any]:
        """Serialize for the model, the stream and the store."""
        return self.model_dump(by_alias=True, exclude_none=True)


class WeatherResult(ToolPayload):
    """Current weather for a location."""

    location: str
    condition: str
    temperature: int | None = None
    humidity: int | None = None
    wind: int | None = None

    @classmethod
    def unknown(cls, location: str, error: str) -> "WeatherResult":
        return cls(location=location, condition=UNKNOWN_LOCATION, error=error)


class StockResult(ToolPayload):
    """Latest quote for a ticker symbol."""

    symbol: str
    price: str
    change: str | None = None
    change_percent: str | None = Field(default=None, alias="changePercent")

    @classmethod
    def not_found(cls, symbol: str, error: str) -> "StockResult":
        return cls(symbol=symbol, price=ZERO_PRICE, error=error)


class RaceResult(ToolPayload):
    """The next Formula 1 race on the calendar."""

    race_name: str = Field(alias="raceName")
    circuit: str | None = None
    location: str | None = None
    country: str | None = None
    date: str | None = None
    time: str | None = None
    round: str | None = None

    @classmethod
    def failed(cls, race_name: str, error: str) -> "RaceResult":
        return cls(race_name=race_name, error=error)
