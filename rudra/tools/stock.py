"""Stock quote tool backed by Alpha Vantage."""

from typing import Any

import httpx
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from rudra.models.tools import STOCK_TOOL, StockResult
from rudra.tools.base import FETCH_ERRORS, fetch_json
from rudra.utils.logging import get_logger

logger = get_logger(__name__)

ALPHAVANTAGE_URL = "https://www.alphavantage.co/query"


class StockInput(BaseModel):
    """Input schema for the stock price tool."""

    symbol: str = Field(
        ...,
        min_length=1,
        max_length=12,
        description="Stock symbol like AAPL or GOOGL",
        examples=["AAPL", "GOOGL"],
    )


def parse_quote(symbol: str, data: dict[str, Any]) -> StockResult:
    """Convert an Alpha Vantage GLOBAL_QUOTE response into a stock result."""
    quote = data.get("Global Quote")
    if not quote or not quote.get("05. price"):
        return StockResult.not_found(symbol, "Stock not found")

    return StockResult(
        symbol=quote["01. symbol"],
        price=f"{float(quote['05. price']):.2f}",
        change=f"{float(quote.get('09. change') or 0):.2f}",
        change_percent=quote.get("10. change percent"),
    )


def create_stock_tool(client: httpx.AsyncClient, api_key: str | None):
    @tool(STOCK_TOOL, args_schema=StockInput)
    async def get_stock_price(symbol: str) -> dict[str, Any]:
        """Get current stock price for a symbol."""
        params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": api_key or ""}
        try:
            data = await fetch_json(client, ALPHAVANTAGE_URL, params)
            result = parse_quote(symbol, data)
        except FETCH_ERRORS as e:
            logger.warning(f"Stock lookup failed for {symbol!r}: {e}")
            result = StockResult.not_found(symbol, "Failed to fetch stock")

        return result.as_result()

    return get_stock_price
