"""Tool failure predicate.

This is the only place that decides whether a tool result is a failure. The render
policy and the persistence bridge both call it, so what the user sees live and what
gets stored can never disagree.
"""

from collections.abc import Mapping
from typing import Any

from rudra.models.chat import ToolInvocation
from rudra.models.tools import (
    RACE_API_ERROR,
    RACE_TOOL,
    STOCK_TOOL,
    UNKNOWN_LOCATION,
    UNKNOWN_RACE,
    WEATHER_TOOL,
)

_ZERO_PRICES = {"0", "0.00", ""}
_FAILED_RACE_NAMES = {UNKNOWN_RACE.lower(), RACE_API_ERROR.lower()}


def _matches(value: Any, sentinel: str) -> bool:
    return isinstance(value, str) and value.strip().lower() == sentinel.lower()


def _weather_failed(result: Mapping[str, Any]) -> bool:
    return _matches(result.get("condition"), UNKNOWN_LOCATION)


def _stock_failed(result: Mapping[str, Any]) -> bool:
    price = result.get("price")
    if price is None:
        return True
    if isinstance(price, bool):
        return not price
    if isinstance(price, int | float):
        return price == 0
    if isinstance(price, str):
        return price.strip() in _ZERO_PRICES
    return False


def _race_failed(result: Mapping[str, Any]) -> bool:
    name = result.get("raceName")
    return isinstance(name, str) and name.strip().lower() in _FAILED_RACE_NAMES


_CHECKS = {
    WEATHER_TOOL: _weather_failed,
    STOCK_TOOL: _stock_failed,
    RACE_TOOL: _race_failed,
}


def is_tool_result_failed(tool_name: str, result: Mapping[str, Any] | None) -> bool:
    """Check a completed tool result against its tool's failure sentinel.

    A missing result is not a failure (the call is still pending). Tools without a
    registered sentinel never fail.
    """
    if result is None:
        return False

    check = _CHECKS.get(tool_name)
    if check is None:
        return False

    return check(result)


def is_tool_failed(invocation: ToolInvocation) -> bool:
    """Check whether a tool invocation completed with a failure sentinel."""
    if not invocation.completed:
        return False
    return is_tool_result_failed(invocation.tool_name, invocation.result)
