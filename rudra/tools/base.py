"""Shared helpers for the data tools."""

from typing import Any

import httpx
from pydantic import BaseModel

FETCH_ERRORS = (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError)
"""Exceptions a tool converts into its failure sentinel."""


class EmptyInput(BaseModel):
    """Input schema for tools that take no parameters."""


async def fetch_json(client: httpx.AsyncClient, url: str, params: dict[str, Any] | None = None) -> Any:
    """GET a URL and decode its JSON body.

    Raises:
        httpx.HTTPError: On transport errors
        ValueError: If the body is not JSON
    """
    response = await client.get(url, params=params)
    return response.json()
