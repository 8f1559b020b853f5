"""Tools registry for the assistant's data tools."""

from typing import Any

import httpx
from langchain_core.tools import BaseTool
from pydantic import ValidationError

from rudra.config import Settings
from rudra.models.llm import LLMToolDefinition
from rudra.tools.f1 import create_f1_tool
from rudra.tools.stock import create_stock_tool
from rudra.tools.weather import create_weather_tool
from rudra.utils.logging import get_logger

logger = get_logger(__name__)


class ToolsRegistry:
    """Registry of tools offered to the completion engine."""

    def __init__(self, tools: list[BaseTool] | None = None):
        """Initialize the registry with an optional initial set of tools."""
        self._tools: dict[str, BaseTool] = {}
        for tool in tools or []:
            self.register_tool(tool)

    @classmethod
    def default(cls, client: httpx.AsyncClient, settings: Settings) -> "ToolsRegistry":
        """Build the registry with the weather, stock and F1 tools."""
        return cls(
            [
                create_weather_tool(client, settings.openweather_api_key),
                create_stock_tool(client, settings.alphavantage_api_key),
                create_f1_tool(client, settings.f1_api_url),
            ]
        )

    def register_tool(self, tool: BaseTool) -> None:
        """Register a new tool in the registry."""
        self._tools[tool.name] = tool

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def get_definitions(self) -> list[LLMToolDefinition]:
        """Tool names, descriptions and JSON input schemas for the model."""
        definitions = []
        for tool in self._tools.values():
            schema = tool.get_input_schema().model_json_schema()
            schema.pop("title", None)
            schema.pop("description", None)
            schema.setdefault("properties", {})
            definitions.append(LLMToolDefinition(name=tool.name, description=tool.description, input_schema=schema))
        return definitions

    async def execute(self, name: str, args: dict[str, Any]) -> dict[str, Any]:
        """Run a tool and return its result payload.

        Unknown tools and invalid arguments produce an ``error`` payload rather than
        an exception, so the model can see what went wrong.
        """
        tool = self._tools.get(name)
        if tool is None:
            logger.error(f"Unknown tool requested: {name}")
            return {"error": f"Unknown tool {name}"}

        try:
            result = await tool.ainvoke(args)
        except ValidationError as e:
            logger.warning(f"Invalid arguments for {name}: {e}")
            return {"error": f"Invalid arguments: {e.errors(include_url=False)}"}

        if isinstance(result, dict):
            return result
        return {"value": result}
