"""Data tools for the conversational assistant."""

from rudra.tools.failures import is_tool_failed, is_tool_result_failed
from rudra.tools.registry import ToolsRegistry

__all__ = ["ToolsRegistry", "is_tool_failed", "is_tool_result_failed"]
