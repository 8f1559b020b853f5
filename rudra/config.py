"""Application settings loaded from the environment."""

import json
import os
from typing import Literal

from pydantic import BaseModel, Field, TypeAdapter

from rudra.models.chat import Identity

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. You can check weather, stock prices, and F1 race info "
    "using your tools. Be friendly and concise."
)

IN_MEMORY_DATABASE = ":memory:"

_tokens_adapter = TypeAdapter(dict[str, Identity])


class Settings(BaseModel):
    """Process-wide settings, built once at startup."""

    anthropic_api_key: str | None = None
    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 1024
    max_steps: int = Field(default=3, ge=1)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    wire_format: Literal["standard", "legacy"] = "standard"
    database_path: str = "~/.rudra/chats.db"
    auth_tokens: dict[str, Identity] = Field(default_factory=dict)

    openweather_api_key: str | None = None
    alphavantage_api_key: str | None = None
    f1_api_url: str = "https://api.jolpi.ca/ergast/f1/current/next.json"
    tool_timeout: float = 10.0

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        values: dict[str, object] = {
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY"),
            "openweather_api_key": os.getenv("OPENWEATHER_API_KEY"),
            "alphavantage_api_key": os.getenv("ALPHAVANTAGE_API_KEY"),
        }

        optional = {
            "model": "RUDRA_MODEL",
            "max_tokens": "RUDRA_MAX_TOKENS",
            "max_steps": "RUDRA_MAX_STEPS",
            "system_prompt": "RUDRA_SYSTEM_PROMPT",
            "wire_format": "RUDRA_WIRE_FORMAT",
            "database_path": "RUDRA_DATABASE_PATH",
            "f1_api_url": "RUDRA_F1_API_URL",
            "tool_timeout": "RUDRA_TOOL_TIMEOUT",
            "log_level": "LOG_LEVEL",
        }
        for field_name, env_name in optional.items():
            value = os.getenv(env_name)
            if value:
                values[field_name] = value

        raw_tokens = os.getenv("RUDRA_AUTH_TOKENS")
        if raw_tokens:
            values["auth_tokens"] = _tokens_adapter.validate_python(json.loads(raw_tokens))

        return cls.model_validate(values)

    @property
    def uses_in_memory_store(self) -> bool:
        return self.database_path == IN_MEMORY_DATABASE
