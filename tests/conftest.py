"""Shared fixtures: an in-memory store and a runtime around a scripted engine."""

import pytest

from rudra.config import Settings
from rudra.runtime import Runtime
from rudra.services.auth import StaticTokenAuthProvider
from rudra.services.store import InMemoryChatStore
from rudra.tools.registry import ToolsRegistry
from tests.fakes import TOKENS, text_turn


@pytest.fixture
def store():
    return InMemoryChatStore()


@pytest.fixture
def settings():
    return Settings(auth_tokens=TOKENS)


@pytest.fixture
def make_runtime(store, settings):
    """Build a runtime around a given engine."""

    def build(engine=None, wire_format=None) -> Runtime:
        runtime_settings = settings.model_copy(update={"wire_format": wire_format}) if wire_format else settings
        return Runtime.assemble(
            settings=runtime_settings,
            store=store,
            auth=StaticTokenAuthProvider(TOKENS),
            registry=ToolsRegistry(),
            engine=engine or text_turn("Hi", " there"),
        )

    return build
