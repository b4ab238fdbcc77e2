"""Pytest configuration and shared fixtures."""
import os

import pytest

from thinkchat.chat import ConversationController
from thinkchat.llm import ModelGateway
from thinkchat.sessions import InMemorySessionStorage, SessionStore

from .fakes import FakeImageProvider, FakeTextProvider


@pytest.fixture
def api_keys():
    """Return API keys from environment."""
    return {
        "gemini": os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
    }


@pytest.fixture
def text_provider():
    return FakeTextProvider()


@pytest.fixture
def image_provider():
    return FakeImageProvider()


@pytest.fixture
def gateway(text_provider, image_provider):
    return ModelGateway(text_provider, image_provider)


@pytest.fixture
def storage():
    return InMemorySessionStorage()


@pytest.fixture
async def store(storage):
    """A loaded store over in-memory storage."""
    store = SessionStore(storage)
    await store.load()
    yield store
    await store.close()


@pytest.fixture
def controller(store, gateway):
    controller = ConversationController(store, gateway)
    controller.activate()
    return controller
