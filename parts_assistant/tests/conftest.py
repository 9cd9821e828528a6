"""
Shared fixtures for the parts assistant tests.

Nothing here touches the network: the completion client is either empty
(rule-based mode) or holds a FakeProvider with a scripted reply.
"""

import asyncio
from typing import Optional

import pytest

from parts_assistant.catalog import CatalogStore
from parts_assistant.config import DEFAULT_PARTS_PATH, Settings
from parts_assistant.llm import CompletionClient, CompletionProvider
from parts_assistant.models import ConversationMessage
from parts_assistant.service import create_context


class FakeProvider(CompletionProvider):
    """Completion provider that returns scripted replies (or raises) and records prompts."""

    def __init__(self, replies=None, error: Optional[Exception] = None, delay: float = 0.0):
        if isinstance(replies, str):
            replies = [replies]
        self._replies = list(replies or [])
        self._error = error
        self._delay = delay
        self.calls: list[tuple[str, Optional[str]]] = []

    @property
    def name(self) -> str:
        return "fake"

    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        self.calls.append((prompt, system_instruction))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        if len(self._replies) > 1:
            return self._replies.pop(0)
        return self._replies[0] if self._replies else ""


def user(content: str) -> ConversationMessage:
    return ConversationMessage(role="user", content=content)


def assistant(content: str) -> ConversationMessage:
    return ConversationMessage(role="assistant", content=content)


@pytest.fixture
def settings():
    """Settings with no provider keys and the bundled catalog."""
    return Settings(
        google_api_key="",
        anthropic_api_key="",
        openai_api_key="",
        gemini_model="gemini-test",
        anthropic_model="claude-test",
        openai_model="gpt-test",
        llm_timeout_seconds=1.0,
        cache_ttl_seconds=300.0,
        cache_max_entries=100,
        parts_data_path=DEFAULT_PARTS_PATH,
    )


@pytest.fixture
def catalog():
    return CatalogStore(DEFAULT_PARTS_PATH)


@pytest.fixture
def offline_client():
    """Client with no providers: every component takes its rule-based path."""
    return CompletionClient([])


@pytest.fixture
def context(settings, offline_client):
    return create_context(settings, client=offline_client)
