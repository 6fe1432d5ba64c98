# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Shared test fixtures for signal-agent test suite."""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from signal_agent.models import Message, MessageRole, ToolEvent, ToolEventType
from signal_agent.services.compaction.settings import ContextConfig


# ---------------------------------------------------------------------------
# Message factories
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_message():
    """Factory fixture for creating Message instances."""

    def _factory(
        role: MessageRole = MessageRole.USER,
        content: str = "hello",
        tool_events: Optional[List[ToolEvent]] = None,
    ) -> Message:
        return Message(role=role, content=content, tool_events=tool_events)

    return _factory


@pytest.fixture
def tool_result_event():
    """Factory fixture for creating tool result events."""

    def _factory(tool_name: str, result: Any, correlation_id: str = "call_1") -> ToolEvent:
        return ToolEvent(
            type=ToolEventType.RESULT,
            tool_name=tool_name,
            result=result,
            correlation_id=correlation_id,
        )

    return _factory


@pytest.fixture
def conversation(sample_message):
    """Factory fixture for a history of N user/assistant turns behind a system prompt."""

    def _factory(turns: int, system: bool = True) -> List[Message]:
        messages: List[Message] = []
        if system:
            messages.append(sample_message(MessageRole.SYSTEM, "You are a signal assistant."))
        for i in range(1, turns + 1):
            messages.append(sample_message(MessageRole.USER, f"question {i}"))
            messages.append(sample_message(MessageRole.ASSISTANT, f"answer {i}"))
        return messages

    return _factory


@pytest.fixture
def context_config():
    """Factory fixture for ContextConfig with test-friendly defaults."""

    def _factory(**overrides: Any) -> ContextConfig:
        values: Dict[str, Any] = {
            "max_turns": 2,
            "summarize_after": 3,
            "tool_trim_enabled": True,
            "max_tool_payload_chars": 200,
            "metrics_enabled": False,
        }
        values.update(overrides)
        return ContextConfig(**values)

    return _factory


# ---------------------------------------------------------------------------
# Collaborator mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_summarizer():
    """Fixture providing a summarizer that returns a fixed summary."""
    summarizer = MagicMock()
    summarizer.summarize = AsyncMock(return_value="Earlier the user asked about questions 1-2.")
    return summarizer


@pytest.fixture
def mock_provider():
    """Fixture providing a mocked TriggerQueryProvider."""
    return AsyncMock()


@pytest.fixture
def mock_profile_lookup():
    """Fixture providing a mocked ProfileLookup with no profiles."""
    lookup = AsyncMock()
    lookup.by_ids = AsyncMock(return_value=[])
    lookup.by_id = AsyncMock(return_value=None)
    return lookup


@pytest.fixture
def mock_liked_lookup():
    """Fixture providing a mocked LikedSetLookup with empty sets."""
    lookup = AsyncMock()
    lookup.liked = AsyncMock(return_value=set())
    lookup.disliked = AsyncMock(return_value=set())
    return lookup
