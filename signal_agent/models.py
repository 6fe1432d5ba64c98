# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Shared models for the application."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class MessageRole(str, Enum):
    """Message role enumeration.

    Attributes:
        USER (str): User role. Each user message opens a new turn.
        ASSISTANT (str): Assistant role.
        SYSTEM (str): System role. Never aged out of the context window.
        TOOL (str): Tool result role.
    """

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolEventType(str, Enum):
    """Kind of tool event attached to an assistant message."""

    CALL = "tool_call"
    RESULT = "tool_result"


class ToolEvent(BaseModel):
    """A tool call or tool result recorded on an assistant message.

    Attributes:
        type (ToolEventType): Whether this is the call or its result.
        tool_name (str): Name of the tool.
        args (Optional[Dict[str, Any]]): Call arguments.
        result (Any): Tool output (result events only).
        correlation_id (Optional[str]): Identifier linking call and result.
        trimmed (bool): Set once the result payload has been shrunk.
    """

    type: ToolEventType
    tool_name: str
    args: Optional[Dict[str, Any]] = None
    result: Any = None
    correlation_id: Optional[str] = None
    trimmed: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        # Short spellings ("call" / "result") are accepted as well.
        if isinstance(value, str) and not value.startswith("tool_"):
            return f"tool_{value}"
        return value


class Message(BaseModel):
    """Message model.

    Roles outside ``MessageRole`` are kept as plain strings so that
    unrecognised messages pass through compaction untouched.

    Attributes:
        role (Union[MessageRole, str]): The role of the message sender.
        content (Union[str, List[Dict[str, Any]]]): Text or structured
            content parts.
        tool_events (Optional[List[ToolEvent]]): Tool calls and results
            emitted while producing this (assistant) message.
    """

    role: Union[MessageRole, str]
    content: Union[str, List[Dict[str, Any]]] = ""
    tool_events: Optional[List[ToolEvent]] = None

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, value: Any) -> Any:
        if isinstance(value, MessageRole):
            return value
        try:
            return MessageRole(value)
        except ValueError:
            return value


class ContextMetrics(BaseModel):
    """Snapshot of one context optimization pass.

    Attributes:
        conversation_id (str): Conversation the session belongs to.
        user_id (int): Owner of the conversation.
        timestamp (datetime): When the snapshot was taken (UTC).
        raw_message_count (int): Messages in the raw history.
        optimized_message_count (int): Messages sent downstream.
        turn_count (int): User turns in the raw history.
        tool_trim_count (int): Tool results shrunk in the last pass.
        summary_added (bool): Whether the last pass injected a summary.
        input_tokens (Optional[int]): Prompt tokens reported by the model.
        output_tokens (Optional[int]): Completion tokens reported by the model.
    """

    conversation_id: str
    user_id: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    raw_message_count: int = 0
    optimized_message_count: int = 0
    turn_count: int = 0
    tool_trim_count: int = 0
    summary_added: bool = False
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
