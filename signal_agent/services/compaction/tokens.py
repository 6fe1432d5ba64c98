# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Token and character estimation utilities.

Uses tiktoken when its encoding can be loaded, falls back to a chars/4
heuristic otherwise (the BPE files are fetched on first use, which fails
in sandboxed deployments).

Structured content and tool events are measured by their JSON
serialization, which is also what the generic tool-result cap compares
against ``max_tool_payload_chars``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List

import tiktoken

from signal_agent.models import Message

CHARS_PER_TOKEN_FALLBACK = 4
UNSERIALIZABLE_FALLBACK_CHARS = 128

logger = logging.getLogger(__name__)

try:
    _encoding = tiktoken.get_encoding("cl100k_base")
except Exception as e:
    logger.info(
        "tiktoken encoding unavailable (%s), using chars/%d heuristic",
        e,
        CHARS_PER_TOKEN_FALLBACK,
    )
    _encoding = None


def estimate_tokens(text: str) -> int:
    """Estimate the token count of *text*.

    Args:
        text (str): Text to tokenize.

    Returns:
        int: Token count from tiktoken, or ``len(text) // 4`` (at least 1
            for non-empty text) when the encoding is unavailable.
    """
    if not text:
        return 0
    if _encoding is not None:
        return len(_encoding.encode(text, disallowed_special=()))
    return max(1, len(text) // CHARS_PER_TOKEN_FALLBACK)


def serialize_payload(value: Any) -> str:
    """JSON-serialize a tool payload the way it is sent to the model.

    Args:
        value (Any): Payload to serialize.

    Returns:
        str: Compact JSON text. Values that are not JSON serializable are
            rendered with ``str()``.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def payload_chars(value: Any) -> int:
    """Serialized length of a tool payload.

    Args:
        value (Any): Payload to measure.

    Returns:
        int: Length of :func:`serialize_payload` output.
    """
    try:
        return len(serialize_payload(value))
    except (TypeError, ValueError):
        return UNSERIALIZABLE_FALLBACK_CHARS


def content_text(msg: Message) -> str:
    """Message content as plain text (structured parts JSON-encoded)."""
    if isinstance(msg.content, str):
        return msg.content
    return serialize_payload(msg.content)


def estimate_message_chars(msg: Message) -> int:
    """Character count for a single message including tool events.

    Args:
        msg (Message): Message to measure.

    Returns:
        int: Characters in the content plus serialized tool events.
    """
    chars = len(content_text(msg))
    for event in msg.tool_events or []:
        chars += payload_chars(event.model_dump(exclude_none=True))
    return chars


def estimate_message_tokens(msg: Message) -> int:
    """Estimate token count for a single message.

    Args:
        msg (Message): Message to estimate tokens for.

    Returns:
        int: Estimated tokens of content plus serialized tool events.
    """
    tokens = estimate_tokens(content_text(msg))
    for event in msg.tool_events or []:
        tokens += estimate_tokens(
            serialize_payload(event.model_dump(exclude_none=True))
        )
    return tokens


def estimate_messages_tokens(messages: List[Message]) -> int:
    """Estimate total token count for a list of messages.

    Args:
        messages (List[Message]): Messages to estimate tokens for.

    Returns:
        int: Sum of estimated token counts across all messages.
    """
    return sum(estimate_message_tokens(m) for m in messages)


def estimate_context_chars(messages: List[Message]) -> int:
    """Total character count across all messages, including tool events."""
    return sum(estimate_message_chars(m) for m in messages)
