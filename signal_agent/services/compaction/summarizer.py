# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
LLM-based summarization of aged-out conversation turns.

The context session renders the older messages into a flat transcript
and hands it to a ``Summarizer``. A summarizer never raises: failures and
empty output come back as ``None`` so the session can skip the summary
for that pass.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, runtime_checkable

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from signal_agent.config import settings
from signal_agent.models import Message, MessageRole
from signal_agent.services.compaction.tokens import content_text

logger = logging.getLogger(__name__)


@runtime_checkable
class Summarizer(Protocol):
    """Produces a summary of a transcript."""

    async def summarize(
        self,
        system_instruction: str,
        transcript: str,
        max_output_tokens: int,
    ) -> Optional[str]:
        """Summarize *transcript* following *system_instruction*.

        Returns:
            Optional[str]: Summary text, or ``None`` on failure.
        """
        ...


def render_transcript(messages: List[Message]) -> str:
    """Render messages as a role-prefixed transcript.

    Format::

        USER: ...

        ASSISTANT: ...

    Structured content is JSON-encoded. Unrecognised roles are rendered
    with their raw role string.

    Args:
        messages (List[Message]): Messages to render.

    Returns:
        str: Double-newline-joined ``ROLE: content`` entries.
    """
    parts: List[str] = []
    for msg in messages:
        role = msg.role.value if isinstance(msg.role, MessageRole) else str(msg.role)
        parts.append(f"{role.upper()}: {content_text(msg)}")
    return "\n\n".join(parts)


class ChatModelSummarizer:
    """Summarizer backed by a LangChain chat model.

    Args:
        llm (BaseChatModel): Chat model used for the single summary call.
    """

    def __init__(self, llm: BaseChatModel) -> None:
        self.llm = llm

    async def summarize(
        self,
        system_instruction: str,
        transcript: str,
        max_output_tokens: int,
    ) -> Optional[str]:
        """Run one summarization call.

        Args:
            system_instruction (str): System prompt for the summarizer.
            transcript (str): Rendered conversation to summarize.
            max_output_tokens (int): Output token cap, bound to the call as
                ``max_tokens``.

        Returns:
            Optional[str]: Stripped summary text, or ``None`` when the call
                fails or returns nothing.
        """
        if not transcript.strip():
            return None

        try:
            response = await self.llm.bind(max_tokens=max_output_tokens).ainvoke(
                [
                    SystemMessage(content=system_instruction),
                    HumanMessage(content=transcript),
                ]
            )
        except Exception as e:
            logger.warning("Summarization failed: %s", e)
            return None

        text = response.content if isinstance(response.content, str) else str(response.content)
        text = text.strip()
        if not text:
            logger.warning("Summarization returned empty output")
            return None
        return text


def create_summarizer(model: str, temperature: float) -> ChatModelSummarizer:
    """Create the default OpenAI-backed summarizer.

    Args:
        model (str): Model identifier (``CONTEXT_SUMMARY_MODEL``).
        temperature (float): Sampling temperature.

    Returns:
        ChatModelSummarizer: Summarizer wrapping a ``ChatOpenAI`` model.
    """
    llm = ChatOpenAI(
        api_key=SecretStr(settings.OPENAI_API_KEY),
        model=model,
        temperature=temperature,
    )
    return ChatModelSummarizer(llm)
