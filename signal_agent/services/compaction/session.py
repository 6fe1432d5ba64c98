# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Per-conversation context session.

Turns the raw message history of one conversation into the bounded list
sent to the model:

  1. Turn windowing  : keep the last ``max_turns`` user turns verbatim,
                       system messages pinned first.
  2. Tool trimming   : shrink tool results in the kept window
                       (tool_results.py).
  3. Summary         : replace the aged-out turns with a generated
                       summary exchange once the conversation is long
                       enough (summarizer.py).

The result is cached until new messages are added. A session is owned by
the caller handling one conversation; at most one
``get_optimized_messages()`` may be in flight per session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Union

from pydantic import ValidationError

from signal_agent.models import ContextMetrics, Message, MessageRole
from signal_agent.services.compaction.settings import ContextConfig
from signal_agent.services.compaction.summarizer import Summarizer, render_transcript
from signal_agent.services.compaction.tool_results import ToolResultCompressor
from signal_agent.services.prompts.base import CONTEXT_SUMMARY_PROMPT, SUMMARY_REQUEST

logger = logging.getLogger(__name__)


class ContextMetricsSink(Protocol):
    """Destination for context metrics snapshots."""

    async def record(self, metrics: ContextMetrics) -> None: ...


class LoggingMetricsSink:
    """Metrics sink that writes each snapshot to the log."""

    async def record(self, metrics: ContextMetrics) -> None:
        logger.info(
            "Context metrics conversation=%s raw=%d optimized=%d turns=%d "
            "tool_trims=%d summary=%s input_tokens=%s output_tokens=%s",
            metrics.conversation_id,
            metrics.raw_message_count,
            metrics.optimized_message_count,
            metrics.turn_count,
            metrics.tool_trim_count,
            metrics.summary_added,
            metrics.input_tokens,
            metrics.output_tokens,
        )


@dataclass
class TurnSplit:
    """Messages partitioned by the turn window.

    Attributes:
        recent (List[Message]): Pinned system messages followed by the
            messages of the last ``max_turns`` user turns.
        older (List[Message]): Non-system messages before the window.
    """

    recent: List[Message] = field(default_factory=list)
    older: List[Message] = field(default_factory=list)


def count_user_turns(messages: List[Message]) -> int:
    """Number of user-role messages."""
    return sum(1 for m in messages if m.role == MessageRole.USER)


def split_turns(messages: List[Message], max_turns: int) -> TurnSplit:
    """Split messages into the recent window and the aged-out remainder.

    When the history has at most ``max_turns`` user messages everything is
    recent and order is untouched. Otherwise the window starts at the
    ``max_turns``-th user message from the end; system messages from
    anywhere in the history are moved to the front of the recent bucket.

    Args:
        messages (List[Message]): Raw history in conversation order.
        max_turns (int): User turns to keep. ``0`` keeps none.

    Returns:
        TurnSplit: The recent and older buckets.
    """
    user_indices = [i for i, m in enumerate(messages) if m.role == MessageRole.USER]

    if len(user_indices) <= max_turns:
        return TurnSplit(recent=list(messages), older=[])

    start = user_indices[len(user_indices) - max_turns] if max_turns > 0 else len(messages)

    system = [m for m in messages if m.role == MessageRole.SYSTEM]
    older = [m for m in messages[:start] if m.role != MessageRole.SYSTEM]
    tail = [m for m in messages[start:] if m.role != MessageRole.SYSTEM]
    return TurnSplit(recent=system + tail, older=older)


MessageInput = Union[Message, Mapping[str, Any]]


class ContextCompactor:
    """Context optimization state (the "context session") for one conversation.

    Args:
        conversation_id (str): Conversation identifier (metrics only).
        user_id (int): Conversation owner (metrics only).
        config (Optional[ContextConfig]): Context configuration. Defaults to
            :meth:`ContextConfig.from_settings`.
        summarizer (Optional[Summarizer]): Summary backend. When ``None``
            aged-out turns are dropped without a summary.
        metrics_sink (Optional[ContextMetricsSink]): Where snapshots go when
            ``config.metrics_enabled``. Defaults to :class:`LoggingMetricsSink`.
    """

    def __init__(
        self,
        conversation_id: str,
        user_id: int,
        config: Optional[ContextConfig] = None,
        summarizer: Optional[Summarizer] = None,
        metrics_sink: Optional[ContextMetricsSink] = None,
    ) -> None:
        self.conversation_id = conversation_id
        self.user_id = user_id
        self.config = (config or ContextConfig.from_settings()).validate()
        self.summarizer = summarizer
        self.metrics_sink = metrics_sink or LoggingMetricsSink()
        self.compressor = ToolResultCompressor(self.config.max_tool_payload_chars)

        self._raw: List[Message] = []
        self._optimized: List[Message] = []
        self._dirty = True
        self.last_summary_turn = 0
        self._summary_added = False
        self._tool_trim_count = 0

    # ------------------------------------------------------------------
    # Input / cache state
    # ------------------------------------------------------------------

    @property
    def raw_messages(self) -> List[Message]:
        return list(self._raw)

    @property
    def is_dirty(self) -> bool:
        """Whether the next read recomputes the optimized list."""
        return self._dirty

    def add_messages(self, messages: Iterable[MessageInput]) -> None:
        """Append messages to the raw history and invalidate the cache.

        Args:
            messages (Iterable[MessageInput]): ``Message`` instances or
                dicts with ``role`` / ``content`` / ``tool_events``. Dicts
                that do not validate are logged and skipped.
        """
        for msg in messages:
            if isinstance(msg, Message):
                self._raw.append(msg)
                continue
            try:
                self._raw.append(Message.model_validate(msg))
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid message in %s: %s", self.conversation_id, e.errors()[:1]
                )
        self.invalidate()

    def invalidate(self) -> None:
        """Mark the cached optimized list stale."""
        self._dirty = True

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def get_optimized_messages(self) -> List[Message]:
        """Optimized messages for the model, recomputed only when stale.

        Returns:
            List[Message]: Bounded message list in send order.
        """
        if not self._dirty:
            return self._optimized
        return await self.compute()

    async def compute(self) -> List[Message]:
        """Recompute the optimized list unconditionally and cache it.

        Returns:
            List[Message]: The freshly computed message list.
        """
        self._summary_added = False
        self._tool_trim_count = 0

        if not self._raw:
            self._optimized = []
            self._dirty = False
            return self._optimized

        split = split_turns(self._raw, self.config.max_turns)

        recent = split.recent
        if self.config.tool_trim_enabled:
            recent, self._tool_trim_count = self.compressor.trim_messages(recent)

        self._optimized = await self._inject_summary_if_needed(recent, split.older)
        self._dirty = False

        if split.older:
            logger.debug(
                "Context window: %d raw -> %d optimized (%d aged out, summary=%s)",
                len(self._raw),
                len(self._optimized),
                len(split.older),
                self._summary_added,
            )

        if self.config.metrics_enabled:
            await self._record(self.get_metrics())
        return self._optimized

    def _should_summarize(self, older: List[Message], total_turns: int) -> bool:
        if not older or not self.config.summarization_enabled:
            return False
        if total_turns <= self.config.summarize_after:
            return False
        return total_turns > self.last_summary_turn

    async def _inject_summary_if_needed(
        self,
        recent: List[Message],
        older: List[Message],
    ) -> List[Message]:
        total_turns = count_user_turns(self._raw)
        if not self._should_summarize(older, total_turns):
            return recent

        summary = await self._summarize(older)
        if not summary:
            return recent

        self._summary_added = True
        self.last_summary_turn = total_turns

        system = [m for m in recent if m.role == MessageRole.SYSTEM]
        rest = [m for m in recent if m.role != MessageRole.SYSTEM]
        exchange = [
            Message(role=MessageRole.USER, content=SUMMARY_REQUEST),
            Message(role=MessageRole.ASSISTANT, content=summary),
        ]
        return system + exchange + rest

    async def _summarize(self, older: List[Message]) -> Optional[str]:
        if self.summarizer is None:
            return None
        try:
            return await self.summarizer.summarize(
                CONTEXT_SUMMARY_PROMPT,
                render_transcript(older),
                self.config.summary_max_tokens,
            )
        except Exception as e:
            logger.warning("Context summarization failed for %s: %s", self.conversation_id, e)
            return None

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def get_metrics(self) -> ContextMetrics:
        """Current metrics without recording them.

        Returns:
            ContextMetrics: Counters from the most recent pass.
        """
        return ContextMetrics(
            conversation_id=self.conversation_id,
            user_id=self.user_id,
            raw_message_count=len(self._raw),
            optimized_message_count=len(self._optimized),
            turn_count=count_user_turns(self._raw),
            tool_trim_count=self._tool_trim_count,
            summary_added=self._summary_added,
        )

    async def update_usage_metrics(self, input_tokens: int, output_tokens: int) -> None:
        """Record a snapshot carrying the model's reported token usage.

        Args:
            input_tokens (int): Prompt tokens of the model call.
            output_tokens (int): Completion tokens of the model call.
        """
        if not self.config.metrics_enabled:
            return
        metrics = self.get_metrics().model_copy(
            update={"input_tokens": input_tokens, "output_tokens": output_tokens}
        )
        await self._record(metrics)

    async def _record(self, metrics: ContextMetrics) -> None:
        try:
            await self.metrics_sink.record(metrics)
        except Exception as e:
            logger.warning("Failed to record context metrics for %s: %s", self.conversation_id, e)
