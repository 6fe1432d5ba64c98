# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Context compaction module.

Bounds the message history sent to the model for one conversation:

  Turn windowing  (session.py)
      Keep the last ``max_turns`` user turns verbatim, system messages
      pinned to the front.

  Tool result compression  (tool_results.py)
      Per-tool shrink rules for tool results in the kept window.

  Summary injection  (summarizer.py)
      Replace aged-out turns with a single summary exchange once the
      conversation passes ``summarize_after`` turns.

Usage:

    compactor = ContextCompactor(
        conversation_id,
        user_id,
        config=create_context_config(max_turns=6),
        summarizer=create_summarizer(model, temperature),
    )
    compactor.add_messages(history)
    messages = await compactor.get_optimized_messages()
"""

from signal_agent.services.compaction.session import (
    ContextCompactor,
    ContextMetricsSink,
    LoggingMetricsSink,
    TurnSplit,
    count_user_turns,
    split_turns,
)
from signal_agent.services.compaction.settings import (
    ContextConfig,
    ContextConfigError,
    create_context_config,
)
from signal_agent.services.compaction.summarizer import (
    ChatModelSummarizer,
    Summarizer,
    create_summarizer,
    render_transcript,
)
from signal_agent.services.compaction.tokens import (
    estimate_context_chars,
    estimate_message_chars,
    estimate_message_tokens,
    estimate_messages_tokens,
    estimate_tokens,
    payload_chars,
)
from signal_agent.services.compaction.tool_results import (
    DetailToolRule,
    ListToolRule,
    ToolResultCompressor,
    UnknownToolRule,
    compress_profile,
    rule_for,
)

__all__ = [
    "ContextCompactor",
    "ContextMetricsSink",
    "LoggingMetricsSink",
    "TurnSplit",
    "count_user_turns",
    "split_turns",
    "ContextConfig",
    "ContextConfigError",
    "create_context_config",
    "ChatModelSummarizer",
    "Summarizer",
    "create_summarizer",
    "render_transcript",
    "estimate_tokens",
    "estimate_message_tokens",
    "estimate_messages_tokens",
    "estimate_message_chars",
    "estimate_context_chars",
    "payload_chars",
    "ToolResultCompressor",
    "ListToolRule",
    "DetailToolRule",
    "UnknownToolRule",
    "compress_profile",
    "rule_for",
]
