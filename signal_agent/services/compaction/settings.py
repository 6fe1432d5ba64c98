# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Context compaction settings.

Defaults come from the application ``Settings`` (``CONTEXT_*`` env vars);
a session may override any field at construction time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any

from signal_agent.config import Settings, settings as app_settings

logger = logging.getLogger(__name__)

# Length cap for list-shaped tool results (profiles, members, signals).
MAX_LIST_ITEMS = 50

# Length cap for array fields inside a single-profile detail result.
MAX_DETAIL_ARRAY_ITEMS = 3


class ContextConfigError(ValueError):
    """Raised by strict validation of a ``ContextConfig``."""


@dataclass(frozen=True)
class ContextConfig:
    """Per-session context management configuration.

    Attributes:
        max_turns (int): Number of most recent user turns kept verbatim.
        summarize_after (int): When the user turn count exceeds this value,
            the turns outside the window are summarized. ``0`` disables
            summarization.
        tool_trim_enabled (bool): Whether tool results are shrunk.
        max_tool_payload_chars (int): Serialized size cap for results of
            tools without a dedicated rule.
        summary_model (str): Model identifier used for summaries.
        summary_max_tokens (int): Output token cap for a summary.
        summary_temperature (float): Sampling temperature for summaries.
        metrics_enabled (bool): Whether each pass records a metrics snapshot.
    """

    max_turns: int = 8
    summarize_after: int = 12
    tool_trim_enabled: bool = True
    max_tool_payload_chars: int = 8_000
    summary_model: str = "gpt-4o-mini"
    summary_max_tokens: int = 400
    summary_temperature: float = 0.3
    metrics_enabled: bool = True

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "ContextConfig":
        """Build a config from application settings.

        Args:
            source (Settings | None): Settings to read. Defaults to the
                module-level application settings.

        Returns:
            ContextConfig: Config populated from ``CONTEXT_*`` values.
        """
        s = source or app_settings
        return cls(
            max_turns=s.CONTEXT_MAX_TURNS,
            summarize_after=s.CONTEXT_SUMMARIZE_AFTER,
            tool_trim_enabled=s.CONTEXT_TOOL_TRIM_ENABLED,
            max_tool_payload_chars=s.CONTEXT_MAX_TOOL_PAYLOAD_CHARS,
            summary_model=s.CONTEXT_SUMMARY_MODEL,
            summary_max_tokens=s.CONTEXT_SUMMARY_MAX_TOKENS,
            summary_temperature=s.CONTEXT_SUMMARY_TEMPERATURE,
            metrics_enabled=s.CONTEXT_METRICS_ENABLED,
        )

    @property
    def summarization_enabled(self) -> bool:
        """Whether summary injection can ever trigger with this config."""
        return self.summarize_after > 0

    def validate(self, strict: bool = False) -> "ContextConfig":
        """Check the config for combinations that make summarization inert.

        ``summarize_after < max_turns`` (with summarization enabled) is
        accepted by default and only logged; pass ``strict=True`` to reject it.

        Args:
            strict (bool): Raise instead of logging. Defaults to ``False``.

        Returns:
            ContextConfig: ``self``, for chaining.

        Raises:
            ContextConfigError: If a field is negative, or in strict mode
                when ``summarize_after`` is below ``max_turns``.
        """
        if self.max_turns < 0 or self.summarize_after < 0 or self.max_tool_payload_chars < 0:
            raise ContextConfigError("context config values must be non-negative")

        if self.summarization_enabled and self.summarize_after < self.max_turns:
            msg = (
                f"summarize_after={self.summarize_after} is below "
                f"max_turns={self.max_turns}"
            )
            if strict:
                raise ContextConfigError(msg)
            logger.info("Context config: %s", msg)
        return self


def create_context_config(base: ContextConfig | None = None, **overrides: Any) -> ContextConfig:
    """Create a context config with overrides applied to the defaults.

    Unknown keys are ignored with a warning.

    Args:
        base (ContextConfig | None): Config to start from. Defaults to
            :meth:`ContextConfig.from_settings`.
        **overrides (Any): Field values to replace.

    Returns:
        ContextConfig: The resulting config.
    """
    config = base or ContextConfig.from_settings()
    known = {f.name for f in fields(ContextConfig)}
    unknown = set(overrides) - known
    if unknown:
        logger.warning("Ignoring unknown context config keys: %s", sorted(unknown))
    applied = {k: v for k, v in overrides.items() if k in known and v is not None}
    return replace(config, **applied) if applied else config
