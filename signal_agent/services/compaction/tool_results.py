# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Tool result compression.

Shrinks tool result payloads attached to assistant messages before they
are sent back to the model. Each known tool maps to exactly one rule:

  ListToolRule    : a list of profiles / members / signals under one key.
                    Capped at ``MAX_LIST_ITEMS`` (``trimmed`` +
                    ``original_count`` recorded); every kept item goes
                    through ``compress_profile``.
  DetailToolRule  : a single nested object (full profile fetch). Its
                    array fields are cut to ``MAX_DETAIL_ARRAY_ITEMS``.
  UnknownToolRule : anything else. Passed through while its JSON fits in
                    ``max_tool_payload_chars``, replaced with a
                    ``raw_output`` prefix envelope otherwise.

All rules are idempotent: compressing an already compressed payload
returns an equal payload, which is then reported as unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from numbers import Number
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from signal_agent.models import Message, MessageRole, ToolEvent, ToolEventType
from signal_agent.services.compaction.settings import MAX_DETAIL_ARRAY_ITEMS, MAX_LIST_ITEMS
from signal_agent.services.compaction.tokens import payload_chars, serialize_payload

logger = logging.getLogger(__name__)

PROFILE_ESSENTIAL_FIELDS: Tuple[str, ...] = (
    "user_id",
    "name",
    "screen_name",
    "headline",
    "trending_score",
    "followed_by_count",
    "stealth_status",
    "recent_bio_change",
    "profile_url",
)

TRENDING_THRESHOLD = 7
SIGNAL_COUNT_THRESHOLD = 5


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def build_signal_summary(profile: Mapping[str, Any]) -> str:
    """Short human-readable summary of a profile's signal flags.

    Args:
        profile (Mapping[str, Any]): Raw profile fields.

    Returns:
        str: Comma-separated flags such as ``"bio changed, stealth: in,
            trending"``, or ``""`` when no flag is set.
    """
    signals: List[str] = []
    if profile.get("recent_bio_change"):
        signals.append("bio changed")
    if profile.get("stealth_status"):
        signals.append(f"stealth: {profile['stealth_status']}")
    trending = profile.get("trending_score")
    if _is_number(trending) and trending > TRENDING_THRESHOLD:
        signals.append("trending")
    total = profile.get("total_signals")
    if _is_number(total) and total > SIGNAL_COUNT_THRESHOLD:
        signals.append(f"{total} signals")
    return ", ".join(signals)


def compress_profile(profile: Any) -> Dict[str, Any]:
    """Reduce a profile to its essential fields plus a signal summary.

    An existing ``signal_summary`` is kept as-is, so compressing a
    compressed profile is a no-op.

    Args:
        profile (Any): Profile object from a tool result.

    Returns:
        Dict[str, Any]: Allowlisted fields, or ``{}`` for non-object items.
    """
    if not isinstance(profile, Mapping):
        return {}

    compressed = {key: profile[key] for key in PROFILE_ESSENTIAL_FIELDS if key in profile}

    existing = profile.get("signal_summary")
    summary = existing if isinstance(existing, str) and existing else build_signal_summary(profile)
    if summary:
        compressed["signal_summary"] = summary
    return compressed


@dataclass(frozen=True)
class ListToolRule:
    """Cap and compress a list-valued field of a tool result.

    Attributes:
        list_key (str): Key of the list inside the result object.
        max_items (int): Items kept before the list is marked trimmed.
    """

    list_key: str
    max_items: int = MAX_LIST_ITEMS

    def apply(self, result: Any, max_payload_chars: int) -> Any:
        if not isinstance(result, Mapping):
            return result
        items = result.get(self.list_key)
        if not isinstance(items, list):
            return result

        out = dict(result)
        if len(items) > self.max_items:
            out[self.list_key] = [compress_profile(item) for item in items[: self.max_items]]
            out["trimmed"] = True
            out["original_count"] = len(items)
        else:
            out[self.list_key] = [compress_profile(item) for item in items]
        return out


@dataclass(frozen=True)
class DetailToolRule:
    """Cut array fields of a nested detail object.

    Attributes:
        object_key (str): Key of the nested object inside the result.
        max_array_items (int): Elements kept per array field.
    """

    object_key: str = "profile"
    max_array_items: int = MAX_DETAIL_ARRAY_ITEMS

    def apply(self, result: Any, max_payload_chars: int) -> Any:
        if not isinstance(result, Mapping):
            return result
        detail = result.get(self.object_key)
        if not isinstance(detail, Mapping):
            return result

        limited = {
            key: value[: self.max_array_items] if isinstance(value, list) else value
            for key, value in detail.items()
        }
        out = dict(result)
        out[self.object_key] = limited
        return out


@dataclass(frozen=True)
class UnknownToolRule:
    """Size cap for tools without a dedicated rule."""

    def apply(self, result: Any, max_payload_chars: int) -> Any:
        if not isinstance(result, (Mapping, list)):
            return result
        if isinstance(result, Mapping) and result.get("truncated") is True and "raw_output" in result:
            return result

        text = serialize_payload(result)
        if len(text) <= max_payload_chars:
            return result
        return {
            "raw_output": text[:max_payload_chars],
            "truncated": True,
            "original_length": len(text),
        }


ToolRule = Union[ListToolRule, DetailToolRule, UnknownToolRule]

TOOL_RULES: Dict[str, ToolRule] = {
    "find_people": ListToolRule("results"),
    "find_by_company": ListToolRule("results"),
    "find_by_investor": ListToolRule("results"),
    "analyze_network": ListToolRule("profiles"),
    "get_feed_signals": ListToolRule("signals"),
    "get_aggregated_feed_signals": ListToolRule("signals"),
    "get_group_members": ListToolRule("members"),
    "get_person_details": DetailToolRule("profile"),
}

UNKNOWN_TOOL_RULE = UnknownToolRule()


def rule_for(tool_name: Optional[str]) -> ToolRule:
    """Rule registered for *tool_name*, or the unknown-tool fallback."""
    return TOOL_RULES.get(tool_name or "", UNKNOWN_TOOL_RULE)


class ToolResultCompressor:
    """Applies per-tool shrink rules to tool results.

    Args:
        max_tool_payload_chars (int): Size cap used by the unknown-tool rule.
    """

    def __init__(self, max_tool_payload_chars: int) -> None:
        self.max_tool_payload_chars = max_tool_payload_chars

    def compress(self, tool_name: Optional[str], result: Any) -> Tuple[Any, bool]:
        """Compress a single tool result.

        Args:
            tool_name (Optional[str]): Name of the tool that produced it.
            result (Any): The tool output.

        Returns:
            Tuple[Any, bool]: The (possibly new) result and whether it
                differs from the input. Unchanged results are returned as
                the original object.
        """
        if not result:
            return result, False

        compressed = rule_for(tool_name).apply(result, self.max_tool_payload_chars)
        if compressed is result or compressed == result:
            return result, False
        return compressed, True

    def compress_event(self, event: ToolEvent) -> Tuple[ToolEvent, bool]:
        """Compress the payload of a result event; other events pass through."""
        if event.type != ToolEventType.RESULT:
            return event, False

        result, changed = self.compress(event.tool_name, event.result)
        if not changed:
            return event, False

        logger.debug(
            "Compressed %s result: %d -> %d chars",
            event.tool_name,
            payload_chars(event.result),
            payload_chars(result),
        )
        return event.model_copy(update={"result": result, "trimmed": True}), True

    def trim_messages(self, messages: List[Message]) -> Tuple[List[Message], int]:
        """Compress tool results on assistant messages (does not mutate inputs).

        Args:
            messages (List[Message]): Messages to process.

        Returns:
            Tuple[List[Message], int]: The new message list and the number
                of tool results that were shrunk.
        """
        trim_count = 0
        out: List[Message] = []

        for msg in messages:
            if msg.role != MessageRole.ASSISTANT or not msg.tool_events:
                out.append(msg)
                continue

            events: List[ToolEvent] = []
            for event in msg.tool_events:
                new_event, changed = self.compress_event(event)
                if changed:
                    trim_count += 1
                events.append(new_event)
            out.append(msg.model_copy(update={"tool_events": events}))

        return out, trim_count
