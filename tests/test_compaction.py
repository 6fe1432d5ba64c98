# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Tests for the compaction module: turn windowing, tool result compression and summary injection."""

import logging
from typing import List
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_openai import ChatOpenAI
from signal_agent.config import settings
from signal_agent.models import ContextMetrics, Message, MessageRole, ToolEvent, ToolEventType
from signal_agent.services.compaction.session import ContextCompactor, count_user_turns, split_turns
from signal_agent.services.compaction.summarizer import ChatModelSummarizer, create_summarizer, render_transcript
from signal_agent.services.compaction.tokens import (
    estimate_context_chars,
    estimate_message_chars,
    estimate_message_tokens,
    estimate_messages_tokens,
    estimate_tokens,
    payload_chars,
    serialize_payload,
)
from signal_agent.services.compaction.tool_results import (
    DetailToolRule,
    ListToolRule,
    ToolResultCompressor,
    UnknownToolRule,
    build_signal_summary,
    compress_profile,
    rule_for,
)
from signal_agent.services.prompts.base import CONTEXT_SUMMARY_PROMPT, SUMMARY_REQUEST

# ---------------------------------------------------------------------------
# Common helpers
# ---------------------------------------------------------------------------


def _msg(role, content: str = "x") -> Message:
    """Create a test Message with the given role and content."""
    return Message(role=role, content=content)


def _profiles(n: int) -> List[dict]:
    """Create N raw profile dicts carrying non-essential fields."""
    return [
        {
            "user_id": str(i),
            "name": f"Person {i}",
            "headline": "Founder",
            "bio": "long biography " * 20,
            "work_experience": ["Acme", "Globex"],
            "recent_bio_change": True,
        }
        for i in range(n)
    ]


def _contents(messages: List[Message]) -> List[str]:
    return [m.content for m in messages]


# ===========================================================================
# Tokens
# ===========================================================================


class TestTokens:
    """Tests for the token and character estimators."""

    def test_empty_text_is_zero_tokens(self):
        """Verify that empty text has no tokens."""
        assert estimate_tokens("") == 0

    def test_non_empty_text_has_tokens(self):
        """Verify that non-empty text has at least one token."""
        assert estimate_tokens("hello world") >= 1

    def test_serialize_payload_passes_strings_through(self):
        """Verify that string payloads are not JSON-encoded again."""
        assert serialize_payload("plain text") == "plain text"

    def test_payload_chars_uses_json_length(self):
        """Verify that payload size is the length of its JSON form."""
        assert payload_chars({"a": 1}) == len('{"a": 1}')

    def test_message_chars_include_tool_events(self, tool_result_event):
        """Verify that tool events count towards the message size."""
        plain = Message(role=MessageRole.ASSISTANT, content="done")
        with_tools = Message(
            role=MessageRole.ASSISTANT,
            content="done",
            tool_events=[tool_result_event("find_people", {"results": []})],
        )
        assert estimate_message_chars(with_tools) > estimate_message_chars(plain)
        assert estimate_context_chars([plain, with_tools]) == (
            estimate_message_chars(plain) + estimate_message_chars(with_tools)
        )

    def test_messages_tokens_is_sum(self, tool_result_event):
        """Verify that list token estimates add up per message."""
        messages = [
            _msg(MessageRole.USER, "who is hiring"),
            Message(
                role=MessageRole.ASSISTANT,
                content="found some",
                tool_events=[tool_result_event("find_people", {"results": _profiles(2)})],
            ),
        ]
        total = estimate_messages_tokens(messages)
        assert total == sum(estimate_message_tokens(m) for m in messages)
        assert total > estimate_tokens("who is hiring") + estimate_tokens("found some")
        assert estimate_messages_tokens([]) == 0


# ===========================================================================
# Tool result compression
# ===========================================================================


class TestSignalSummary:
    """Tests for build_signal_summary and compress_profile."""

    def test_all_flags(self):
        """Verify that every signal flag is rendered in order."""
        summary = build_signal_summary(
            {
                "recent_bio_change": "2024-01-10",
                "stealth_status": "in",
                "trending_score": 8,
                "total_signals": 6,
            }
        )
        assert summary == "bio changed, stealth: in, trending, 6 signals"

    def test_thresholds_are_exclusive(self):
        """Verify that values at the thresholds do not produce flags."""
        assert build_signal_summary({"trending_score": 7, "total_signals": 5}) == ""

    def test_compress_profile_keeps_allowlisted_fields(self):
        """Verify that only essential fields and the summary survive."""
        compressed = compress_profile(_profiles(1)[0])
        assert compressed == {
            "user_id": "0",
            "name": "Person 0",
            "headline": "Founder",
            "recent_bio_change": True,
            "signal_summary": "bio changed",
        }

    def test_compress_profile_is_idempotent(self):
        """Verify that compressing a compressed profile is a no-op."""
        once = compress_profile(_profiles(1)[0])
        assert compress_profile(once) == once

    def test_compress_profile_non_object(self):
        """Verify that non-object items become empty objects."""
        assert compress_profile("not a profile") == {}


class TestToolRules:
    """Tests for the per-tool rules."""

    def test_registry(self):
        """Verify that known tools map to their rule and others fall back."""
        assert rule_for("find_people") == ListToolRule("results")
        assert rule_for("get_group_members") == ListToolRule("members")
        assert rule_for("get_person_details") == DetailToolRule("profile")
        assert isinstance(rule_for("something_else"), UnknownToolRule)
        assert isinstance(rule_for(None), UnknownToolRule)

    def test_list_over_cap_is_truncated(self):
        """Verify that long lists are capped and annotated."""
        out = ListToolRule("results").apply({"results": _profiles(60), "total": 60}, 1000)
        assert len(out["results"]) == 50
        assert out["trimmed"] is True
        assert out["original_count"] == 60
        assert out["total"] == 60
        assert "bio" not in out["results"][0]

    def test_list_under_cap_is_compressed_not_marked(self):
        """Verify that short lists are compressed without a trimmed marker."""
        out = ListToolRule("results").apply({"results": _profiles(3)}, 1000)
        assert len(out["results"]) == 3
        assert "trimmed" not in out
        assert "work_experience" not in out["results"][0]

    def test_list_rule_ignores_unexpected_shapes(self):
        """Verify that results without the list key pass through."""
        result = {"error": "not found"}
        assert ListToolRule("results").apply(result, 1000) is result
        assert ListToolRule("results").apply("oops", 1000) == "oops"

    def test_detail_rule_cuts_arrays(self):
        """Verify that array fields of the detail object are cut to three."""
        result = {"profile": {"user_id": "1", "jobs": [1, 2, 3, 4, 5], "name": "A"}, "ok": True}
        out = DetailToolRule("profile").apply(result, 10)
        assert out == {"profile": {"user_id": "1", "jobs": [1, 2, 3], "name": "A"}, "ok": True}

    def test_unknown_small_passes(self):
        """Verify that small unknown results are untouched."""
        result = {"data": "short"}
        assert UnknownToolRule().apply(result, 100) is result

    def test_unknown_large_is_enveloped(self):
        """Verify that oversized unknown results become a raw_output prefix."""
        result = {"data": "x" * 500}
        out = UnknownToolRule().apply(result, 100)
        assert out["truncated"] is True
        assert len(out["raw_output"]) == 100
        assert out["original_length"] == len(serialize_payload(result))

    def test_unknown_scalar_passes(self):
        """Verify that non-object results are passed through."""
        assert UnknownToolRule().apply("x" * 500, 10) == "x" * 500


class TestToolResultCompressor:
    """Tests for ToolResultCompressor."""

    def test_compress_reports_change(self):
        """Verify that a shrink is reported as changed."""
        compressor = ToolResultCompressor(1000)
        result, changed = compressor.compress("find_people", {"results": _profiles(60)})
        assert changed is True
        assert result["original_count"] == 60

    def test_compress_unchanged_returns_original(self):
        """Verify that results already under every threshold are not counted."""
        compressor = ToolResultCompressor(1000)
        original = {"results": [{"user_id": "1", "name": "A"}]}
        result, changed = compressor.compress("find_people", original)
        assert changed is False
        assert result is original

    def test_empty_result(self):
        """Verify that empty results pass through unchanged."""
        assert ToolResultCompressor(10).compress("find_people", None) == (None, False)

    @pytest.mark.parametrize(
        "tool_name, result",
        [
            ("find_people", {"results": _profiles(80)}),
            ("get_feed_signals", {"signals": _profiles(5)}),
            ("get_person_details", {"profile": {"jobs": list(range(10))}}),
            ("custom_tool", {"blob": "y" * 1000}),
        ],
    )
    def test_retrim_is_idempotent(self, tool_name, result):
        """Verify that compressing twice equals compressing once."""
        compressor = ToolResultCompressor(200)
        once, changed_once = compressor.compress(tool_name, result)
        twice, changed_twice = compressor.compress(tool_name, once)
        assert changed_once is True
        assert changed_twice is False
        assert twice == once

    def test_compress_event_marks_trimmed(self, tool_result_event):
        """Verify that a shrunk result event is copied and flagged."""
        event = tool_result_event("find_people", {"results": _profiles(60)})
        new_event, changed = ToolResultCompressor(1000).compress_event(event)
        assert changed is True
        assert new_event.trimmed is True
        assert event.trimmed is False

    def test_compress_event_skips_calls(self):
        """Verify that call events are never compressed."""
        call = ToolEvent(type=ToolEventType.CALL, tool_name="find_people", args={"q": "x" * 10_000})
        assert ToolResultCompressor(10).compress_event(call) == (call, False)

    def test_trim_messages_only_touches_assistant_tool_events(self, tool_result_event):
        """Verify that only assistant tool results are compressed and counted."""
        call = ToolEvent(type=ToolEventType.CALL, tool_name="find_people", correlation_id="call_1")
        assistant = Message(
            role=MessageRole.ASSISTANT,
            content="Here are people.",
            tool_events=[call, tool_result_event("find_people", {"results": _profiles(60)})],
        )
        user = Message(role=MessageRole.USER, content="x" * 10_000)

        out, count = ToolResultCompressor(1000).trim_messages([user, assistant])

        assert count == 1
        assert out[0] is user
        assert out[1].tool_events[0] == call
        assert out[1].tool_events[1].trimmed is True
        assert len(out[1].tool_events[1].result["results"]) == 50
        assert len(assistant.tool_events[1].result["results"]) == 60


# ===========================================================================
# Turn windowing
# ===========================================================================


class TestSplitTurns:
    """Tests for split_turns and count_user_turns."""

    def test_below_threshold_keeps_everything(self, conversation):
        """Verify that histories within max_turns are returned in order."""
        messages = conversation(2)
        split = split_turns(messages, 2)
        assert split.recent == messages
        assert split.older == []

    def test_window_starts_at_user_message(self):
        """Verify the cutover and that system messages are pinned first."""
        sys1 = _msg(MessageRole.SYSTEM, "sys1")
        sys2 = _msg(MessageRole.SYSTEM, "sys2")
        messages = [
            sys1,
            _msg(MessageRole.USER, "u1"),
            _msg(MessageRole.ASSISTANT, "a1"),
            _msg(MessageRole.USER, "u2"),
            _msg(MessageRole.ASSISTANT, "a2"),
            _msg(MessageRole.TOOL, "t2"),
            sys2,
            _msg(MessageRole.USER, "u3"),
            _msg(MessageRole.ASSISTANT, "a3"),
        ]
        split = split_turns(messages, 2)
        assert _contents(split.recent) == ["sys1", "sys2", "u2", "a2", "t2", "u3", "a3"]
        assert _contents(split.older) == ["u1", "a1"]

    def test_interleaved_non_user_messages(self):
        """Verify that extra assistant/tool messages do not shift the window."""
        messages = [_msg(MessageRole.USER, "u1")]
        messages += [_msg(MessageRole.ASSISTANT, f"a1.{i}") for i in range(5)]
        messages += [_msg(MessageRole.USER, "u2"), _msg(MessageRole.TOOL, "t")]
        split = split_turns(messages, 1)
        assert _contents(split.recent) == ["u2", "t"]
        assert len(split.older) == 6

    def test_zero_max_turns_keeps_only_system(self, conversation):
        """Verify that max_turns=0 ages out every non-system message."""
        messages = conversation(2)
        split = split_turns(messages, 0)
        assert [m.role for m in split.recent] == [MessageRole.SYSTEM]
        assert len(split.older) == 4

    def test_count_user_turns(self, conversation):
        """Verify that only user messages count as turns."""
        assert count_user_turns(conversation(3)) == 3


# ===========================================================================
# ContextCompactor
# ===========================================================================


class TestContextCompactor:
    """Tests for the per-conversation compaction pipeline."""

    @pytest.mark.asyncio
    async def test_empty_history(self, context_config):
        """Verify that compaction of no messages returns an empty list."""
        compactor = ContextCompactor("conv", 1, config=context_config())
        assert await compactor.get_optimized_messages() == []

    @pytest.mark.asyncio
    async def test_no_op_below_threshold(self, context_config, conversation):
        """Verify that short histories are returned unchanged without a summary."""
        messages = conversation(2)
        compactor = ContextCompactor("conv", 1, config=context_config())
        compactor.add_messages(messages)

        assert await compactor.get_optimized_messages() == messages
        assert compactor.get_metrics().summary_added is False

    @pytest.mark.asyncio
    async def test_accepts_dicts_and_unknown_roles(self, context_config):
        """Verify that dict input is validated and unknown roles pass through."""
        compactor = ContextCompactor("conv", 1, config=context_config())
        compactor.add_messages(
            [
                {"role": "user", "content": "hi"},
                {"role": "critic", "content": "meh"},
            ]
        )
        out = await compactor.get_optimized_messages()
        assert out[0].role == MessageRole.USER
        assert out[1].role == "critic"

    @pytest.mark.asyncio
    async def test_accepts_short_tool_event_types(self, context_config):
        """Verify that "call" / "result" event types are accepted in dict input."""
        compactor = ContextCompactor("conv", 1, config=context_config())
        compactor.add_messages(
            [
                {"role": "user", "content": "find founders"},
                {
                    "role": "assistant",
                    "tool_events": [
                        {"type": "call", "tool_name": "find_people", "args": {"q": "founders"}},
                        {"type": "result", "tool_name": "find_people", "result": {"results": []}},
                    ],
                },
            ]
        )
        out = await compactor.get_optimized_messages()
        assert [e.type for e in out[1].tool_events] == [ToolEventType.CALL, ToolEventType.RESULT]

    @pytest.mark.asyncio
    async def test_invalid_dict_is_skipped(self, context_config, caplog):
        """Verify that a dict that does not validate is logged and skipped."""
        compactor = ContextCompactor("conv", 1, config=context_config())
        with caplog.at_level(logging.WARNING):
            compactor.add_messages(
                [
                    {"role": "user", "content": "hi"},
                    {"role": "assistant", "tool_events": [{"type": "progress", "tool_name": "x"}]},
                    {"content": "no role"},
                ]
            )
        assert _contents(await compactor.get_optimized_messages()) == ["hi"]
        assert "Skipping invalid message" in caplog.text

    def test_inert_summary_config_is_logged(self, context_config, caplog):
        """Verify that summarize_after below max_turns is reported at construction."""
        with caplog.at_level(logging.INFO):
            ContextCompactor("conv", 1, config=context_config(summarize_after=1, max_turns=2))
        assert "summarize_after=1 is below max_turns=2" in caplog.text

    @pytest.mark.asyncio
    async def test_cache_and_invalidation(self, context_config, conversation, sample_message):
        """Verify that results are cached until messages are added."""
        compactor = ContextCompactor("conv", 1, config=context_config())
        compactor.add_messages(conversation(1))
        assert compactor.is_dirty is True

        first = await compactor.get_optimized_messages()
        assert compactor.is_dirty is False
        assert await compactor.get_optimized_messages() is first

        compactor.add_messages([sample_message(MessageRole.USER, "more")])
        assert compactor.is_dirty is True
        second = await compactor.get_optimized_messages()
        assert second[-1].content == "more"

    @pytest.mark.asyncio
    async def test_window_without_summarizer(self, context_config, conversation):
        """Verify that aged-out turns are dropped when no summarizer is set."""
        compactor = ContextCompactor("conv", 1, config=context_config())
        compactor.add_messages(conversation(4))

        out = await compactor.get_optimized_messages()

        assert _contents(out) == [
            "You are a signal assistant.",
            "question 3",
            "answer 3",
            "question 4",
            "answer 4",
        ]

    @pytest.mark.asyncio
    async def test_summary_injected_after_system(self, context_config, conversation, mock_summarizer):
        """Verify that the summary exchange sits between system and recent messages."""
        compactor = ContextCompactor("conv", 1, config=context_config(), summarizer=mock_summarizer)
        compactor.add_messages(conversation(4))

        out = await compactor.get_optimized_messages()

        assert out[0].role == MessageRole.SYSTEM
        assert out[1].role == MessageRole.USER
        assert out[1].content == SUMMARY_REQUEST
        assert out[2].role == MessageRole.ASSISTANT
        assert out[2].content == "Earlier the user asked about questions 1-2."
        assert _contents(out[3:]) == ["question 3", "answer 3", "question 4", "answer 4"]
        assert compactor.get_metrics().summary_added is True
        assert compactor.last_summary_turn == 4

        mock_summarizer.summarize.assert_awaited_once_with(
            CONTEXT_SUMMARY_PROMPT,
            "USER: question 1\n\nASSISTANT: answer 1\n\nUSER: question 2\n\nASSISTANT: answer 2",
            400,
        )

    @pytest.mark.asyncio
    async def test_no_summary_at_threshold(self, context_config, conversation, mock_summarizer):
        """Verify that summaries wait until the turn count exceeds summarize_after."""
        compactor = ContextCompactor("conv", 1, config=context_config(), summarizer=mock_summarizer)
        compactor.add_messages(conversation(3))

        out = await compactor.get_optimized_messages()

        assert len(out) == 5
        mock_summarizer.summarize.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_summary_disabled_with_zero(self, context_config, conversation, mock_summarizer):
        """Verify that summarize_after=0 disables summaries."""
        compactor = ContextCompactor(
            "conv", 1, config=context_config(summarize_after=0), summarizer=mock_summarizer
        )
        compactor.add_messages(conversation(6))
        await compactor.get_optimized_messages()
        mock_summarizer.summarize.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_watermark_prevents_resummarizing(self, context_config, conversation, mock_summarizer, sample_message):
        """Verify that the same turn count is summarized only once."""
        compactor = ContextCompactor("conv", 1, config=context_config(), summarizer=mock_summarizer)
        compactor.add_messages(conversation(4))
        await compactor.get_optimized_messages()

        recomputed = await compactor.compute()
        assert mock_summarizer.summarize.await_count == 1
        assert SUMMARY_REQUEST not in _contents(recomputed)

        compactor.add_messages([sample_message(MessageRole.USER, "question 5")])
        await compactor.get_optimized_messages()
        assert mock_summarizer.summarize.await_count == 2
        assert compactor.last_summary_turn == 5

    @pytest.mark.asyncio
    async def test_summarizer_failure_degrades(self, context_config, conversation):
        """Verify that a failing summarizer omits the summary without raising."""
        summarizer = MagicMock()
        summarizer.summarize = AsyncMock(side_effect=RuntimeError("provider down"))
        compactor = ContextCompactor("conv", 1, config=context_config(), summarizer=summarizer)
        compactor.add_messages(conversation(4))

        out = await compactor.get_optimized_messages()

        assert _contents(out) == [
            "You are a signal assistant.",
            "question 3",
            "answer 3",
            "question 4",
            "answer 4",
        ]
        assert compactor.get_metrics().summary_added is False
        assert compactor.last_summary_turn == 0

    @pytest.mark.asyncio
    async def test_empty_summary_is_skipped(self, context_config, conversation):
        """Verify that an empty summary is treated as a failure."""
        summarizer = MagicMock()
        summarizer.summarize = AsyncMock(return_value="")
        compactor = ContextCompactor("conv", 1, config=context_config(), summarizer=summarizer)
        compactor.add_messages(conversation(4))

        out = await compactor.get_optimized_messages()

        assert SUMMARY_REQUEST not in _contents(out)

    @pytest.mark.asyncio
    async def test_tool_trim_in_window(self, context_config, tool_result_event):
        """Verify that tool results inside the window are compressed and counted."""
        compactor = ContextCompactor("conv", 1, config=context_config())
        compactor.add_messages(
            [
                Message(role=MessageRole.USER, content="find founders"),
                Message(
                    role=MessageRole.ASSISTANT,
                    content="Found them.",
                    tool_events=[tool_result_event("find_people", {"results": _profiles(60)})],
                ),
            ]
        )

        out = await compactor.get_optimized_messages()

        assert out[1].tool_events[0].trimmed is True
        assert compactor.get_metrics().tool_trim_count == 1

    @pytest.mark.asyncio
    async def test_tool_trim_disabled(self, context_config, tool_result_event):
        """Verify that tool results are untouched when trimming is disabled."""
        compactor = ContextCompactor("conv", 1, config=context_config(tool_trim_enabled=False))
        event = tool_result_event("find_people", {"results": _profiles(60)})
        compactor.add_messages([Message(role=MessageRole.ASSISTANT, content="", tool_events=[event])])

        out = await compactor.get_optimized_messages()

        assert out[0].tool_events[0] == event
        assert compactor.get_metrics().tool_trim_count == 0


class TestContextMetrics:
    """Tests for metrics recording."""

    @pytest.mark.asyncio
    async def test_metrics_recorded_per_pass(self, context_config, conversation):
        """Verify that each recompute records a snapshot."""
        sink = MagicMock()
        sink.record = AsyncMock()
        compactor = ContextCompactor(
            "conv-1", 7, config=context_config(metrics_enabled=True), metrics_sink=sink
        )
        compactor.add_messages(conversation(4))

        await compactor.get_optimized_messages()
        await compactor.get_optimized_messages()

        sink.record.assert_awaited_once()
        metrics: ContextMetrics = sink.record.await_args.args[0]
        assert metrics.conversation_id == "conv-1"
        assert metrics.user_id == 7
        assert metrics.raw_message_count == 9
        assert metrics.optimized_message_count == 5
        assert metrics.turn_count == 4

    @pytest.mark.asyncio
    async def test_sink_failure_is_absorbed(self, context_config, conversation, caplog):
        """Verify that a failing sink is logged and does not break compaction."""
        sink = MagicMock()
        sink.record = AsyncMock(side_effect=RuntimeError("db down"))
        compactor = ContextCompactor("conv", 1, config=context_config(metrics_enabled=True), metrics_sink=sink)
        compactor.add_messages(conversation(1))

        with caplog.at_level(logging.WARNING):
            out = await compactor.get_optimized_messages()

        assert len(out) == 3
        assert "Failed to record context metrics" in caplog.text

    @pytest.mark.asyncio
    async def test_update_usage_metrics(self, context_config, conversation):
        """Verify that model usage is recorded with the current counters."""
        sink = MagicMock()
        sink.record = AsyncMock()
        compactor = ContextCompactor("conv", 1, config=context_config(metrics_enabled=True), metrics_sink=sink)
        compactor.add_messages(conversation(1))
        await compactor.get_optimized_messages()

        await compactor.update_usage_metrics(120, 30)

        metrics: ContextMetrics = sink.record.await_args.args[0]
        assert metrics.input_tokens == 120
        assert metrics.output_tokens == 30
        assert metrics.raw_message_count == 3

    @pytest.mark.asyncio
    async def test_metrics_disabled(self, context_config, conversation):
        """Verify that nothing is recorded when metrics are disabled."""
        sink = MagicMock()
        sink.record = AsyncMock()
        compactor = ContextCompactor("conv", 1, config=context_config(), metrics_sink=sink)
        compactor.add_messages(conversation(1))

        await compactor.get_optimized_messages()
        await compactor.update_usage_metrics(1, 1)

        sink.record.assert_not_awaited()


# ===========================================================================
# Summarizer
# ===========================================================================


def _mock_llm(response_text: str = "Summary of conversation.") -> MagicMock:
    """Create a mock chat model whose bound runnable returns the given text."""
    llm = MagicMock()
    result = MagicMock()
    result.content = response_text
    llm.bind.return_value.ainvoke = AsyncMock(return_value=result)
    return llm


class TestChatModelSummarizer:
    """Tests for the LangChain-backed summarizer."""

    def test_render_transcript(self):
        """Verify the role-prefixed transcript format."""
        messages = [
            _msg(MessageRole.USER, "hi"),
            _msg(MessageRole.ASSISTANT, "hello"),
            Message(role="critic", content=[{"type": "text", "text": "ok"}]),
        ]
        assert render_transcript(messages) == (
            'USER: hi\n\nASSISTANT: hello\n\nCRITIC: [{"type": "text", "text": "ok"}]'
        )

    @pytest.mark.asyncio
    async def test_summarize(self):
        """Verify that the summary is stripped and the token cap is bound."""
        llm = _mock_llm("  Short summary.  ")
        summarizer = ChatModelSummarizer(llm)

        text = await summarizer.summarize("instr", "USER: hi", 123)

        assert text == "Short summary."
        llm.bind.assert_called_once_with(max_tokens=123)
        sent = llm.bind.return_value.ainvoke.await_args.args[0]
        assert sent[0].content == "instr"
        assert sent[1].content == "USER: hi"

    @pytest.mark.asyncio
    async def test_failure_returns_none(self):
        """Verify that model errors are reported as None."""
        llm = MagicMock()
        llm.bind.return_value.ainvoke = AsyncMock(side_effect=TimeoutError("slow"))
        assert await ChatModelSummarizer(llm).summarize("instr", "USER: hi", 10) is None

    @pytest.mark.asyncio
    async def test_empty_output_returns_none(self):
        """Verify that blank output is reported as None."""
        assert await ChatModelSummarizer(_mock_llm("   ")).summarize("instr", "USER: hi", 10) is None

    @pytest.mark.asyncio
    async def test_empty_transcript_skips_call(self):
        """Verify that no call is made for an empty transcript."""
        llm = _mock_llm()
        assert await ChatModelSummarizer(llm).summarize("instr", "  ", 10) is None
        llm.bind.assert_not_called()

    def test_create_summarizer(self, monkeypatch):
        """Verify that the default summarizer wraps an OpenAI chat model."""
        monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
        summarizer = create_summarizer("gpt-4o-mini", 0.2)
        assert isinstance(summarizer, ChatModelSummarizer)
        assert isinstance(summarizer.llm, ChatOpenAI)
        assert summarizer.llm.model_name == "gpt-4o-mini"
        assert summarizer.llm.temperature == 0.2
