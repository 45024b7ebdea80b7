"""Tests for the agent-side pipeline glue."""

from contextpipe.agent.context_util import (
    build_snapshot,
    build_snapshot_for_structured_memory,
    build_snapshot_for_tool_output,
    extract_processed_tool_output,
    run_post_structured_memory,
    run_post_tool,
    run_pre_llm,
    update_parameters_from_snapshot,
)
from contextpipe.compaction.sliding_window import SlidingWindowManager
from contextpipe.compaction.truncation import ToolsOutputTruncateManager
from contextpipe.context.snapshot import ContextSnapshot
from contextpipe.pipeline import ContextPipeline

from conftest import text_message


class FailingPipeline(ContextPipeline):
    def run(self, snapshot):
        raise RuntimeError("pipeline broke")


def _truncating_pipeline(max_tokens: int = 2) -> ContextPipeline:
    return ContextPipeline([
        ToolsOutputTruncateManager({"max_tokens": max_tokens, "truncation_marker": ""}),
    ])


# ── Snapshot builders ───────────────────────────────────────────────


class TestBuildSnapshot:
    def test_from_parameters(self):
        parameters = {"system_prompt": "sys", "question": "why?", "_llm_model_id": "m"}
        snapshot = build_snapshot(parameters, ["out1", "out2"], [{"name": "search"}])

        assert snapshot.system_prompt == "sys"
        assert snapshot.user_prompt == "why?"
        assert snapshot.tool_interactions == [{"output": "out1"}, {"output": "out2"}]
        assert snapshot.tool_configs == [{"name": "search"}]
        assert snapshot.get_parameter("_llm_model_id") == "m"
        # The snapshot works on a copy
        snapshot.set_parameter("extra", "x")
        assert "extra" not in parameters

    def test_for_tool_output(self):
        payload = {"rows": [1]}
        snapshot = build_snapshot_for_tool_output(payload, {})
        assert extract_processed_tool_output(snapshot) is payload

    def test_for_structured_memory(self):
        history = [text_message("user", "hi")]
        snapshot = build_snapshot_for_structured_memory({}, history)
        assert snapshot.structured_chat_history == history
        assert snapshot.structured_chat_history is not history


class TestUpdateParameters:
    def test_writes_back(self):
        parameters = {"question": "old"}
        snapshot = ContextSnapshot(
            system_prompt="sys",
            user_prompt="new",
            tool_interactions=[{"output": "a"}, "b", {"status": 1}],
            parameters={"custom": "value"},
        )
        update_parameters_from_snapshot(parameters, snapshot)

        assert parameters["system_prompt"] == "sys"
        assert parameters["question"] == "new"
        assert parameters["_interactions"] == ", a, b"
        assert parameters["custom"] == "value"

    def test_no_interactions_leaves_key(self):
        parameters = {"_interactions": ", kept"}
        update_parameters_from_snapshot(parameters, ContextSnapshot())
        assert parameters["_interactions"] == ", kept"

    def test_snapshot_fields_override_copied_parameters(self):
        parameters = {"system_prompt": "old sys", "question": "old q", "_interactions": ", old"}
        snapshot = ContextSnapshot(
            system_prompt="new sys",
            user_prompt="new q",
            tool_interactions=["fresh"],
            parameters=dict(parameters),
        )
        update_parameters_from_snapshot(parameters, snapshot)

        assert parameters["system_prompt"] == "new sys"
        assert parameters["question"] == "new q"
        assert parameters["_interactions"] == ", fresh"


# ── Checkpoints ─────────────────────────────────────────────────────


class TestRunPreLlm:
    def test_truncates_interactions(self):
        parameters = {"question": "q"}
        run_pre_llm(_truncating_pipeline(), parameters, ["x" * 40, "short"])
        assert parameters["_interactions"] == ", xxxxxxxx, short"

    def test_truncation_survives_existing_interactions(self):
        parameters = {"question": "q", "_interactions": ", " + "x" * 40 + ", short"}
        run_pre_llm(_truncating_pipeline(3), parameters, ["x" * 40, "short"])
        assert parameters["_interactions"] == ", " + "x" * 12 + ", short"

    def test_no_pipeline(self):
        parameters = {"question": "q"}
        run_pre_llm(None, parameters, ["x" * 40])
        assert parameters == {"question": "q"}

    def test_failure_leaves_parameters(self):
        parameters = {"question": "q"}
        run_pre_llm(FailingPipeline(), parameters, ["x"])
        assert parameters == {"question": "q"}


class TestRunPostTool:
    def test_truncates_text_output(self):
        assert run_post_tool(_truncating_pipeline(), "y" * 40, {}) == "y" * 8

    def test_non_text_output_passes_through(self):
        payload = {"rows": [1, 2]}
        assert run_post_tool(_truncating_pipeline(), payload, {}) is payload

    def test_no_pipeline(self):
        assert run_post_tool(None, "raw", {}) == "raw"

    def test_failure_returns_original(self):
        assert run_post_tool(FailingPipeline(), "raw", {}) == "raw"


class TestRunPostStructuredMemory:
    def test_returns_processed_history(self):
        class KeepLast(SlidingWindowManager):
            def execute(self, snapshot):
                snapshot.structured_chat_history = snapshot.structured_chat_history[-1:]

        history = [text_message("user", "a"), text_message("assistant", "b")]
        result = run_post_structured_memory(ContextPipeline([KeepLast()]), {}, history)
        assert result == history[-1:]

    def test_no_pipeline(self):
        history = [text_message("user", "a")]
        assert run_post_structured_memory(None, {}, history) is history

    def test_failure_returns_original(self):
        history = [text_message("user", "a")]
        assert run_post_structured_memory(FailingPipeline(), {}, history) is history
