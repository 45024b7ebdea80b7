"""Tests for configuration loading and key conversion."""

import json
from pathlib import Path

import pytest

from contextpipe.config.loader import (
    camel_to_snake,
    convert_keys,
    convert_to_camel,
    load_config,
    save_config,
    snake_to_camel,
)
from contextpipe.config.schema import ManagerSpec, PipelineConfig, Settings


# ── Key conversion ──────────────────────────────────────────────────


class TestCamelToSnake:
    def test_manager_keys(self):
        assert camel_to_snake("maxMessages") == "max_messages"
        assert camel_to_snake("truncationStrategy") == "truncation_strategy"
        assert camel_to_snake("preserveRecentMessages") == "preserve_recent_messages"

    def test_trailing_id(self):
        assert camel_to_snake("summarizationModelId") == "summarization_model_id"

    def test_hook_names(self):
        assert camel_to_snake("preLlm") == "pre_llm"
        assert camel_to_snake("postMemory") == "post_memory"

    def test_single_word_and_snake_unchanged(self):
        assert camel_to_snake("activation") == "activation"
        assert camel_to_snake("tokens_exceed") == "tokens_exceed"


class TestSnakeToCamel:
    def test_rule_names(self):
        assert snake_to_camel("tokens_exceed") == "tokensExceed"
        assert snake_to_camel("message_count_exceed") == "messageCountExceed"

    def test_root_settings(self):
        assert snake_to_camel("summarization_timeout_seconds") == "summarizationTimeoutSeconds"
        assert snake_to_camel("estimator") == "estimator"


class TestConvertKeys:
    def test_manager_spec_list(self):
        data = {
            "hooks": {
                "postTool": [
                    {
                        "type": "ToolsOutputTruncateManager",
                        "config": {"maxTokens": 500, "truncationStrategy": "preserve_end"},
                    },
                ],
            },
        }
        assert convert_keys(data) == {
            "hooks": {
                "post_tool": [
                    {
                        "type": "ToolsOutputTruncateManager",
                        "config": {"max_tokens": 500, "truncation_strategy": "preserve_end"},
                    },
                ],
            },
        }

    def test_values_untouched(self):
        # Manager type names and strategy values are data, not keys
        result = convert_keys({"type": "SlidingWindowManager", "activation": {"messageCountExceed": 4}})
        assert result == {"type": "SlidingWindowManager", "activation": {"message_count_exceed": 4}}

    def test_non_dict(self):
        assert convert_keys("preserve_middle") == "preserve_middle"
        assert convert_keys(0.3) == 0.3
        assert convert_keys(None) is None


class TestConvertToCamel:
    def test_summarization_config(self):
        data = {
            "summary_ratio": 0.3,
            "summarization_model_id": None,
            "activation": {"tokens_exceed": 1000},
        }
        assert convert_to_camel(data) == {
            "summaryRatio": 0.3,
            "summarizationModelId": None,
            "activation": {"tokensExceed": 1000},
        }

    def test_roundtrip(self):
        """Hook and manager keys survive snake_case → camelCase → snake_case."""
        original = {
            "pre_llm": [{"type": "SummarizationManager", "config": {"preserve_recent_messages": 4}}],
            "post_memory": [],
        }
        assert convert_keys(convert_to_camel(original)) == original


# ── Config load/save ────────────────────────────────────────────────


PIPELINE_JSON = {
    "pipeline": {
        "hooks": {
            "preLlm": [
                {"type": "SlidingWindowManager", "config": {"maxMessages": 5}},
                {
                    "type": "SummarizationManager",
                    "config": {
                        "summaryRatio": 0.5,
                        "activation": {"tokensExceed": 1000},
                    },
                },
            ],
        },
    },
    "provider": {"apiKey": "sk-test"},
    "summarizationTimeoutSeconds": 10,
}


class TestLoadConfig:
    def test_default_when_no_file(self, tmp_path: Path):
        config = load_config(tmp_path / "nonexistent.json")
        assert isinstance(config, Settings)
        assert config.pipeline.hooks == {}
        assert config.estimator == "character"

    def test_load_camel_case_json(self, tmp_path: Path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(PIPELINE_JSON))
        config = load_config(config_file)

        specs = config.pipeline.managers_for("pre_llm")
        assert [s.type for s in specs] == ["SlidingWindowManager", "SummarizationManager"]
        assert specs[0].config == {"max_messages": 5}
        assert specs[1].config["activation"] == {"tokens_exceed": 1000}
        assert config.provider.api_key == "sk-test"
        assert config.summarization_timeout_seconds == 10

    def test_invalid_json_returns_default(self, tmp_path: Path):
        config_file = tmp_path / "config.json"
        config_file.write_text("not json{{{")
        config = load_config(config_file)
        assert isinstance(config, Settings)
        assert config.pipeline.hooks == {}

    def test_non_object_returns_default(self, tmp_path: Path):
        config_file = tmp_path / "config.json"
        config_file.write_text("[1, 2, 3]")
        assert load_config(config_file).pipeline.hooks == {}

    def test_empty_file_returns_default(self, tmp_path: Path):
        config_file = tmp_path / "config.json"
        config_file.write_text("")
        config = load_config(config_file)
        assert isinstance(config, Settings)

    def test_environment_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CONTEXTPIPE_ESTIMATOR", "tiktoken")
        config = load_config(tmp_path / "nonexistent.json")
        assert config.estimator == "tiktoken"


class TestSaveConfig:
    def test_save_creates_file(self, tmp_path: Path):
        config_file = tmp_path / "subdir" / "config.json"
        save_config(Settings(), config_file)
        assert config_file.exists()

    def test_save_uses_camel_case(self, tmp_path: Path):
        config_file = tmp_path / "config.json"
        save_config(Settings(), config_file)

        data = json.loads(config_file.read_text())
        assert "summarizationTimeoutSeconds" in data
        assert "logLevel" in data
        assert "apiKey" in data["provider"]

    def test_roundtrip(self, tmp_path: Path):
        """Save and reload should produce equivalent config."""
        original = Settings(
            pipeline=PipelineConfig(hooks={
                "post_tool": [
                    ManagerSpec(type="ToolsOutputTruncateManager", config={"max_tokens": 100}),
                ],
            }),
        )
        original.provider.api_key = "sk-roundtrip"

        config_file = tmp_path / "config.json"
        save_config(original, config_file)
        loaded = load_config(config_file)

        spec = loaded.pipeline.managers_for("post_tool")[0]
        assert spec.type == "ToolsOutputTruncateManager"
        assert spec.config == {"max_tokens": 100}
        assert loaded.provider.api_key == "sk-roundtrip"
