"""Tests for activation rules."""

from contextpipe.compaction.activation import (
    MessageCountExceedRule,
    TokensExceedRule,
    all_rules_satisfied,
    create_rules,
)
from contextpipe.context.snapshot import ContextSnapshot
from contextpipe.context.types import Interaction


def _snapshot(messages: int = 0, text: str = "") -> ContextSnapshot:
    return ContextSnapshot(
        system_prompt=text,
        chat_history=[Interaction("q", "a") for _ in range(messages)],
    )


# ── Rules ───────────────────────────────────────────────────────────


class TestRules:
    def test_tokens_exceed_is_strict(self):
        rule = TokensExceedRule(2)
        assert not rule.evaluate(_snapshot(text="a" * 8))
        assert rule.evaluate(_snapshot(text="a" * 9))

    def test_message_count_exceed_is_strict(self):
        rule = MessageCountExceedRule(3)
        assert not rule.evaluate(_snapshot(messages=3))
        assert rule.evaluate(_snapshot(messages=4))

    def test_descriptions(self):
        assert TokensExceedRule(5).description == "tokens_exceed: 5"
        assert MessageCountExceedRule(2).description == "message_count_exceed: 2"


# ── create_rules ────────────────────────────────────────────────────


class TestCreateRules:
    def test_empty(self):
        assert create_rules(None) == []
        assert create_rules({}) == []

    def test_both_rules(self):
        rules = create_rules({"tokens_exceed": 100, "message_count_exceed": "5"})
        assert len(rules) == 2
        assert isinstance(rules[0], TokensExceedRule)
        assert rules[0].threshold == 100
        assert isinstance(rules[1], MessageCountExceedRule)
        assert rules[1].threshold == 5

    def test_invalid_entries_skipped(self):
        rules = create_rules({
            "tokens_exceed": "lots",
            "message_count_exceed": -1,
            "unknown_rule": 3,
        })
        assert rules == []

    def test_fractional_and_bool_thresholds_skipped(self):
        assert create_rules({"tokens_exceed": 1.5}) == []
        assert create_rules({"tokens_exceed": True}) == []

    def test_integral_float_accepted(self):
        rules = create_rules({"tokens_exceed": 10.0})
        assert rules[0].threshold == 10

    def test_non_dict_config(self):
        assert create_rules(["tokens_exceed"]) == []


# ── AND semantics ───────────────────────────────────────────────────


class TestAllRulesSatisfied:
    def test_no_rules_means_always(self):
        assert all_rules_satisfied([], _snapshot())
        assert all_rules_satisfied(None, _snapshot())

    def test_and_semantics(self):
        rules = create_rules({"tokens_exceed": 1, "message_count_exceed": 2})
        # Tokens satisfied, count not
        assert not all_rules_satisfied(rules, _snapshot(messages=1, text="a" * 40))
        # Both satisfied
        assert all_rules_satisfied(rules, _snapshot(messages=3, text="a" * 40))
