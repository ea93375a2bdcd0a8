"""Tests for pattern compilation helpers."""

from uuid import uuid4

from frontdesk.policy.models import CompiledPattern
from frontdesk.policy.patterns import (
    compile_pattern,
    phrase_pattern,
    transfer_pattern_sources,
)
from tests.factories import TransferRuleFactory


class TestCompilePattern:
    """Tests for compile_pattern."""

    def test_valid_pattern_is_case_insensitive(self) -> None:
        pattern = compile_pattern(r"\bhours\b")
        assert isinstance(pattern, CompiledPattern)
        assert pattern.search("What are your HOURS?")

    def test_invalid_pattern_dropped(self) -> None:
        """A bad regex returns None instead of raising."""
        assert compile_pattern("(unclosed", tenant_id=uuid4(), rule_id="bad") is None

    def test_blank_pattern_dropped(self) -> None:
        assert compile_pattern("   ") is None

    def test_regex_rebuilt_after_round_trip(self) -> None:
        """Only the source is serialized; loading recompiles it."""
        pattern = CompiledPattern(source=r"\bleak\b")
        loaded = CompiledPattern.model_validate_json(pattern.model_dump_json())
        assert loaded.search("There's a LEAK under the sink")


class TestTransferPatterns:
    """Tests for transfer rule pattern sources."""

    def test_phrase_pattern_is_word_bounded(self) -> None:
        pattern = CompiledPattern(source=phrase_pattern("talk to  accounting"))
        assert pattern.search("can I talk to accounting please")
        assert not pattern.search("talk to accountingdept")

    def test_builtin_vocabulary_and_extra_phrases(self) -> None:
        """Known intents get their built-in vocabulary plus the rule's phrases."""
        rule = TransferRuleFactory.create(trigger_phrases=["refund"])
        sources = transfer_pattern_sources(rule)
        assert len(sources) == 2
        assert "invoice" in sources[0]

    def test_general_intent_uses_only_rule_phrases(self) -> None:
        rule = TransferRuleFactory.create(intent_tag="general", trigger_phrases=["manager"])
        assert transfer_pattern_sources(rule) == [phrase_pattern("manager")]
