"""Tests for same-priority conflict detection and resolution."""

import pytest

from frontdesk.policy.conflicts import detect_conflicts, jaccard, resolve_conflicts, tokenize
from frontdesk.policy.models import ConflictResolution, ConflictType
from tests.factories import EdgeCaseRuleFactory, RawPolicyFactory, TransferRuleFactory


class TestTokenize:
    """Tests for tokenize."""

    def test_drops_short_tokens(self) -> None:
        """Tokens shorter than the minimum are ignored."""
        assert tokenize("Are you open on the weekend?") == {"are", "you", "open", "the", "weekend"}
        assert tokenize("is it ok", min_length=3) == set()

    def test_splits_on_regex_punctuation(self) -> None:
        """Regex syntax does not glue words together."""
        assert tokenize(r"\b(hours|open)\b") >= {"hours", "open"}


class TestJaccard:
    """Tests for jaccard."""

    def test_identical_sets(self) -> None:
        assert jaccard({"open", "hours"}, {"open", "hours"}) == 1.0

    def test_partial_overlap(self) -> None:
        assert jaccard({"open", "hours"}, {"open", "weekend"}) == pytest.approx(1 / 3)

    def test_both_empty(self) -> None:
        """Two empty sets never conflict."""
        assert jaccard(set(), set()) == 0.0


class TestDetectConflicts:
    """Tests for detect_conflicts."""

    def test_overlapping_edge_cases_conflict(self) -> None:
        """Same-priority edge cases with shared triggers are reported."""
        policy = RawPolicyFactory.create(
            edge_cases=[
                EdgeCaseRuleFactory.create(id="hours", trigger_patterns=["what are your hours"]),
                EdgeCaseRuleFactory.create(id="open", trigger_patterns=["what hours are you open"]),
            ]
        )
        conflicts = detect_conflicts(policy)

        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.type == ConflictType.EDGE_CASE_CONFLICT
        assert (conflict.rule_id_a, conflict.rule_id_b) == ("hours", "open")
        assert conflict.overlap_score > 0.3
        assert conflict.resolution == ConflictResolution.AUTO_DEMOTE_LATER

    def test_different_priorities_never_conflict(self) -> None:
        """Overlap only matters at equal priority."""
        policy = RawPolicyFactory.create(
            edge_cases=[
                EdgeCaseRuleFactory.create(id="a", trigger_patterns=["what are your hours"]),
                EdgeCaseRuleFactory.create(
                    id="b", trigger_patterns=["what are your hours"], priority=11
                ),
            ]
        )
        assert detect_conflicts(policy) == []

    def test_disabled_rules_ignored(self) -> None:
        """Disabled rules take no part in conflict detection."""
        policy = RawPolicyFactory.create(
            edge_cases=[
                EdgeCaseRuleFactory.create(id="a", trigger_patterns=["what are your hours"]),
                EdgeCaseRuleFactory.create(
                    id="b", trigger_patterns=["what are your hours"], enabled=False
                ),
            ]
        )
        assert detect_conflicts(policy) == []

    def test_low_overlap_is_not_a_conflict(self) -> None:
        """Overlap at or below the threshold is tolerated."""
        policy = RawPolicyFactory.create(
            edge_cases=[
                EdgeCaseRuleFactory.create(id="a", trigger_patterns=["financing plans available"]),
                EdgeCaseRuleFactory.create(id="b", trigger_patterns=["weekend hours"]),
            ]
        )
        assert detect_conflicts(policy) == []

    def test_same_intent_transfers_fully_overlap(self) -> None:
        """Two transfer rules for one intent score 1.0."""
        policy = RawPolicyFactory.create(
            transfer_rules=[
                TransferRuleFactory.create(id="billing-day"),
                TransferRuleFactory.create(id="billing-night"),
            ]
        )
        conflicts = detect_conflicts(policy)

        assert len(conflicts) == 1
        assert conflicts[0].type == ConflictType.TRANSFER_RULE_CONFLICT
        assert conflicts[0].overlap_score == 1.0

    def test_threshold_is_configurable(self) -> None:
        """A higher threshold lets partial overlaps through."""
        policy = RawPolicyFactory.create(
            edge_cases=[
                EdgeCaseRuleFactory.create(id="a", trigger_patterns=["open weekend"]),
                EdgeCaseRuleFactory.create(id="b", trigger_patterns=["open saturday"]),
            ]
        )
        assert len(detect_conflicts(policy, threshold=0.3)) == 1
        assert detect_conflicts(policy, threshold=0.5) == []


class TestResolveConflicts:
    """Tests for resolve_conflicts."""

    def test_later_rule_demoted_by_one(self) -> None:
        """Exactly the later-listed rule moves down one step."""
        policy = RawPolicyFactory.create(
            edge_cases=[
                EdgeCaseRuleFactory.create(id="hours", trigger_patterns=["what are your hours"]),
                EdgeCaseRuleFactory.create(id="open", trigger_patterns=["what hours are you open"]),
            ]
        )
        resolved = resolve_conflicts(policy, detect_conflicts(policy))

        priorities = {rule.id: rule.priority for rule in resolved.edge_cases}
        assert priorities == {"hours": 10, "open": 11}

    def test_input_not_mutated(self) -> None:
        """The caller's policy keeps its original priorities."""
        policy = RawPolicyFactory.create(
            transfer_rules=[
                TransferRuleFactory.create(id="billing-day"),
                TransferRuleFactory.create(id="billing-night"),
            ]
        )
        resolve_conflicts(policy, detect_conflicts(policy))
        assert [rule.priority for rule in policy.transfer_rules] == [10, 10]

    def test_single_pass(self) -> None:
        """A rule in two conflicts is demoted once per conflict, without re-checking."""
        policy = RawPolicyFactory.create(
            transfer_rules=[
                TransferRuleFactory.create(id="billing-1"),
                TransferRuleFactory.create(id="billing-2"),
                TransferRuleFactory.create(id="billing-3"),
            ]
        )
        conflicts = detect_conflicts(policy)
        resolved = resolve_conflicts(policy, conflicts)

        assert len(conflicts) == 3
        priorities = {rule.id: rule.priority for rule in resolved.transfer_rules}
        assert priorities == {"billing-1": 10, "billing-2": 11, "billing-3": 12}
