"""Same-priority conflict detection and single-pass auto-resolution."""

import re
from collections.abc import Sequence
from itertools import combinations

from frontdesk.policy.models import (
    ConflictRecord,
    ConflictType,
    EdgeCaseRule,
    RawPolicy,
    TransferRule,
)
from frontdesk.policy.patterns import transfer_trigger_text

_TOKEN_SPLIT = re.compile(r"\W+")


def tokenize(text: str, min_length: int = 3) -> set[str]:
    """Significant lowercase words of ``text``.

    Splits on non-word characters and drops tokens shorter than
    ``min_length``.
    """
    return {token for token in _TOKEN_SPLIT.split(text.lower()) if len(token) >= min_length}


def jaccard(a: set[str], b: set[str]) -> float:
    """Jaccard similarity of two word sets; 0.0 when both are empty."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def _edge_case_conflicts(
    rules: Sequence[EdgeCaseRule],
    threshold: float,
    min_token_length: int,
) -> list[ConflictRecord]:
    conflicts: list[ConflictRecord] = []
    enabled = [rule for rule in rules if rule.enabled]
    for first, second in combinations(enabled, 2):
        if first.priority != second.priority:
            continue
        overlap = jaccard(
            tokenize(" ".join(first.trigger_patterns), min_token_length),
            tokenize(" ".join(second.trigger_patterns), min_token_length),
        )
        if overlap > threshold:
            conflicts.append(
                ConflictRecord(
                    type=ConflictType.EDGE_CASE_CONFLICT,
                    rule_id_a=first.id,
                    rule_id_b=second.id,
                    overlap_score=round(overlap, 4),
                    priority=first.priority,
                )
            )
    return conflicts


def _transfer_conflicts(
    rules: Sequence[TransferRule],
    threshold: float,
    min_token_length: int,
) -> list[ConflictRecord]:
    conflicts: list[ConflictRecord] = []
    enabled = [rule for rule in rules if rule.enabled]
    for first, second in combinations(enabled, 2):
        if first.priority != second.priority:
            continue
        if first.intent_tag.lower() == second.intent_tag.lower():
            overlap = 1.0
        else:
            overlap = jaccard(
                tokenize(transfer_trigger_text(first), min_token_length),
                tokenize(transfer_trigger_text(second), min_token_length),
            )
        if overlap > threshold:
            conflicts.append(
                ConflictRecord(
                    type=ConflictType.TRANSFER_RULE_CONFLICT,
                    rule_id_a=first.id,
                    rule_id_b=second.id,
                    overlap_score=round(overlap, 4),
                    priority=first.priority,
                )
            )
    return conflicts


def detect_conflicts(
    policy: RawPolicy,
    threshold: float = 0.3,
    min_token_length: int = 3,
) -> list[ConflictRecord]:
    """Find enabled same-priority rule pairs whose triggers overlap.

    Edge-case rules and transfer rules are checked independently. Within a
    pair, ``rule_id_b`` is always the later-listed rule.

    Args:
        policy: Policy to inspect
        threshold: Overlap strictly above this is a conflict
        min_token_length: Shortest token counted as significant

    Returns:
        Conflicts in discovery order
    """
    return [
        *_edge_case_conflicts(policy.edge_cases, threshold, min_token_length),
        *_transfer_conflicts(policy.transfer_rules, threshold, min_token_length),
    ]


def resolve_conflicts(policy: RawPolicy, conflicts: Sequence[ConflictRecord]) -> RawPolicy:
    """Demote the later rule of every conflict by exactly one.

    Runs once. A demotion that lands on another rule's priority is not
    re-checked. ``policy`` is left untouched; a resolved copy is returned.
    """
    resolved = policy.model_copy(deep=True)
    edge_cases = {rule.id: rule for rule in resolved.edge_cases}
    transfers = {rule.id: rule for rule in resolved.transfer_rules}

    for conflict in conflicts:
        family = edge_cases if conflict.type == ConflictType.EDGE_CASE_CONFLICT else transfers
        demoted = family.get(conflict.rule_id_b)
        if demoted is not None:
            demoted.priority += 1

    return resolved
