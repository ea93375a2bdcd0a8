"""Triage router.

Picks a route for one utterance. Stages run in order and the first hit
wins:

1. Compiled edge cases (scripted answers)
2. Tenant triage cards, by (priority, id)
3. Compiled transfer rules, gated by the policy's allowed actions
4. The classifier's action hint
"""

import re
from collections.abc import Sequence
from datetime import datetime

from frontdesk.observability.logging import get_logger
from frontdesk.policy.models import PolicyArtifact
from frontdesk.routing.models import (
    DECISION_ACTION_ROUTES,
    Decision,
    Route,
    RouteResult,
    RouteSource,
    RoutingRule,
)

logger = get_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(text: str) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    return _NON_ALNUM.sub(" ", text.lower()).strip()


def contains_keyword(normalized_text: str, keyword: str) -> bool:
    """Whole-word (or whole-phrase) containment on normalized text."""
    needle = normalize(keyword)
    if not needle:
        return False
    return f" {needle} " in f" {normalized_text} "


def rule_matches(rule: RoutingRule, normalized_text: str) -> bool:
    """All must-have keywords present and no exclude keyword present."""
    if not rule.must_have_keywords:
        return False
    if not all(contains_keyword(normalized_text, kw) for kw in rule.must_have_keywords):
        return False
    return not any(contains_keyword(normalized_text, kw) for kw in rule.exclude_keywords)


class TriageRouter:
    """Chooses the handling route for a turn."""

    def __init__(self, business_hours: tuple[int, int] = (7, 19)) -> None:
        """Initialize the router.

        Args:
            business_hours: Opening and closing hour; after-hours-only
                transfer rules are skipped inside this window
        """
        self._open_hour, self._close_hour = business_hours

    def route(
        self,
        decision: Decision,
        rules: Sequence[RoutingRule],
        artifact: PolicyArtifact | None = None,
        user_input: str | None = None,
        now: datetime | None = None,
    ) -> RouteResult:
        """Route one utterance.

        Args:
            decision: Classifier output for the utterance
            rules: Tenant triage cards; disabled ones are ignored
            artifact: Active compiled policy, if any
            user_input: Raw caller text
            now: Local time used for after-hours transfer rules

        Returns:
            RouteResult naming the route and what produced it
        """
        text = user_input or ""
        normalized = normalize(text)

        if artifact is not None and text:
            for edge_case in artifact.edge_cases:
                if edge_case.matches(text):
                    return RouteResult(
                        route=Route.SCENARIO_ENGINE,
                        source=RouteSource.EDGE_CASE,
                        reason=f"edge case {edge_case.id} matched",
                        matched_rule_id=edge_case.id,
                        scripted_response=edge_case.response_text,
                    )

        ordered = sorted(
            (rule for rule in rules if rule.enabled),
            key=lambda rule: (rule.priority, rule.id),
        )
        for rule in ordered:
            if rule_matches(rule, normalized):
                logger.debug("triage_rule_matched", rule_id=rule.id, priority=rule.priority)
                return RouteResult(
                    route=rule.route,
                    source=RouteSource.TRIAGE_RULE,
                    reason=f"triage rule {rule.id} matched",
                    matched_rule_id=rule.id,
                    matched_rule=rule,
                    transfer_target=rule.transfer_target,
                )

        blocked: list[str] = []
        if artifact is not None and text:
            after_hours = self._is_after_hours(now or datetime.now())
            for transfer in artifact.transfer_rules:
                if transfer.after_hours_only and not after_hours:
                    continue
                if not transfer.matches(text):
                    continue
                if not artifact.allows(transfer.action_flag):
                    logger.info(
                        "transfer_not_allowed",
                        rule_id=transfer.id,
                        action_flag=transfer.action_flag,
                    )
                    blocked.append(transfer.id)
                    continue
                return RouteResult(
                    route=Route.TRANSFER,
                    source=RouteSource.TRANSFER_RULE,
                    reason=f"transfer rule {transfer.id} matched",
                    matched_rule_id=transfer.id,
                    transfer_target=transfer.contact,
                    transfer_phone=transfer.phone,
                    transfer_script=transfer.script,
                    blocked_transfers=blocked,
                )

        route = DECISION_ACTION_ROUTES.get(decision.action, Route.SCENARIO_ENGINE)
        return RouteResult(
            route=route,
            source=RouteSource.FALLBACK,
            reason=f"no rule matched; action hint {decision.action.value}",
            blocked_transfers=blocked,
        )

    def _is_after_hours(self, now: datetime) -> bool:
        return now.hour < self._open_hour or now.hour >= self._close_hour
