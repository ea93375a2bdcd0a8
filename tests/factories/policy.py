"""Test factories for policy domain models."""

from frontdesk.policy.models import (
    BehaviorFlag,
    EdgeCaseRule,
    GuardrailFlag,
    PolicyStatus,
    RawPolicy,
    TransferRule,
)


class EdgeCaseRuleFactory:
    """Factory for creating EdgeCaseRule instances for testing."""

    @staticmethod
    def create(
        *,
        id: str = "hours",
        name: str = "Business hours",
        trigger_patterns: list[str] | None = None,
        response_text: str = "We're open 7am to 7pm, Monday through Saturday.",
        priority: int = 10,
        enabled: bool = True,
    ) -> EdgeCaseRule:
        """Create an EdgeCaseRule with sensible defaults.

        Args:
            id: Rule id
            name: Display name
            trigger_patterns: Regular expressions (defaults to hours questions)
            response_text: Scripted answer
            priority: Lower runs first
            enabled: Whether the rule is compiled

        Returns:
            EdgeCaseRule instance
        """
        return EdgeCaseRule(
            id=id,
            name=name,
            trigger_patterns=(
                trigger_patterns
                if trigger_patterns is not None
                else [r"\b(hours|open|close)\b"]
            ),
            response_text=response_text,
            priority=priority,
            enabled=enabled,
        )


class TransferRuleFactory:
    """Factory for creating TransferRule instances for testing."""

    @staticmethod
    def create(
        *,
        id: str = "billing-desk",
        intent_tag: str = "billing",
        contact: str | None = "Billing Desk",
        phone: str | None = "+15550100",
        script: str | None = "Let me get you over to our billing team.",
        after_hours_only: bool = False,
        trigger_phrases: list[str] | None = None,
        priority: int = 10,
        enabled: bool = True,
    ) -> TransferRule:
        """Create a TransferRule with sensible defaults."""
        return TransferRule(
            id=id,
            intent_tag=intent_tag,
            contact=contact,
            phone=phone,
            script=script,
            after_hours_only=after_hours_only,
            trigger_phrases=trigger_phrases or [],
            priority=priority,
            enabled=enabled,
        )


class RawPolicyFactory:
    """Factory for creating RawPolicy instances for testing."""

    @staticmethod
    def create(
        *,
        version: int = 1,
        status: PolicyStatus = PolicyStatus.ACTIVE,
        company_name: str | None = "Acme Heating & Air",
        behavior_rules: list[BehaviorFlag] | None = None,
        edge_cases: list[EdgeCaseRule] | None = None,
        transfer_rules: list[TransferRule] | None = None,
        guardrails: list[GuardrailFlag] | None = None,
        allowed_actions: list[str] | None = None,
    ) -> RawPolicy:
        """Create a RawPolicy with sensible defaults.

        Args:
            version: Policy version
            status: Publication status (active by default)
            company_name: Name used by USE_COMPANY_NAME
            behavior_rules: Response styling flags
            edge_cases: Scripted answers
            transfer_rules: Live-transfer rules
            guardrails: Content guardrails
            allowed_actions: Action flags the tenant permits

        Returns:
            RawPolicy instance
        """
        return RawPolicy(
            version=version,
            status=status,
            company_name=company_name,
            behavior_rules=behavior_rules or [],
            edge_cases=edge_cases or [],
            transfer_rules=transfer_rules or [],
            guardrails=guardrails or [],
            allowed_actions=allowed_actions or [],
        )
