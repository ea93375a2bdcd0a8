"""Fixed pattern vocabularies and safe pattern compilation."""

import re
from uuid import UUID

from frontdesk.observability.logging import get_logger
from frontdesk.observability.metrics import POLICY_PATTERNS_DROPPED
from frontdesk.policy.models import CompiledPattern, GuardrailFlag, TransferRule

logger = get_logger(__name__)

# Built-in phrasing per transfer intent. "general" transfers only fire on
# the rule's own trigger phrases.
TRANSFER_INTENT_PATTERNS: dict[str, str] = {
    "billing": r"\b(bill|invoice|payment|charge|balance|account|owe|pay)\b",
    "emergency": r"\b(emergency|urgent|flooding|no heat|gas smell|fire|leak|danger)\b",
    "scheduling": r"\b(appointment|schedule|book|visit|come out|service call)\b",
    "technical": r"\b(broken|not working|problem|issue|fix|repair)\b",
    "general": "",
}

# Guardrail matchers are not tenant-configurable.
GUARDRAIL_PATTERNS: dict[GuardrailFlag, str] = {
    GuardrailFlag.NO_PRICES: r"\$\d+(?:,\d{3})*(?:\.\d{2})?|\b\d+\s*dollars?\b",
    GuardrailFlag.NO_PHONE_NUMBERS: r"(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}",
    GuardrailFlag.NO_URLS: r"https?://[^\s]+",
    GuardrailFlag.NO_APOLOGIES_SPAM: r"\b(sorry|apologize|apologies)\b",
    GuardrailFlag.NO_MEDICAL_ADVICE: (
        r"\b(diagnose|diagnosis|prescription|prescribe|treat|treatment|medicine|medication)\b"
    ),
    GuardrailFlag.NO_LEGAL_ADVICE: (
        r"\b(sue|lawsuit|lawyer|attorney|legal action|liability|liable)\b"
    ),
}


def compile_pattern(
    source: str,
    *,
    tenant_id: UUID | None = None,
    rule_id: str | None = None,
) -> CompiledPattern | None:
    """Compile a pattern case-insensitively.

    A pattern that fails to compile is logged and dropped; it never fails
    the caller.

    Args:
        source: Regular expression source
        tenant_id: Owning tenant, for logging
        rule_id: Owning rule, for logging

    Returns:
        The compiled pattern, or None if the source is invalid
    """
    if not source or not source.strip():
        return None
    try:
        re.compile(source, re.IGNORECASE)
    except re.error as e:
        logger.warning(
            "pattern_compile_failed",
            tenant_id=str(tenant_id) if tenant_id else None,
            rule_id=rule_id,
            pattern=source,
            error=str(e),
        )
        POLICY_PATTERNS_DROPPED.labels(tenant_id=str(tenant_id)).inc()
        return None
    return CompiledPattern(source=source)


def phrase_pattern(phrase: str) -> str:
    """Turn a literal trigger phrase into a word-bounded pattern source."""
    words = phrase.strip().split()
    return r"\b" + r"\s+".join(re.escape(word) for word in words) + r"\b"


def transfer_pattern_sources(rule: TransferRule) -> list[str]:
    """All pattern sources a transfer rule matches on."""
    sources: list[str] = []
    builtin = TRANSFER_INTENT_PATTERNS.get(rule.intent_tag.lower(), "")
    if builtin:
        sources.append(builtin)
    sources.extend(phrase_pattern(phrase) for phrase in rule.trigger_phrases if phrase.strip())
    return sources


def transfer_trigger_text(rule: TransferRule) -> str:
    """Plain-text view of a transfer rule's triggers for overlap scoring."""
    builtin = TRANSFER_INTENT_PATTERNS.get(rule.intent_tag.lower(), "")
    return " ".join([builtin, *rule.trigger_phrases])
