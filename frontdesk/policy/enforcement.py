"""Apply a compiled policy's guardrails and behavior rules to a reply."""

import re

from pydantic import BaseModel, Field

from frontdesk.policy.models import BehaviorFlag, GuardrailFlag, PolicyArtifact

GUARDRAIL_REPLACEMENTS: dict[str, str] = {
    GuardrailFlag.NO_PRICES.value: "[contact us for pricing]",
    GuardrailFlag.NO_PHONE_NUMBERS.value: "[contact information]",
    GuardrailFlag.NO_URLS.value: "[website link removed]",
    GuardrailFlag.NO_MEDICAL_ADVICE.value: "[consult a professional]",
    GuardrailFlag.NO_LEGAL_ADVICE.value: "[consult legal counsel]",
}

CONTRACTIONS: dict[str, str] = {
    "can't": "cannot",
    "won't": "will not",
    "don't": "do not",
    "doesn't": "does not",
    "didn't": "did not",
    "isn't": "is not",
    "aren't": "are not",
    "i'm": "I am",
    "i'll": "I will",
    "i've": "I have",
    "it's": "it is",
    "that's": "that is",
    "we're": "we are",
    "we'll": "we will",
    "you're": "you are",
    "you'll": "you will",
    "what's": "what is",
}
_CONTRACTION_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(c) for c in CONTRACTIONS) + r")\b", re.IGNORECASE
)
_SPACES = re.compile(r"\s{2,}")


class EnforcementResult(BaseModel):
    """Reply after policy enforcement."""

    text: str
    guardrails_fired: list[str] = Field(default_factory=list)
    behaviors_applied: list[str] = Field(default_factory=list)


def _expand_contraction(match: re.Match[str]) -> str:
    word = match.group(0)
    expanded = CONTRACTIONS[word.lower()]
    if word[0].isupper() and not expanded.startswith("I "):
        return expanded[0].upper() + expanded[1:]
    return expanded


def _keep_first_match(pattern: re.Pattern[str], text: str) -> str:
    seen = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal seen
        if seen:
            return ""
        seen = True
        return match.group(0)

    return _SPACES.sub(" ", pattern.sub(_replace, text)).strip()


class PolicyEnforcer:
    """Rewrites outgoing replies according to a PolicyArtifact.

    Guardrails run first so behavior rules never reintroduce redacted
    content.
    """

    def apply(
        self,
        text: str,
        artifact: PolicyArtifact | None,
        *,
        entities: dict[str, str] | None = None,
        first_turn: bool = False,
    ) -> EnforcementResult:
        """Enforce ``artifact`` on ``text``.

        Args:
            text: Reply produced by the route handler
            artifact: Active policy, or None to pass the text through
            entities: Caller details to read back when CONFIRM_ENTITIES is on
            first_turn: Whether this is the call's opening reply

        Returns:
            EnforcementResult with the rewritten text
        """
        if artifact is None or not text:
            return EnforcementResult(text=text)

        fired: list[str] = []
        for flag in sorted(artifact.guardrail_flags):
            pattern = artifact.guardrail_patterns.get(flag)
            if pattern is None or not pattern.search(text):
                continue
            fired.append(flag)
            if flag == GuardrailFlag.NO_APOLOGIES_SPAM.value:
                text = _keep_first_match(pattern.regex, text)
            else:
                text = pattern.regex.sub(GUARDRAIL_REPLACEMENTS[flag], text)

        applied: list[str] = []
        behaviors = artifact.behavior_flags

        if BehaviorFlag.POLITE_PROFESSIONAL.value in behaviors:
            expanded = _CONTRACTION_PATTERN.sub(_expand_contraction, text)
            if expanded != text:
                applied.append(BehaviorFlag.POLITE_PROFESSIONAL.value)
                text = expanded

        if BehaviorFlag.CONFIRM_ENTITIES.value in behaviors and entities:
            details = ", ".join(f"{key}: {value}" for key, value in entities.items())
            text = f"{text} Just to confirm: {details}."
            applied.append(BehaviorFlag.CONFIRM_ENTITIES.value)

        if BehaviorFlag.ACK_OK.value in behaviors and not text.lower().startswith("ok"):
            text = f"Ok, {text}"
            applied.append(BehaviorFlag.ACK_OK.value)

        if (
            BehaviorFlag.USE_COMPANY_NAME.value in behaviors
            and first_turn
            and artifact.company_name
        ):
            text = f"Thanks for calling {artifact.company_name}! {text}"
            applied.append(BehaviorFlag.USE_COMPANY_NAME.value)

        return EnforcementResult(text=text, guardrails_fired=fired, behaviors_applied=applied)
