"""Policy domain models.

A tenant edits a RawPolicy ("cheat sheet"). The compiler turns it into an
immutable PolicyArtifact that turn handling reads on every call.
"""

import re
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

DEFAULT_PRIORITY = 10


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class PolicyStatus(str, Enum):
    """Publication status of a policy version."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class BehaviorFlag(str, Enum):
    """Response styling rules applied to every outgoing reply."""

    ACK_OK = "ACK_OK"
    USE_COMPANY_NAME = "USE_COMPANY_NAME"
    CONFIRM_ENTITIES = "CONFIRM_ENTITIES"
    POLITE_PROFESSIONAL = "POLITE_PROFESSIONAL"


class GuardrailFlag(str, Enum):
    """Content the agent must never say."""

    NO_PRICES = "NO_PRICES"
    NO_PHONE_NUMBERS = "NO_PHONE_NUMBERS"
    NO_URLS = "NO_URLS"
    NO_APOLOGIES_SPAM = "NO_APOLOGIES_SPAM"
    NO_MEDICAL_ADVICE = "NO_MEDICAL_ADVICE"
    NO_LEGAL_ADVICE = "NO_LEGAL_ADVICE"


class ConflictType(str, Enum):
    """Rule family a conflict was found in."""

    EDGE_CASE_CONFLICT = "EDGE_CASE_CONFLICT"
    TRANSFER_RULE_CONFLICT = "TRANSFER_RULE_CONFLICT"


class ConflictResolution(str, Enum):
    """How the compiler resolved a conflict."""

    AUTO_DEMOTE_LATER = "AUTO_DEMOTE_LATER"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class EdgeCaseRule(BaseModel):
    """Scripted answer for a recognizable caller question."""

    id: str = Field(..., min_length=1)
    name: str = ""
    trigger_patterns: list[str] = Field(
        default_factory=list,
        description="Regular expressions matched case-insensitively against the utterance",
    )
    response_text: str
    priority: int = DEFAULT_PRIORITY
    enabled: bool = True


class TransferRule(BaseModel):
    """Live-transfer target for an intent."""

    id: str = Field(..., min_length=1)
    intent_tag: str = Field(..., min_length=1)
    contact: str | None = None
    phone: str | None = None
    script: str | None = None
    collect_entities: list[str] = Field(default_factory=list)
    after_hours_only: bool = False
    trigger_phrases: list[str] = Field(
        default_factory=list,
        description="Extra literal phrases added to the intent's built-in vocabulary",
    )
    priority: int = DEFAULT_PRIORITY
    enabled: bool = True


class RawPolicy(BaseModel):
    """Tenant-authored policy, as saved from the admin console."""

    model_config = ConfigDict(extra="ignore")

    version: int = Field(default=1, ge=1)
    status: PolicyStatus = PolicyStatus.DRAFT
    company_name: str | None = None
    behavior_rules: list[BehaviorFlag] = Field(default_factory=list)
    edge_cases: list[EdgeCaseRule] = Field(default_factory=list)
    transfer_rules: list[TransferRule] = Field(default_factory=list)
    guardrails: list[GuardrailFlag] = Field(default_factory=list)
    allowed_actions: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_structure(self) -> "RawPolicy":
        families = (("edge_cases", self.edge_cases), ("transfer_rules", self.transfer_rules))
        for family, rules in families:
            ids = [rule.id for rule in rules]
            duplicates = sorted({rule_id for rule_id in ids if ids.count(rule_id) > 1})
            if duplicates:
                raise ValueError(f"duplicate rule ids in {family}: {', '.join(duplicates)}")

        reserved = {flag.value for flag in BehaviorFlag} | {flag.value for flag in GuardrailFlag}
        clashing = sorted(set(self.allowed_actions) & reserved)
        if clashing:
            raise ValueError(f"allowed_actions may not reuse flag names: {', '.join(clashing)}")
        return self


# ---------------------------------------------------------------------------
# Compiled artifact
# ---------------------------------------------------------------------------


class CompiledPattern(BaseModel):
    """A case-insensitive regular expression kept alongside its source.

    Only the source is serialized; the regex is rebuilt on load.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    _regex: re.Pattern[str] = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._regex = re.compile(self.source, re.IGNORECASE)

    @property
    def regex(self) -> re.Pattern[str]:
        return self._regex

    def search(self, text: str) -> bool:
        return self._regex.search(text) is not None


class CompiledEdgeCase(BaseModel):
    """Edge-case rule ready for matching."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    patterns: tuple[CompiledPattern, ...] = ()
    response_text: str
    priority: int

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)


class CompiledTransferRule(BaseModel):
    """Transfer rule ready for matching."""

    model_config = ConfigDict(frozen=True)

    id: str
    intent_tag: str
    patterns: tuple[CompiledPattern, ...] = ()
    contact: str | None = None
    phone: str | None = None
    script: str | None = None
    collect_entities: tuple[str, ...] = ()
    after_hours_only: bool = False
    priority: int

    @property
    def action_flag(self) -> str:
        """Allowed-action flag that must be present for this transfer to fire."""
        return f"TRANSFER_{self.intent_tag.upper()}"

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)


class PolicyArtifact(BaseModel):
    """Immutable compiled snapshot of a tenant's policy.

    Rule tuples are sorted ascending by priority, ties by rule id, and never
    contain disabled rules.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: UUID
    version: int
    status: PolicyStatus
    compiled_at: datetime = Field(default_factory=utc_now)
    checksum: str = ""
    company_name: str | None = None
    edge_cases: tuple[CompiledEdgeCase, ...] = ()
    transfer_rules: tuple[CompiledTransferRule, ...] = ()
    behavior_flags: frozenset[str] = frozenset()
    guardrail_flags: frozenset[str] = frozenset()
    allowed_action_flags: frozenset[str] = frozenset()
    guardrail_patterns: dict[str, CompiledPattern] = Field(default_factory=dict)

    def allows(self, action_flag: str) -> bool:
        return action_flag in self.allowed_action_flags


class ConflictRecord(BaseModel):
    """Two same-priority rules whose triggers overlap too much."""

    type: ConflictType
    rule_id_a: str
    rule_id_b: str
    overlap_score: float
    priority: int
    resolution: ConflictResolution = ConflictResolution.AUTO_DEMOTE_LATER


class CompileResult(BaseModel):
    """Outcome of one compile call."""

    artifact: PolicyArtifact
    checksum: str
    cache_key: str
    conflicts: list[ConflictRecord] = Field(default_factory=list)
    elapsed_ms: float
    published: bool = True
    activated: bool = False
