"""Tenant policy compilation and enforcement."""

from frontdesk.policy.models import (
    BehaviorFlag,
    CompiledEdgeCase,
    CompiledTransferRule,
    CompileResult,
    ConflictRecord,
    ConflictType,
    EdgeCaseRule,
    GuardrailFlag,
    PolicyArtifact,
    PolicyStatus,
    RawPolicy,
    TransferRule,
)

__all__ = [
    "BehaviorFlag",
    "CompileResult",
    "CompiledEdgeCase",
    "CompiledTransferRule",
    "ConflictRecord",
    "ConflictType",
    "EdgeCaseRule",
    "GuardrailFlag",
    "PolicyArtifact",
    "PolicyStatus",
    "RawPolicy",
    "TransferRule",
]
