"""Test factories for creating test data."""

from tests.factories.conversation import CallStateFactory
from tests.factories.policy import (
    EdgeCaseRuleFactory,
    RawPolicyFactory,
    TransferRuleFactory,
)
from tests.factories.routing import DecisionFactory, RoutingRuleFactory

__all__ = [
    "CallStateFactory",
    "DecisionFactory",
    "EdgeCaseRuleFactory",
    "RawPolicyFactory",
    "RoutingRuleFactory",
    "TransferRuleFactory",
]
