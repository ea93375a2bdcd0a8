"""Turn routing over tenant triage cards and compiled policy."""

from frontdesk.routing.models import (
    Decision,
    DecisionAction,
    LaneAction,
    Route,
    RouteResult,
    RouteSource,
    RoutingRule,
    RuleAction,
)

__all__ = [
    "Decision",
    "DecisionAction",
    "LaneAction",
    "Route",
    "RouteResult",
    "RouteSource",
    "RoutingRule",
    "RuleAction",
]
