"""Prometheus metrics for frontdesk."""

from prometheus_client import Counter, Histogram

# Compile metrics
POLICY_COMPILE_COUNT = Counter(
    "frontdesk_policy_compile_total",
    "Policy compile attempts",
    labelnames=["tenant_id", "outcome"],
)

POLICY_COMPILE_LATENCY = Histogram(
    "frontdesk_policy_compile_latency_seconds",
    "Policy compile latency in seconds",
    labelnames=["tenant_id"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

POLICY_CONFLICTS = Counter(
    "frontdesk_policy_conflicts_total",
    "Same-priority rule conflicts detected and auto-resolved",
    labelnames=["tenant_id", "conflict_type"],
)

POLICY_PATTERNS_DROPPED = Counter(
    "frontdesk_policy_patterns_dropped_total",
    "Trigger patterns discarded because they failed to compile",
    labelnames=["tenant_id"],
)

COMPILE_LOCK_CONTENTION = Counter(
    "frontdesk_compile_lock_contention_total",
    "Compiles rejected because another compile held the tenant lock",
    labelnames=["tenant_id"],
)

PUBLISH_FAILURES = Counter(
    "frontdesk_publish_failures_total",
    "Best-effort publication side effects that failed",
    labelnames=["tenant_id", "target"],
)

# Turn metrics
TURN_ROUTES = Counter(
    "frontdesk_turn_routes_total",
    "Turns by final route",
    labelnames=["tenant_id", "route"],
)

TURN_OVERRIDES = Counter(
    "frontdesk_turn_overrides_total",
    "Turns whose routing was decided before the router ran",
    labelnames=["tenant_id", "reason"],
)

HANDLER_ERRORS = Counter(
    "frontdesk_handler_errors_total",
    "Route handler failures replaced with a fallback response",
    labelnames=["tenant_id", "route"],
)

RETURN_LANE_ACTIONS = Counter(
    "frontdesk_return_lane_actions_total",
    "Follow-up actions emitted by the return-lane policy",
    labelnames=["tenant_id", "action"],
)

TURN_LATENCY = Histogram(
    "frontdesk_turn_latency_seconds",
    "Turn handling latency in seconds",
    labelnames=["tenant_id"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)
