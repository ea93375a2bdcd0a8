"""Return-lane policy.

Nudges conversations that linger in one non-booking lane back toward an
outcome. Counters live on the call's LaneContext.
"""

from pydantic import BaseModel

from frontdesk.config.models.turn import ReturnLaneConfig
from frontdesk.conversation.models import LaneContext
from frontdesk.routing.models import LaneAction


class LaneDecision(BaseModel):
    """Follow-up action chosen for this turn, with the updated counters."""

    action: LaneAction
    reason: str
    lane_context: LaneContext
    applied: bool = True


class ReturnLanePolicy:
    """Turn-count based override of a rule's follow-up action."""

    def __init__(self, config: ReturnLaneConfig | None = None) -> None:
        self._config = config or ReturnLaneConfig()

    def apply(
        self,
        action: LaneAction,
        lane: str,
        lane_context: LaneContext,
        tier: int | None = None,
        rule_enabled: bool = True,
    ) -> LaneDecision:
        """Decide the follow-up action for a turn in ``lane``.

        Args:
            action: Follow-up the matched rule asks for
            lane: Lane tag of this turn
            lane_context: Counters from the previous turn; not mutated
            tier: Answer tier reported by the scenario engine
            rule_enabled: Rule-level kill switch

        Returns:
            LaneDecision carrying the final action and new counters
        """
        config = self._config
        if not config.enabled or not rule_enabled:
            return LaneDecision(
                action=action,
                reason="return lane disabled",
                lane_context=lane_context,
                applied=False,
            )

        context = lane_context.model_copy(deep=True)
        if context.current_lane != lane:
            context.current_lane = lane
            context.turns_in_lane = 0
        else:
            context.turns_in_lane += 1
        context.thresholds = {
            "max_turns_before_push": config.max_turns_before_push,
            "force_action_after_turns": config.force_action_after_turns,
        }

        turns = context.turns_in_lane
        if turns >= config.force_action_after_turns:
            chosen = LaneAction(config.force_action)
            reason = f"forced after {turns} turns in lane"
        elif turns < config.max_turns_before_push:
            chosen = LaneAction.NONE
            reason = f"{turns} turns in lane, below push threshold"
        else:
            chosen = action
            reason = "rule action"

        if (
            chosen.is_hard
            and tier is not None
            and tier >= config.fallback_tier
            and not config.allow_hard_actions_on_fallback_tier
        ):
            chosen = LaneAction.PUSH_BOOKING
            reason = f"{reason}; hard action downgraded on fallback tier"

        if chosen != LaneAction.NONE:
            context.push_count += 1

        return LaneDecision(action=chosen, reason=reason, lane_context=context)
