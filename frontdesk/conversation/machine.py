"""Turn state machine.

Handles one caller utterance. Checks run in a fixed order and the first
one that claims the turn produces the reply:

1. Spam
2. Booking hard lock (unless an unlock signal fires)
3. Pending confirmation
4. Routing, then the confirmation gate
5. Route execution, return-lane nudge and policy enforcement
"""

import time
from datetime import datetime
from typing import Any
from uuid import UUID

from frontdesk.config.models.turn import TurnConfig
from frontdesk.conversation.booking import FIELD_STEPS, BookingSlotFiller, SlotFillResult
from frontdesk.conversation.confirmation import ConfirmationGate, ReplyKind, classify_reply
from frontdesk.conversation.handlers import (
    TIER_FALLBACK,
    HandlerResponse,
    TurnContext,
    TurnHandlers,
)
from frontdesk.conversation.models import (
    CallAction,
    CallTurnState,
    ConfirmationSeverity,
    PendingConfirmation,
    TurnPhase,
    TurnResult,
)
from frontdesk.conversation.return_lane import ReturnLanePolicy
from frontdesk.conversation.signals import detect_unlock, is_frustrated, is_spam
from frontdesk.errors import DependencyError, HandlerError
from frontdesk.observability.logging import get_logger
from frontdesk.observability.metrics import (
    HANDLER_ERRORS,
    RETURN_LANE_ACTIONS,
    TURN_LATENCY,
    TURN_OVERRIDES,
    TURN_ROUTES,
)
from frontdesk.policy.cache import ArtifactCache
from frontdesk.policy.enforcement import PolicyEnforcer
from frontdesk.policy.models import PolicyArtifact, utc_now
from frontdesk.routing.matcher import TriageRouter
from frontdesk.routing.models import (
    Decision,
    LaneAction,
    Route,
    RouteResult,
    RouteSource,
    RoutingRule,
)
from frontdesk.tenants.store import TenantPolicyRepository

logger = get_logger(__name__)

# Routes whose replies keep the caller talking and so count toward a lane
_LANE_ROUTES = frozenset({Route.SCENARIO_ENGINE, Route.MESSAGE_ONLY})


class TurnStateMachine:
    """Decides and produces the reply to one caller turn."""

    def __init__(
        self,
        repository: TenantPolicyRepository,
        cache: ArtifactCache,
        handlers: TurnHandlers,
        config: TurnConfig | None = None,
        router: TriageRouter | None = None,
        enforcer: PolicyEnforcer | None = None,
    ) -> None:
        """Initialize the state machine.

        Args:
            repository: Source of routing rules and tenant overrides
            cache: Source of the tenant's active compiled policy
            handlers: Route handlers
            config: Global turn defaults
            router: Triage router (built from config if not provided)
            enforcer: Policy enforcer for outgoing replies
        """
        self._repository = repository
        self._cache = cache
        self._handlers = handlers
        self._config = config or TurnConfig()
        self._router = router or TriageRouter(
            business_hours=(self._config.business_hours_start, self._config.business_hours_end)
        )
        self._enforcer = enforcer or PolicyEnforcer()
        self._gate = ConfirmationGate()
        self._booking = BookingSlotFiller(self._config.booking)

    async def handle_turn(
        self,
        decision: Decision,
        tenant_id: UUID,
        call_state: CallTurnState,
        user_input: str,
        now: datetime | None = None,
    ) -> TurnResult:
        """Handle one caller utterance.

        Args:
            decision: Classifier output for the utterance
            tenant_id: Owning tenant
            call_state: State after the previous turn; not mutated
            user_input: Raw caller text
            now: Local time for after-hours transfer rules

        Returns:
            TurnResult with the reply and the updated call state
        """
        start = time.perf_counter()
        state = call_state.model_copy(deep=True)
        state.turn_count += 1
        state.updated_at = utc_now()
        text = user_input or ""
        config = await self._config_for(tenant_id)

        if is_frustrated(text, config.rescue.frustration_triggers):
            state.frustration_count += 1

        result = await self._run(decision, tenant_id, state, text, config, now)

        TURN_ROUTES.labels(
            tenant_id=str(tenant_id), route=result.route.value if result.route else "none"
        ).inc()
        TURN_LATENCY.labels(tenant_id=str(tenant_id)).observe(time.perf_counter() - start)
        logger.info(
            "turn_handled",
            tenant_id=str(tenant_id),
            call_id=str(state.call_id),
            turn=state.turn_count,
            route=result.route.value if result.route else None,
            call_action=result.call_action.value,
            phase=state.phase.value,
            reason=result.reason,
        )
        return result

    async def _run(
        self,
        decision: Decision,
        tenant_id: UUID,
        state: CallTurnState,
        text: str,
        config: TurnConfig,
        now: datetime | None,
    ) -> TurnResult:
        spam_result = self._check_spam(decision, tenant_id, state, text, config)
        if spam_result is not None:
            return spam_result

        artifact = await self._load_artifact(tenant_id)
        first_turn = state.turn_count == 1

        if state.booking_locked:
            unlock = detect_unlock(text, config.rescue.frustration_triggers)
            if unlock is None:
                self._override(tenant_id, "booking_lock")
                return await self._continue_booking(decision, tenant_id, state, text, artifact)

            self._override(tenant_id, "booking_unlock")
            logger.info(
                "booking_lock_released",
                tenant_id=str(tenant_id),
                call_id=str(state.call_id),
                unlock_reason=unlock.reason.value,
                phase=unlock.phase.value,
            )
            state.booking_locked = False
            state.phase = unlock.phase
            if unlock.phase == TurnPhase.RESCUE:
                return self._rescue(state, config, artifact, reason=unlock.reason.value)

        if state.pending_confirmation is not None:
            return await self._resolve_confirmation(
                state.pending_confirmation, decision, tenant_id, state, text, config, artifact
            )

        if state.phase != TurnPhase.RESCUE:
            offer = self._offer_human(state, config)
            if offer is not None:
                return self._respond(state, offer, artifact, reason="frustration_offer_human")

        rules = await self._load_rules(tenant_id)
        route_result = self._router.route(decision, rules, artifact, text, now)

        pending = self._gate.evaluate(
            route_result, decision, config.confirmation, turn=state.turn_count
        )
        if pending is not None:
            state.pending_confirmation = pending
            if state.phase == TurnPhase.FREE:
                state.phase = TurnPhase.TRIAGE
            logger.info(
                "confirmation_requested",
                tenant_id=str(tenant_id),
                call_id=str(state.call_id),
                route=pending.action.value,
                severity=pending.severity.value,
            )
            return self._respond(
                state,
                pending.question,
                artifact,
                reason=f"confirmation_required:{pending.severity.value}",
                route=None,
                debug={"route_reason": route_result.reason},
            )

        return await self._execute(
            decision, tenant_id, state, text, config, artifact, route_result, first_turn
        )

    # ------------------------------------------------------------------
    # Pre-routing checks
    # ------------------------------------------------------------------

    def _check_spam(
        self,
        decision: Decision,
        tenant_id: UUID,
        state: CallTurnState,
        text: str,
        config: TurnConfig,
    ) -> TurnResult | None:
        spam = config.spam
        if not spam.enabled:
            return None
        if not (decision.flag("spam") or is_spam(text, spam.phrases)):
            return None

        state.spam_detected = True
        self._override(tenant_id, "spam")
        logger.info(
            "spam_detected",
            tenant_id=str(tenant_id),
            call_id=str(state.call_id),
            on_spam=spam.on_spam,
        )
        if spam.on_spam == "flag_only":
            return None

        state.phase = TurnPhase.COMPLETE
        text = spam.dismiss_message if spam.on_spam == "polite_dismiss" else ""
        return TurnResult(
            text=text,
            call_action=CallAction.HANGUP,
            route=Route.END_CALL,
            reason=f"spam:{spam.on_spam}",
            call_state=state,
        )

    async def _continue_booking(
        self,
        decision: Decision,
        tenant_id: UUID,
        state: CallTurnState,
        text: str,
        artifact: PolicyArtifact | None,
    ) -> TurnResult:
        fill = self._booking.fill(state, text)
        await self._after_slot_fill(fill, decision, tenant_id, state, text)
        return self._respond(
            state,
            fill.text,
            artifact,
            reason=f"booking:{fill.step.value}",
            route=Route.BOOKING,
            call_action=CallAction.HANGUP if fill.call_finished else CallAction.CONTINUE,
        )

    async def _resolve_confirmation(
        self,
        pending: PendingConfirmation,
        decision: Decision,
        tenant_id: UUID,
        state: CallTurnState,
        text: str,
        config: TurnConfig,
        artifact: PolicyArtifact | None,
    ) -> TurnResult:
        reply = classify_reply(text)
        self._override(tenant_id, f"confirmation_{reply.value}")

        if reply == ReplyKind.CONFIRM:
            state.pending_confirmation = None
            logger.info(
                "confirmation_accepted",
                tenant_id=str(tenant_id),
                call_id=str(state.call_id),
                route=pending.action.value,
            )
            return await self._execute(
                decision,
                tenant_id,
                state,
                text,
                config,
                artifact,
                pending.route_result,
                first_turn=False,
            )

        if reply == ReplyKind.DENY:
            state.pending_confirmation = None
            logger.info(
                "confirmation_denied",
                tenant_id=str(tenant_id),
                call_id=str(state.call_id),
                route=pending.action.value,
            )
            recovery = config.confirmation.recovery_slot
            if recovery is None:
                state.phase = TurnPhase.TRIAGE
                return self._respond(
                    state,
                    config.confirmation.clarify_phrase,
                    artifact,
                    reason="confirmation_denied",
                )
            state.collected_slots.pop(recovery, None)
            state.booking_locked = True
            state.phase = TurnPhase.BOOKING
            state.booking_step = FIELD_STEPS[recovery]
            return self._respond(
                state,
                self._booking.prompt_for(state.booking_step, state.collected_slots),
                artifact,
                reason=f"confirmation_denied:recover_{recovery}",
                route=Route.BOOKING,
            )

        return self._respond(
            state, pending.question, artifact, reason="confirmation_ambiguous", route=None
        )

    def _rescue(
        self,
        state: CallTurnState,
        config: TurnConfig,
        artifact: PolicyArtifact | None,
        reason: str,
    ) -> TurnResult:
        offer = self._offer_human(state, config)
        if offer is not None:
            return self._respond(state, offer, artifact, reason=f"rescue:{reason}:offer_human")
        return self._respond(
            state, config.rescue.rescue_phrase, artifact, reason=f"rescue:{reason}"
        )

    def _offer_human(self, state: CallTurnState, config: TurnConfig) -> str | None:
        """Hold a transfer for confirmation once the caller is repeatedly frustrated."""
        if state.frustration_count < config.rescue.offer_human_after:
            return None
        question = config.rescue.offer_human_phrase
        state.pending_confirmation = PendingConfirmation(
            action=Route.TRANSFER,
            severity=ConfirmationSeverity.HIGH,
            question=question,
            route_result=RouteResult(
                route=Route.TRANSFER,
                source=RouteSource.FALLBACK,
                reason="caller asked for a person after repeated frustration",
            ),
            asked_at_turn=state.turn_count,
        )
        state.frustration_count = 0
        return question

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _execute(
        self,
        decision: Decision,
        tenant_id: UUID,
        state: CallTurnState,
        text: str,
        config: TurnConfig,
        artifact: PolicyArtifact | None,
        route_result: RouteResult,
        first_turn: bool,
    ) -> TurnResult:
        route = route_result.route
        state.record_route(route)
        state.entities = {**state.entities, **decision.entities}
        state.flags = {**state.flags, **decision.flags}
        if decision.intent_tag:
            state.last_intent = decision.intent_tag

        context = TurnContext(
            tenant_id=tenant_id,
            decision=decision,
            user_input=text,
            route_result=route_result,
            call_state=state,
        )

        if route == Route.BOOKING:
            prefill = {k: str(v) for k, v in decision.entities.items() if v is not None}
            fill = self._booking.start(state, prefill)
            await self._after_slot_fill(fill, decision, tenant_id, state, text)
            return self._respond(
                state,
                fill.text,
                artifact,
                reason=route_result.reason,
                route=Route.BOOKING,
                first_turn=first_turn,
            )

        response = await self._call_handler(route, context, tenant_id, config)

        call_action = CallAction.CONTINUE
        transfer_target = response.transfer_target
        if route == Route.TRANSFER:
            call_action = CallAction.TRANSFER
            state.phase = TurnPhase.COMPLETE
        elif route == Route.END_CALL:
            call_action = CallAction.HANGUP
            state.phase = TurnPhase.COMPLETE
        elif state.phase in (TurnPhase.FREE, TurnPhase.RESCUE):
            state.phase = TurnPhase.TRIAGE

        reply = response.text
        lane_action = LaneAction.NONE
        if route in _LANE_ROUTES:
            lane_action, reply, call_action = self._apply_return_lane(
                tenant_id, state, config, route_result, response, reply, call_action
            )
            if call_action == CallAction.TRANSFER:
                transfer_target = transfer_target or route_result.transfer_target

        return self._respond(
            state,
            reply,
            artifact,
            reason=route_result.reason,
            route=route,
            call_action=call_action,
            lane_action=lane_action,
            transfer_target=transfer_target,
            first_turn=first_turn,
            entities=decision.entities,
            debug={"route_source": route_result.source.value, "tier": response.tier},
        )

    async def _call_handler(
        self,
        route: Route,
        context: TurnContext,
        tenant_id: UUID,
        config: TurnConfig,
    ) -> HandlerResponse:
        handler = {
            Route.SCENARIO_ENGINE: self._handlers.run_scenario,
            Route.TRANSFER: self._handlers.transfer,
            Route.MESSAGE_ONLY: self._handlers.take_message,
            Route.END_CALL: self._handlers.end_call,
        }[route]
        try:
            return await handler(context)
        except Exception as e:
            HANDLER_ERRORS.labels(tenant_id=str(tenant_id), route=route.value).inc()
            log = logger.warning if isinstance(e, HandlerError) else logger.exception
            log(
                "handler_failed",
                tenant_id=str(tenant_id),
                call_id=str(context.call_state.call_id),
                route=route.value,
                error=str(e),
            )
            if route == Route.END_CALL:
                return HandlerResponse(text=config.booking.goodbye)
            return HandlerResponse(
                text=context.decision.next_prompt or config.fallback_text,
                tier=TIER_FALLBACK,
            )

    def _apply_return_lane(
        self,
        tenant_id: UUID,
        state: CallTurnState,
        config: TurnConfig,
        route_result: RouteResult,
        response: HandlerResponse,
        reply: str,
        call_action: CallAction,
    ) -> tuple[LaneAction, str, CallAction]:
        rule: RoutingRule | None = route_result.matched_rule
        lane = (rule.lane if rule and rule.lane else None) or config.return_lane.default_lane
        requested = rule.lane_action if rule else LaneAction.PUSH_BOOKING

        decision = ReturnLanePolicy(config.return_lane).apply(
            requested,
            lane,
            state.lane_context,
            tier=response.tier,
            rule_enabled=rule.return_lane_enabled if rule else True,
        )
        state.lane_context = decision.lane_context
        if not decision.applied or decision.action == LaneAction.NONE:
            return LaneAction.NONE, reply, call_action

        RETURN_LANE_ACTIONS.labels(tenant_id=str(tenant_id), action=decision.action.value).inc()
        logger.info(
            "return_lane_action",
            tenant_id=str(tenant_id),
            call_id=str(state.call_id),
            lane=lane,
            action=decision.action.value,
            turns_in_lane=decision.lane_context.turns_in_lane,
            reason=decision.reason,
        )

        if decision.action == LaneAction.PUSH_BOOKING:
            return decision.action, f"{reply} {config.return_lane.push_phrase}", call_action
        if decision.action == LaneAction.ESCALATE:
            state.phase = TurnPhase.COMPLETE
            return decision.action, f"{reply} {config.transfer_phrase}", CallAction.TRANSFER
        if decision.action == LaneAction.TAKE_MESSAGE:
            return decision.action, f"{reply} {config.take_message_phrase}", call_action
        state.phase = TurnPhase.COMPLETE
        return decision.action, f"{reply} {config.booking.goodbye}", CallAction.HANGUP

    async def _after_slot_fill(
        self,
        fill: SlotFillResult,
        decision: Decision,
        tenant_id: UUID,
        state: CallTurnState,
        text: str,
    ) -> None:
        if not fill.booking_completed:
            return
        context = TurnContext(
            tenant_id=tenant_id,
            decision=decision,
            user_input=text,
            route_result=RouteResult(
                route=Route.BOOKING, source=RouteSource.FALLBACK, reason="booking completed"
            ),
            call_state=state,
        )
        try:
            await self._handlers.submit_booking(context, dict(state.collected_slots))
        except Exception as e:
            HANDLER_ERRORS.labels(tenant_id=str(tenant_id), route=Route.BOOKING.value).inc()
            logger.exception(
                "booking_submit_failed",
                tenant_id=str(tenant_id),
                call_id=str(state.call_id),
                error=str(e),
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _respond(
        self,
        state: CallTurnState,
        text: str,
        artifact: PolicyArtifact | None,
        *,
        reason: str,
        route: Route | None = None,
        call_action: CallAction = CallAction.CONTINUE,
        lane_action: LaneAction = LaneAction.NONE,
        transfer_target: str | None = None,
        first_turn: bool = False,
        entities: dict[str, Any] | None = None,
        debug: dict[str, Any] | None = None,
    ) -> TurnResult:
        confirm = {k: str(v) for k, v in (entities or {}).items() if isinstance(v, str | int)}
        enforced = self._enforcer.apply(text, artifact, entities=confirm, first_turn=first_turn)
        details = dict(debug or {})
        if enforced.guardrails_fired:
            details["guardrails_fired"] = enforced.guardrails_fired
        if enforced.behaviors_applied:
            details["behaviors_applied"] = enforced.behaviors_applied
        return TurnResult(
            text=enforced.text,
            call_action=call_action,
            route=route,
            reason=reason,
            lane_action=lane_action,
            transfer_target=transfer_target,
            call_state=state,
            debug=details,
        )

    def _override(self, tenant_id: UUID, reason: str) -> None:
        TURN_OVERRIDES.labels(tenant_id=str(tenant_id), reason=reason).inc()

    async def _config_for(self, tenant_id: UUID) -> TurnConfig:
        """Global turn config with the tenant's overrides applied."""
        try:
            settings = await self._repository.get_settings(tenant_id)
        except DependencyError as e:
            logger.warning("tenant_settings_unavailable", tenant_id=str(tenant_id), error=str(e))
            return self._config
        if settings is None:
            return self._config
        overrides = {
            section: getattr(settings, section)
            for section in ("spam", "confirmation", "return_lane", "rescue")
            if getattr(settings, section) is not None
        }
        return self._config.model_copy(update=overrides)

    async def _load_rules(self, tenant_id: UUID) -> list[RoutingRule]:
        try:
            return await self._repository.get_routing_rules(tenant_id)
        except DependencyError as e:
            logger.warning("routing_rules_unavailable", tenant_id=str(tenant_id), error=str(e))
            return []

    async def _load_artifact(self, tenant_id: UUID) -> PolicyArtifact | None:
        try:
            return await self._cache.get_active(tenant_id)
        except DependencyError as e:
            logger.warning("active_policy_unavailable", tenant_id=str(tenant_id), error=str(e))
            return None
