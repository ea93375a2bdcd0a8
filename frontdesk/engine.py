"""FrontDeskEngine: wires compilation and turn handling together.

The engine owns the stores and exposes the two entry points the outside
world uses: compiling a tenant's policy and processing a caller turn.
"""

from uuid import UUID

import redis.asyncio as redis

from frontdesk.config.settings import Settings
from frontdesk.conversation.handlers import ScriptedTurnHandlers, TurnHandlers
from frontdesk.conversation.machine import TurnStateMachine
from frontdesk.conversation.models import CallAction, CallTurnState, TurnResult
from frontdesk.conversation.store import CallStateStore
from frontdesk.conversation.stores.inmemory import InMemoryCallStateStore
from frontdesk.conversation.stores.redis import RedisCallStateStore
from frontdesk.errors import DependencyError
from frontdesk.observability.logging import get_logger
from frontdesk.policy.cache import ArtifactCache, InMemoryArtifactCache, RedisArtifactCache
from frontdesk.policy.compiler import PolicyCompiler
from frontdesk.policy.models import CompileResult, PolicyArtifact, RawPolicy
from frontdesk.routing.models import Decision
from frontdesk.tenants.models import CompileStatus
from frontdesk.tenants.store import TenantPolicyRepository
from frontdesk.tenants.stores.inmemory import InMemoryTenantPolicyRepository
from frontdesk.tenants.stores.redis import RedisTenantPolicyRepository

logger = get_logger(__name__)


class FrontDeskEngine:
    """Entry point for policy compilation and call-turn processing."""

    def __init__(
        self,
        repository: TenantPolicyRepository,
        cache: ArtifactCache,
        state_store: CallStateStore,
        settings: Settings,
        handlers: TurnHandlers | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            repository: Tenant routing rules, overrides and compile lock
            cache: Compiled artifact cache
            state_store: Per-call state persistence
            settings: Application settings
            handlers: Route handlers (scripted defaults if not provided)
        """
        self.repository = repository
        self.cache = cache
        self.state_store = state_store
        self.settings = settings
        self.compiler = PolicyCompiler(repository, cache, settings.policy)
        self.machine = TurnStateMachine(
            repository,
            cache,
            handlers or ScriptedTurnHandlers(settings.turn),
            config=settings.turn,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        redis_client: redis.Redis | None = None,
        handlers: TurnHandlers | None = None,
    ) -> "FrontDeskEngine":
        """Build an engine with the backends named in ``settings.storage``.

        Args:
            settings: Application settings
            redis_client: Client to use for the redis backend; created from
                ``storage.redis_url`` when omitted
            handlers: Route handlers

        Returns:
            Configured engine
        """
        storage = settings.storage
        if storage.backend == "redis":
            client = redis_client or redis.from_url(storage.redis_url, decode_responses=True)
            logger.info("engine_backend_selected", backend="redis")
            return cls(
                repository=RedisTenantPolicyRepository(client, storage.tenant_key_prefix),
                cache=RedisArtifactCache(client, storage.artifact_key_prefix),
                state_store=RedisCallStateStore(
                    client, storage.call_key_prefix, storage.call_state_ttl_seconds
                ),
                settings=settings,
                handlers=handlers,
            )

        logger.info("engine_backend_selected", backend="inmemory")
        return cls(
            repository=InMemoryTenantPolicyRepository(),
            cache=InMemoryArtifactCache(storage.artifact_key_prefix),
            state_store=InMemoryCallStateStore(),
            settings=settings,
            handlers=handlers,
        )

    async def compile_policy(self, tenant_id: UUID, raw_policy: RawPolicy) -> CompileResult:
        """Compile and publish a tenant's policy."""
        return await self.compiler.compile(tenant_id, raw_policy)

    async def activate_policy(self, tenant_id: UUID, cache_key: str) -> PolicyArtifact:
        """Make a previously published artifact the active one."""
        return await self.compiler.activate(tenant_id, cache_key)

    async def policy_status(self, tenant_id: UUID) -> CompileStatus:
        """Compile lock and last-compile state for a tenant."""
        return await self.compiler.status(tenant_id)

    async def process_turn(
        self,
        tenant_id: UUID,
        call_id: UUID,
        decision: Decision,
        user_input: str,
    ) -> TurnResult:
        """Run one caller turn against stored call state.

        State is created on the call's first turn, saved after each turn
        and discarded once the call hangs up or is transferred. A state
        store outage never fails the turn: an unreadable state restarts
        the call from fresh state and a failed write is logged.

        Args:
            tenant_id: Owning tenant
            call_id: Live call identifier
            decision: Classifier output for the utterance
            user_input: Raw caller text

        Returns:
            TurnResult for the caller-facing layer
        """
        state = await self._load_state(tenant_id, call_id)
        if state is None:
            state = CallTurnState(call_id=call_id, tenant_id=tenant_id)
            logger.debug("call_state_created", tenant_id=str(tenant_id), call_id=str(call_id))

        result = await self.machine.handle_turn(decision, tenant_id, state, user_input)

        try:
            if result.call_action == CallAction.CONTINUE:
                await self.state_store.save(result.call_state)
            else:
                await self.state_store.delete(call_id)
                logger.info(
                    "call_state_discarded",
                    tenant_id=str(tenant_id),
                    call_id=str(call_id),
                    call_action=result.call_action.value,
                )
        except DependencyError as e:
            logger.error(
                "call_state_persist_failed",
                tenant_id=str(tenant_id),
                call_id=str(call_id),
                call_action=result.call_action.value,
                error=str(e),
            )
        return result

    async def _load_state(self, tenant_id: UUID, call_id: UUID) -> CallTurnState | None:
        """Stored call state, or None when it is missing or unreadable."""
        try:
            return await self.state_store.get(call_id)
        except DependencyError as e:
            logger.error(
                "call_state_load_failed",
                tenant_id=str(tenant_id),
                call_id=str(call_id),
                error=str(e),
            )
            return None
