"""Policy compiler.

Turns a tenant's RawPolicy into an immutable PolicyArtifact and publishes
it to the artifact cache. One compile per tenant runs at a time, enforced
by a compare-and-swap lock on the tenant record.
"""

import time
from uuid import UUID, uuid4

from frontdesk.config.models.policy import PolicyCompilerConfig
from frontdesk.errors import (
    ArtifactNotFoundError,
    CompileInProgressError,
    DependencyError,
    FrontDeskError,
    PolicyCompilationError,
)
from frontdesk.observability.logging import get_logger
from frontdesk.observability.metrics import (
    COMPILE_LOCK_CONTENTION,
    POLICY_COMPILE_COUNT,
    POLICY_COMPILE_LATENCY,
    POLICY_CONFLICTS,
    PUBLISH_FAILURES,
)
from frontdesk.policy.cache import ArtifactCache
from frontdesk.policy.checksum import compute_checksum
from frontdesk.policy.conflicts import detect_conflicts, resolve_conflicts
from frontdesk.policy.models import (
    CompiledEdgeCase,
    CompiledPattern,
    CompiledTransferRule,
    CompileResult,
    PolicyArtifact,
    PolicyStatus,
    RawPolicy,
)
from frontdesk.policy.patterns import (
    GUARDRAIL_PATTERNS,
    compile_pattern,
    transfer_pattern_sources,
)
from frontdesk.tenants.models import CompileMetadata, CompileStatus
from frontdesk.tenants.store import TenantPolicyRepository

logger = get_logger(__name__)


class PolicyCompiler:
    """Compiles and publishes tenant policy artifacts."""

    def __init__(
        self,
        repository: TenantPolicyRepository,
        cache: ArtifactCache,
        config: PolicyCompilerConfig | None = None,
    ) -> None:
        """Initialize the compiler.

        Args:
            repository: Tenant store holding the compile lock and metadata
            cache: Where compiled artifacts are published
            config: Compiler settings (defaults if not provided)
        """
        self._repository = repository
        self._cache = cache
        self._config = config or PolicyCompilerConfig()

    async def compile(self, tenant_id: UUID, raw_policy: RawPolicy) -> CompileResult:
        """Compile and publish a tenant's policy.

        Args:
            tenant_id: Owning tenant
            raw_policy: Policy as authored; never mutated

        Returns:
            CompileResult with the artifact, its cache key and any
            conflicts that were auto-resolved

        Raises:
            CompileInProgressError: Another compile holds the tenant's lock
            PolicyCompilationError: The artifact could not be built
        """
        start = time.perf_counter()
        token = str(uuid4())

        if not await self._repository.acquire_compile_lock(
            tenant_id, token, self._config.lock_ttl_seconds
        ):
            COMPILE_LOCK_CONTENTION.labels(tenant_id=str(tenant_id)).inc()
            POLICY_COMPILE_COUNT.labels(tenant_id=str(tenant_id), outcome="contended").inc()
            logger.warning(
                "compile_lock_contended",
                tenant_id=str(tenant_id),
                holder_ttl_seconds=await self._holder_ttl(tenant_id),
            )
            raise CompileInProgressError(tenant_id)

        try:
            conflicts = detect_conflicts(
                raw_policy,
                threshold=self._config.overlap_threshold,
                min_token_length=self._config.min_token_length,
            )
            resolved = resolve_conflicts(raw_policy, conflicts)
            for conflict in conflicts:
                POLICY_CONFLICTS.labels(
                    tenant_id=str(tenant_id), conflict_type=conflict.type.value
                ).inc()
                logger.info(
                    "policy_conflict_resolved",
                    tenant_id=str(tenant_id),
                    conflict_type=conflict.type.value,
                    rule_id_a=conflict.rule_id_a,
                    rule_id_b=conflict.rule_id_b,
                    overlap=conflict.overlap_score,
                    demoted_to=conflict.priority + 1,
                )

            artifact = self.build_artifact(tenant_id, resolved)
            cache_key = self._cache.key_for(artifact)
            published, activated = await self._publish(artifact, cache_key)
            await self._record(tenant_id, artifact, cache_key)

            elapsed_ms = (time.perf_counter() - start) * 1000
            POLICY_COMPILE_COUNT.labels(tenant_id=str(tenant_id), outcome="success").inc()
            POLICY_COMPILE_LATENCY.labels(tenant_id=str(tenant_id)).observe(elapsed_ms / 1000)
            logger.info(
                "policy_compiled",
                tenant_id=str(tenant_id),
                version=artifact.version,
                checksum=artifact.checksum,
                edge_cases=len(artifact.edge_cases),
                transfer_rules=len(artifact.transfer_rules),
                conflicts=len(conflicts),
                published=published,
                activated=activated,
                elapsed_ms=round(elapsed_ms, 2),
            )
            return CompileResult(
                artifact=artifact,
                checksum=artifact.checksum,
                cache_key=cache_key,
                conflicts=conflicts,
                elapsed_ms=elapsed_ms,
                published=published,
                activated=activated,
            )
        except FrontDeskError:
            POLICY_COMPILE_COUNT.labels(tenant_id=str(tenant_id), outcome="error").inc()
            raise
        except Exception as e:
            POLICY_COMPILE_COUNT.labels(tenant_id=str(tenant_id), outcome="error").inc()
            logger.exception("policy_compile_failed", tenant_id=str(tenant_id), error=str(e))
            raise PolicyCompilationError(f"Failed to compile policy: {e}", cause=e) from e
        finally:
            await self._release(tenant_id, token)

    def build_artifact(self, tenant_id: UUID, policy: RawPolicy) -> PolicyArtifact:
        """Build the checksummed artifact for an already-resolved policy.

        Disabled rules are dropped, rules are sorted by (priority, id) and
        invalid patterns are discarded.
        """
        edge_cases = []
        for rule in policy.edge_cases:
            if not rule.enabled:
                continue
            patterns = self._compile_all(rule.trigger_patterns, tenant_id, rule.id)
            edge_cases.append(
                CompiledEdgeCase(
                    id=rule.id,
                    name=rule.name,
                    patterns=patterns,
                    response_text=rule.response_text,
                    priority=rule.priority,
                )
            )

        transfers = []
        for rule in policy.transfer_rules:
            if not rule.enabled:
                continue
            patterns = self._compile_all(transfer_pattern_sources(rule), tenant_id, rule.id)
            transfers.append(
                CompiledTransferRule(
                    id=rule.id,
                    intent_tag=rule.intent_tag,
                    patterns=patterns,
                    contact=rule.contact,
                    phone=rule.phone,
                    script=rule.script,
                    collect_entities=tuple(rule.collect_entities),
                    after_hours_only=rule.after_hours_only,
                    priority=rule.priority,
                )
            )

        guardrail_flags = frozenset(flag.value for flag in policy.guardrails)
        guardrail_patterns = {
            flag.value: CompiledPattern(source=GUARDRAIL_PATTERNS[flag])
            for flag in policy.guardrails
        }

        artifact = PolicyArtifact(
            tenant_id=tenant_id,
            version=policy.version,
            status=policy.status,
            company_name=policy.company_name,
            edge_cases=tuple(sorted(edge_cases, key=lambda r: (r.priority, r.id))),
            transfer_rules=tuple(sorted(transfers, key=lambda r: (r.priority, r.id))),
            behavior_flags=frozenset(flag.value for flag in policy.behavior_rules),
            guardrail_flags=guardrail_flags,
            allowed_action_flags=frozenset(policy.allowed_actions),
            guardrail_patterns=guardrail_patterns,
        )
        return artifact.model_copy(update={"checksum": compute_checksum(artifact)})

    async def activate(self, tenant_id: UUID, cache_key: str) -> PolicyArtifact:
        """Point the tenant's active pointer at an already-published artifact.

        Raises:
            ArtifactNotFoundError: ``cache_key`` is unknown or expired
        """
        artifact = await self._cache.get(cache_key)
        if artifact is None or artifact.tenant_id != tenant_id:
            raise ArtifactNotFoundError(f"Artifact {cache_key} not found")
        await self._cache.set_active(tenant_id, cache_key, self._config.artifact_ttl_seconds)
        logger.info("policy_activated", tenant_id=str(tenant_id), cache_key=cache_key)
        return artifact

    async def status(self, tenant_id: UUID) -> CompileStatus:
        """Report whether a compile is running and what was last published.

        Args:
            tenant_id: Tenant to inspect

        Returns:
            CompileStatus; a lock past its TTL does not count as running
        """
        lock = await self._repository.get_compile_lock(tenant_id)
        running = lock is not None and not lock.is_stale()
        return CompileStatus(
            tenant_id=tenant_id,
            compile_in_progress=running,
            lock_ttl_seconds=lock.ttl_seconds if lock is not None and running else None,
            last_compile=await self._repository.get_compile_metadata(tenant_id),
            active_cache_key=await self._cache.get_active_key(tenant_id),
        )

    async def _holder_ttl(self, tenant_id: UUID) -> int | None:
        """Seconds left on the lock blocking a compile, if readable."""
        try:
            lock = await self._repository.get_compile_lock(tenant_id)
        except DependencyError:
            return None
        return lock.ttl_seconds if lock else None

    def _compile_all(
        self, sources: list[str], tenant_id: UUID, rule_id: str
    ) -> tuple[CompiledPattern, ...]:
        compiled = (compile_pattern(s, tenant_id=tenant_id, rule_id=rule_id) for s in sources)
        return tuple(pattern for pattern in compiled if pattern is not None)

    async def _publish(self, artifact: PolicyArtifact, cache_key: str) -> tuple[bool, bool]:
        """Write the artifact and, for active policies, the active pointer.

        Failures are logged, not raised.
        """
        ttl = self._config.artifact_ttl_seconds
        try:
            await self._cache.put(cache_key, artifact, ttl)
        except DependencyError as e:
            PUBLISH_FAILURES.labels(tenant_id=str(artifact.tenant_id), target="artifact").inc()
            logger.error(
                "artifact_publish_failed",
                tenant_id=str(artifact.tenant_id),
                cache_key=cache_key,
                error=str(e),
            )
            return False, False

        if artifact.status != PolicyStatus.ACTIVE:
            return True, False

        try:
            await self._cache.set_active(artifact.tenant_id, cache_key, ttl)
        except DependencyError as e:
            PUBLISH_FAILURES.labels(tenant_id=str(artifact.tenant_id), target="pointer").inc()
            logger.error(
                "active_pointer_publish_failed",
                tenant_id=str(artifact.tenant_id),
                cache_key=cache_key,
                error=str(e),
            )
            return True, False
        return True, True

    async def _record(self, tenant_id: UUID, artifact: PolicyArtifact, cache_key: str) -> None:
        metadata = CompileMetadata(
            version=artifact.version,
            checksum=artifact.checksum,
            cache_key=cache_key,
            compiled_at=artifact.compiled_at,
        )
        try:
            await self._repository.record_compile(tenant_id, metadata)
        except DependencyError as e:
            PUBLISH_FAILURES.labels(tenant_id=str(tenant_id), target="metadata").inc()
            logger.error("compile_metadata_update_failed", tenant_id=str(tenant_id), error=str(e))

    async def _release(self, tenant_id: UUID, token: str) -> None:
        try:
            released = await self._repository.release_compile_lock(tenant_id, token)
        except DependencyError as e:
            logger.error("compile_lock_release_failed", tenant_id=str(tenant_id), error=str(e))
            return
        if not released:
            logger.warning("compile_lock_not_held", tenant_id=str(tenant_id))
