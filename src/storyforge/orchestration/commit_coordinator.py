"""
storyforge.orchestration.commit_coordinator - Optimistic-Concurrency Commit
=============================================================================

Commits a reviewed artifact as the next version of a chain, refusing if
someone else committed since the caller loaded it.

Commit Protocol:

    validate(artifact)                        ── ValidationError, no I/O
        │
    current_id = list_versions(user)[0]       ── None for an empty chain
        │
    expected given and != current_id?  ─yes─→ ConflictError, no write
        │ no (or no expected id: last writer wins)
        ▼
    save_new_version(prior_version_id=current_id,
                     prior_timestamp=head timestamp, ...)   ── stamped after the head

Known Window:
    Between reading current_id and the pointer write, another commit can
    land. Both then record the same prior_version_id and the later pointer
    write wins. This is accepted; ArtifactStore.reconcile_current repairs
    the pointer after a failed pointer write.
"""

from __future__ import annotations

from typing import Optional

import structlog

from storyforge.core.exceptions import ConflictError, StoryForgeError
from storyforge.core.models import CommitResult, NarrativeArtifact, RequestContext
from storyforge.infrastructure.artifact_store import ArtifactStore
from storyforge.orchestration.validators import ArtifactValidator

logger = structlog.get_logger()


class CommitCoordinator:
    """Commits artifacts of one kind.

    Args:
        store: The kind's ArtifactStore.
        default_environment: Environment label used when the request
            context does not carry one.
    """

    def __init__(
        self,
        store: ArtifactStore,
        default_environment: Optional[str] = None,
    ) -> None:
        self._store = store
        self._validator = ArtifactValidator(store.spec)
        self._default_environment = default_environment
        self._logger = logger.bind(component="commit_coordinator", kind=store.spec.kind.value)

    @property
    def store(self) -> ArtifactStore:
        return self._store

    @property
    def default_environment(self) -> Optional[str]:
        return self._default_environment

    async def commit(
        self,
        ctx: RequestContext,
        artifact: NarrativeArtifact,
        expected_version_id: Optional[str] = None,
        llm_assisted: bool = True,
    ) -> CommitResult:
        """Append artifact as the new current version.

        Args:
            ctx: Caller identity and correlation token.
            artifact: The reviewed artifact.
            expected_version_id: The version the caller believes is current.
                None or blank skips the check.
            llm_assisted: Recorded on the version metadata.

        Raises:
            InvalidInputError: If artifact is the wrong kind.
            ValidationError: If artifact is missing required fields.
            ConflictError: If expected_version_id is stale.
            StorageError: If reading or writing the chain fails.
        """
        try:
            return await self._commit(ctx, artifact, expected_version_id, llm_assisted)
        except StoryForgeError as exc:
            if exc.correlation_id is None:
                exc.correlation_id = ctx.request_id
            raise

    async def _commit(
        self,
        ctx: RequestContext,
        artifact: NarrativeArtifact,
        expected_version_id: Optional[str],
        llm_assisted: bool,
    ) -> CommitResult:
        self._validator.validate(artifact)

        history = await self._store.list_versions(ctx.user_id)
        current_id = history[0].version_id if history else None
        current_timestamp = history[0].timestamp if history else None

        expected = (expected_version_id or "").strip()
        if expected and expected != current_id:
            self._logger.warning(
                "commit_conflict",
                user_id=ctx.user_id,
                request_id=ctx.request_id,
                expected_version_id=expected,
                actual_version_id=current_id,
            )
            raise ConflictError(
                expected_version_id=expected,
                actual_version_id=current_id,
                correlation_id=ctx.request_id,
            )

        version_id = await self._store.save_new_version(
            ctx.user_id,
            artifact,
            prior_version_id=current_id,
            source_request_id=ctx.request_id,
            environment=ctx.environment or self._default_environment,
            llm_assisted=llm_assisted,
            prior_timestamp=current_timestamp,
        )

        self._logger.info(
            "commit_succeeded",
            user_id=ctx.user_id,
            request_id=ctx.request_id,
            version_id=version_id,
            prior_version_id=current_id,
        )
        return CommitResult(
            version_id=version_id,
            artifact=artifact,
            prior_version_id=current_id,
        )
