"""
storyforge.facade - StoryForge Top-Level Facade
=================================================

This module is the single entry point the HTTP layer talks to. It wires
one ArtifactStore, CommitCoordinator and ProposalPipeline per artifact
kind from configuration, and exposes them through one ArtifactService per
kind.

Architecture Context:

    ┌──────────────────────────────────────────────────┐
    │              StoryForge (Facade)                  │
    │                                                   │
    │   .story_root  ─┐            ┌─ .world_state      │
    │                 ▼            ▼                    │
    │  ┌─────────────────────────────────────────────┐ │
    │  │  ArtifactService (one per kind)              │ │
    │  │    ProposalPipeline   CommitCoordinator      │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │  ArtifactStore (one per kind)                │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │  BlobStore · LLM Provider · TemplateProvider │ │
    │  └─────────────────────────────────────────────┘ │
    └──────────────────────────────────────────────────┘

Usage:
    >>> forge = StoryForge(load_config())
    >>> ctx = RequestContext(user_id="alice")
    >>>
    >>> proposal = await forge.story_root.propose_merge(ctx, "A noir mystery in Lisbon")
    >>> result = await forge.story_root.commit(ctx, proposal.proposal, expected_version_id=None)
    >>> await forge.story_root.list_versions(ctx)

    Or with async context manager (closes the LLM provider's HTTP client):
    >>> async with StoryForge(config) as forge:
    ...     await forge.world_state.get_current(ctx)
"""

from __future__ import annotations

from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from storyforge.core.config import StoryForgeConfig
from storyforge.core.enums import ArtifactKind
from storyforge.core.exceptions import InvalidInputError
from storyforge.core.kinds import ARTIFACT_KINDS, ArtifactKindSpec
from storyforge.core.models import (
    CommitResult,
    NarrativeArtifact,
    Proposal,
    RequestContext,
    VersionMetadata,
)
from storyforge.infrastructure.artifact_store import ArtifactStore
from storyforge.infrastructure.blob_store import BlobStore, create_blob_store
from storyforge.integrations.llm.base import BaseLLMProvider
from storyforge.integrations.llm.factory import create_llm_provider
from storyforge.orchestration.commit_coordinator import CommitCoordinator
from storyforge.orchestration.proposal_pipeline import ProposalPipeline
from storyforge.prompts.factory import PromptFactory
from storyforge.prompts.templates import TemplateProvider, create_template_provider


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


def _require_user(ctx: RequestContext) -> None:
    if not ctx.user_id or not ctx.user_id.strip():
        raise InvalidInputError(
            "user_id cannot be empty",
            field="user_id",
            correlation_id=ctx.request_id,
        )


class ArtifactService:
    """The operations offered for one artifact kind.

    Every method takes the RequestContext of the calling request; nothing
    is read from ambient state.
    """

    def __init__(
        self,
        store: ArtifactStore,
        coordinator: CommitCoordinator,
        pipeline: ProposalPipeline,
    ) -> None:
        self._store = store
        self._coordinator = coordinator
        self._pipeline = pipeline

    @property
    def spec(self) -> ArtifactKindSpec:
        return self._store.spec

    @property
    def store(self) -> ArtifactStore:
        return self._store

    @property
    def coordinator(self) -> CommitCoordinator:
        return self._coordinator

    @property
    def pipeline(self) -> ProposalPipeline:
        return self._pipeline

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_current(self, ctx: RequestContext) -> Optional[NarrativeArtifact]:
        """The caller's current artifact, or None if they have none yet."""
        _require_user(ctx)
        return await self._store.get_current(ctx.user_id)

    async def get_version(
        self, ctx: RequestContext, version_id: str
    ) -> Optional[NarrativeArtifact]:
        """One historical version, or None if it does not exist.

        Raises:
            InvalidInputError: If version_id is blank.
        """
        _require_user(ctx)
        if not version_id or not version_id.strip():
            raise InvalidInputError(
                "version_id cannot be empty",
                field="version_id",
                correlation_id=ctx.request_id,
            )
        return await self._store.get_version(ctx.user_id, version_id)

    async def list_versions(self, ctx: RequestContext) -> list[VersionMetadata]:
        """Version history, newest first."""
        _require_user(ctx)
        return await self._store.list_versions(ctx.user_id)

    # =========================================================================
    # Workflow
    # =========================================================================

    async def propose_merge(self, ctx: RequestContext, raw_input: str) -> Proposal:
        """Ask the completion engine for a candidate artifact. Never persists."""
        _require_user(ctx)
        return await self._pipeline.propose(ctx, raw_input)

    async def commit(
        self,
        ctx: RequestContext,
        artifact: Union[NarrativeArtifact, dict[str, Any]],
        expected_version_id: Optional[str] = None,
    ) -> CommitResult:
        """Commit a reviewed artifact as the new current version.

        Args:
            artifact: The artifact, or a JSON object of its fields.
            expected_version_id: Version the caller loaded; None skips the
                conflict check.
        """
        _require_user(ctx)
        if isinstance(artifact, dict):
            artifact = self._from_payload(ctx, artifact)
        return await self._coordinator.commit(ctx, artifact, expected_version_id)

    async def reconcile_current(self, ctx: RequestContext) -> Optional[str]:
        """Repoint current at the newest version; see ArtifactStore."""
        _require_user(ctx)
        return await self._store.reconcile_current(ctx.user_id)

    def _from_payload(self, ctx: RequestContext, payload: dict[str, Any]) -> NarrativeArtifact:
        try:
            return self.spec.build(payload)
        except PydanticValidationError as exc:
            raise InvalidInputError(
                f"Invalid {self.spec.display_name} payload: {exc}",
                field="artifact",
                correlation_id=ctx.request_id,
            ) from exc

    def __repr__(self) -> str:
        return f"ArtifactService(kind={self.spec.kind.value!r})"


class StoryForge:
    """Top-level facade for StoryForge.

    Collaborators are built from configuration unless injected:

        blob_store        ← config.storage    (create_blob_store)
        llm_provider      ← config.llm        (create_llm_provider)
        template_provider ← config.templates  (create_template_provider)

    Attributes:
        story_root: ArtifactService for Story Root.
        world_state: ArtifactService for World State.

    Example:
        >>> forge = StoryForge(
        ...     StoryForgeConfig(),
        ...     llm_provider=MockLLMProvider(),
        ... )
        >>> await forge.story_root.get_current(RequestContext(user_id="alice"))
    """

    def __init__(
        self,
        config: Optional[StoryForgeConfig] = None,
        *,
        blob_store: Optional[BlobStore] = None,
        llm_provider: Optional[BaseLLMProvider] = None,
        template_provider: Optional[TemplateProvider] = None,
    ) -> None:
        # --- Configuration ---
        self._config = config or StoryForgeConfig()

        # --- Collaborators ---
        self._blob_store = blob_store or create_blob_store(self._config.storage)
        self._owns_llm_provider = llm_provider is None
        self._llm_provider = llm_provider or create_llm_provider(self._config.llm)
        self._template_provider = template_provider or create_template_provider(
            self._config.templates
        )
        self._prompt_factory = PromptFactory(self._template_provider)

        # --- One service per kind ---
        self._services: dict[ArtifactKind, ArtifactService] = {
            kind: self._build_service(spec) for kind, spec in ARTIFACT_KINDS.items()
        }

        self._logger = logger.bind(component="storyforge")
        self._logger.info(
            "storyforge_initialized",
            environment=self._config.environment,
            storage_backend=self._config.storage.backend,
            llm_provider=self._llm_provider.provider_name,
        )

    def _build_service(self, spec: ArtifactKindSpec) -> ArtifactService:
        store = ArtifactStore(spec, self._blob_store)
        return ArtifactService(
            store=store,
            coordinator=CommitCoordinator(store, default_environment=self._config.environment),
            pipeline=ProposalPipeline(store, self._prompt_factory, self._llm_provider),
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> StoryForgeConfig:
        return self._config

    @property
    def blob_store(self) -> BlobStore:
        return self._blob_store

    @property
    def llm_provider(self) -> BaseLLMProvider:
        return self._llm_provider

    @property
    def story_root(self) -> ArtifactService:
        return self._services[ArtifactKind.STORY_ROOT]

    @property
    def world_state(self) -> ArtifactService:
        return self._services[ArtifactKind.WORLD_STATE]

    def service(self, kind: Union[ArtifactKind, str]) -> ArtifactService:
        """Look up a service by kind.

        Raises:
            ValueError: If kind is not a known ArtifactKind.
        """
        return self._services[ArtifactKind(kind)]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        """Release the LLM provider's connections if the facade created it."""
        if self._owns_llm_provider:
            await self._llm_provider.aclose()
        self._logger.debug("storyforge_closed")

    async def __aenter__(self) -> StoryForge:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"StoryForge("
            f"environment={self._config.environment!r}, "
            f"storage={self._config.storage.backend!r}, "
            f"llm={self._llm_provider.provider_name!r})"
        )
