"""
Tests for storyforge.facade - StoryForge Top-Level Facade
===========================================================

What's Being Tested:
    - Wiring from configuration (storage backend, LLM provider, templates)
    - One ArtifactService per kind, with independent chains
    - Per-user isolation
    - Input checks at the service boundary (user id, version id, dict payloads)
    - Lifecycle: close() and async context manager

All tests use in-memory implementations, no external dependencies.
"""

import pytest

from storyforge.core.config import StorageConfig, StoryForgeConfig
from storyforge.core.enums import ArtifactKind
from storyforge.core.exceptions import ConfigurationError, InvalidInputError
from storyforge.core.models import RequestContext, StoryRoot, WorldState
from storyforge.facade import ArtifactService, StoryForge
from storyforge.infrastructure.blob_store import FileSystemBlobStore, InMemoryBlobStore
from storyforge.integrations.llm.mock import MockLLMProvider
from storyforge.prompts.templates import InMemoryTemplateProvider


# =============================================================================
# Tests: Construction
# =============================================================================
class TestStoryForgeConstruction:
    """Tests for wiring collaborators from configuration."""

    def test_defaults(self) -> None:
        """Default config → memory storage and the mock provider."""
        forge = StoryForge(StoryForgeConfig())
        assert isinstance(forge.blob_store, InMemoryBlobStore)
        assert isinstance(forge.llm_provider, MockLLMProvider)

    def test_filesystem_backend(self, tmp_path) -> None:
        """storage.backend='filesystem' → FileSystemBlobStore at root_dir."""
        config = StoryForgeConfig(storage=StorageConfig(backend="filesystem", root_dir=str(tmp_path)))
        forge = StoryForge(config)
        assert isinstance(forge.blob_store, FileSystemBlobStore)

    def test_openai_without_key_fails(self) -> None:
        """An OpenAI provider with no key is a configuration error."""
        config = StoryForgeConfig(llm={"provider": "openai", "api_key": None})
        with pytest.raises(ConfigurationError):
            StoryForge(config)

    def test_services_per_kind(self, forge) -> None:
        """Each kind gets its own service and store."""
        assert isinstance(forge.story_root, ArtifactService)
        assert forge.story_root.spec.kind is ArtifactKind.STORY_ROOT
        assert forge.world_state.spec.kind is ArtifactKind.WORLD_STATE
        assert forge.story_root.store is not forge.world_state.store

    def test_service_lookup(self, forge) -> None:
        """service() accepts the enum or its value."""
        assert forge.service("world_state") is forge.world_state
        assert forge.service(ArtifactKind.STORY_ROOT) is forge.story_root
        with pytest.raises(ValueError):
            forge.service("character_sheet")

    def test_environment_flows_to_coordinators(self, blob_store) -> None:
        """The configured environment is the default stamped on commits."""
        forge = StoryForge(StoryForgeConfig(environment="prod"), blob_store=blob_store)
        assert forge.story_root.coordinator.default_environment == "prod"

    def test_repr(self, forge) -> None:
        """repr names environment, storage and provider."""
        assert repr(forge) == "StoryForge(environment='dev', storage='memory', llm='mock')"


# =============================================================================
# Tests: Reads and Commits Through the Facade
# =============================================================================
class TestArtifactService:
    """Tests for the per-kind service operations."""

    async def test_empty_reads(self, forge, ctx) -> None:
        """A new user has no current artifact and no history."""
        assert await forge.story_root.get_current(ctx) is None
        assert await forge.story_root.list_versions(ctx) == []
        assert await forge.story_root.get_version(ctx, "v-missing") is None

    async def test_commit_and_read_back(self, forge, ctx, story_root) -> None:
        """A committed artifact is current and retrievable by version id."""
        result = await forge.story_root.commit(ctx, story_root)
        assert await forge.story_root.get_current(ctx) == story_root
        assert await forge.story_root.get_version(ctx, result.version_id) == story_root

    async def test_commit_dict_payload(self, forge, ctx) -> None:
        """A JSON object is accepted and built into the kind's artifact."""
        result = await forge.world_state.commit(
            ctx,
            {
                "world_state_id": "ws-9",
                "physical_laws": "Low gravity",
                "social_structures": "Clans",
                "historical_context": "Post-colony",
                "magic_or_technology": "Fusion",
            },
        )
        assert isinstance(result.artifact, WorldState)
        assert result.artifact.world_state_id == "ws-9"

    async def test_commit_bad_dict_payload(self, forge, ctx) -> None:
        """A payload with mistyped fields is InvalidInputError."""
        with pytest.raises(InvalidInputError) as exc_info:
            await forge.story_root.commit(ctx, {"genre": 7})
        assert exc_info.value.field == "artifact"

    async def test_kinds_are_independent(self, forge, ctx, story_root, world_state) -> None:
        """Committing one kind does not touch the other kind's chain."""
        await forge.story_root.commit(ctx, story_root)
        assert await forge.world_state.get_current(ctx) is None
        await forge.world_state.commit(ctx, world_state)
        assert len(await forge.story_root.list_versions(ctx)) == 1
        assert len(await forge.world_state.list_versions(ctx)) == 1

    async def test_users_are_isolated(self, forge, ctx, other_ctx, story_root) -> None:
        """One user's commits are invisible to another."""
        await forge.story_root.commit(ctx, story_root)
        assert await forge.story_root.get_current(other_ctx) is None
        assert await forge.story_root.list_versions(other_ctx) == []

    async def test_blank_user_rejected(self, forge, story_root) -> None:
        """Every operation requires a user id."""
        ctx = RequestContext(user_id="  ")
        with pytest.raises(InvalidInputError) as exc_info:
            await forge.story_root.get_current(ctx)
        assert exc_info.value.field == "user_id"
        with pytest.raises(InvalidInputError):
            await forge.story_root.commit(ctx, story_root)

    async def test_blank_version_id_rejected(self, forge, ctx) -> None:
        """get_version needs a version id."""
        with pytest.raises(InvalidInputError) as exc_info:
            await forge.story_root.get_version(ctx, " ")
        assert exc_info.value.field == "version_id"

    async def test_propose_merge(self, forge, mock_llm_provider, ctx) -> None:
        """propose_merge returns a proposal without persisting it."""
        mock_llm_provider.queue_json_response(
            {
                "story_root_id": "sr-2",
                "genre": "Gothic",
                "tone": "Slow dread",
                "thematic_pillars": "Inheritance",
            }
        )
        proposal = await forge.story_root.propose_merge(ctx, "Gothic horror")
        assert isinstance(proposal.proposal, StoryRoot)
        assert proposal.proposal.genre == "Gothic"
        assert await forge.story_root.list_versions(ctx) == []

    async def test_reconcile_current_noop(self, forge, ctx, story_root) -> None:
        """reconcile_current leaves a consistent chain alone."""
        result = await forge.story_root.commit(ctx, story_root)
        assert await forge.story_root.reconcile_current(ctx) == result.version_id


# =============================================================================
# Tests: Custom Templates
# =============================================================================
class TestTemplateInjection:
    """Tests for a caller-supplied template provider."""

    async def test_injected_templates_used(self, blob_store, ctx) -> None:
        """Prompts are built from the injected provider."""
        provider = MockLLMProvider()
        provider.queue_json_response(
            {"story_root_id": "a", "genre": "b", "tone": "c", "thematic_pillars": "d"}
        )
        templates = InMemoryTemplateProvider({"story-root-create": "NEW: {user_input}"})
        forge = StoryForge(blob_store=blob_store, llm_provider=provider, template_provider=templates)

        await forge.story_root.propose_merge(ctx, "hello")

        assert provider.last_prompt == "NEW: hello"


# =============================================================================
# Tests: Lifecycle
# =============================================================================
class _TrackingProvider(MockLLMProvider):
    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


class TestLifecycle:
    """Tests for close() and the async context manager."""

    async def test_injected_provider_not_closed(self, blob_store) -> None:
        """A caller-supplied provider is left open."""
        provider = _TrackingProvider()
        forge = StoryForge(blob_store=blob_store, llm_provider=provider)
        await forge.close()
        assert provider.closed is False

    async def test_context_manager(self, blob_store, ctx, story_root) -> None:
        """async with yields a working facade and closes on exit."""
        async with StoryForge(blob_store=blob_store) as forge:
            await forge.story_root.commit(ctx, story_root)
            assert await forge.story_root.get_current(ctx) == story_root
