"""
Tests for storyforge.orchestration.commit_coordinator
=======================================================

What's Being Tested:
    - First commit on an empty chain (with and without expected id)
    - Version linking via prior_version_id
    - Conflict detection (stale token, token on empty chain)
    - Last-writer-wins when no token is given
    - Validation before any I/O
    - Provenance: request id, environment, llm_assisted
"""

from datetime import datetime, timedelta, timezone

import pytest

from storyforge.core.exceptions import (
    ConflictError,
    InvalidInputError,
    StorageError,
    ValidationError,
)
from storyforge.core.kinds import STORY_ROOT_SPEC
from storyforge.core.models import RequestContext, StoryRoot
from storyforge.infrastructure.artifact_store import ArtifactStore
from storyforge.orchestration.commit_coordinator import CommitCoordinator


class TestFirstCommit:
    """Commits into an empty chain."""

    async def test_first_commit_without_token(self, story_root_coordinator, ctx, story_root) -> None:
        """Empty chain + no token → V1 with no prior."""
        result = await story_root_coordinator.commit(ctx, story_root)

        assert result.version_id
        assert result.prior_version_id is None
        assert result.artifact == story_root
        assert await story_root_coordinator.store.get_current("alice") == story_root

    async def test_token_on_empty_chain_conflicts(self, story_root_coordinator, ctx, story_root) -> None:
        """Expecting a version in an empty chain is a conflict with actual None."""
        with pytest.raises(ConflictError) as exc_info:
            await story_root_coordinator.commit(ctx, story_root, expected_version_id="v-ghost")
        assert exc_info.value.expected_version_id == "v-ghost"
        assert exc_info.value.actual_version_id is None
        assert await story_root_coordinator.store.list_versions("alice") == []


class TestSubsequentCommits:
    """Commits onto an existing chain."""

    async def test_matching_token_links_prior(self, story_root_coordinator, ctx, story_root) -> None:
        """A correct token appends and records the prior version."""
        v1 = (await story_root_coordinator.commit(ctx, story_root)).version_id
        updated = story_root.model_copy(update={"tone": "Wry"})

        result = await story_root_coordinator.commit(ctx, updated, expected_version_id=v1)

        assert result.prior_version_id == v1
        history = await story_root_coordinator.store.list_versions("alice")
        assert [m.version_id for m in history] == [result.version_id, v1]
        assert history[0].prior_version_id == v1

    async def test_stale_token_conflicts(self, story_root_coordinator, ctx, story_root) -> None:
        """A token that is no longer current raises ConflictError; nothing is written."""
        v1 = (await story_root_coordinator.commit(ctx, story_root)).version_id
        v2 = (await story_root_coordinator.commit(ctx, story_root, expected_version_id=v1)).version_id

        with pytest.raises(ConflictError) as exc_info:
            await story_root_coordinator.commit(ctx, story_root, expected_version_id=v1)

        assert exc_info.value.expected_version_id == v1
        assert exc_info.value.actual_version_id == v2
        assert exc_info.value.correlation_id == ctx.request_id
        assert len(await story_root_coordinator.store.list_versions("alice")) == 2

    @pytest.mark.parametrize("token", [None, "", "   "])
    async def test_blank_token_is_last_writer_wins(
        self, story_root_coordinator, ctx, story_root, token
    ) -> None:
        """No token skips the check and still links to the current head."""
        v1 = (await story_root_coordinator.commit(ctx, story_root)).version_id
        result = await story_root_coordinator.commit(ctx, story_root, expected_version_id=token)
        assert result.prior_version_id == v1


class TestValidationFirst:
    """Invalid input never reaches storage."""

    async def test_invalid_artifact_no_io(self, blob_store, story_root_coordinator, ctx) -> None:
        """ValidationError is raised before any read or write."""
        blob_store.set_should_fail(True)
        with pytest.raises(ValidationError) as exc_info:
            await story_root_coordinator.commit(ctx, StoryRoot(story_root_id="sr-1"))
        assert exc_info.value.missing_fields == ["genre", "tone", "thematic_pillars"]
        assert exc_info.value.correlation_id == ctx.request_id

    async def test_wrong_kind(self, world_state_coordinator, ctx, story_root) -> None:
        """A Story Root cannot be committed to the World State chain."""
        with pytest.raises(InvalidInputError):
            await world_state_coordinator.commit(ctx, story_root)


class TestProvenance:
    """Metadata recorded on each commit."""

    async def test_request_id_and_flags(self, story_root_coordinator, ctx, story_root) -> None:
        """source_request_id is the request id; llm_assisted defaults to True."""
        result = await story_root_coordinator.commit(ctx, story_root)
        meta = (await story_root_coordinator.store.get_versioned("alice", result.version_id)).version_metadata
        assert meta.source_request_id == "req-alice-1"
        assert meta.llm_assisted is True
        assert meta.user_id == "alice"

    async def test_default_environment(self, story_root_coordinator, ctx, story_root) -> None:
        """Without a context environment the configured default is used."""
        result = await story_root_coordinator.commit(ctx, story_root)
        meta = (await story_root_coordinator.store.get_versioned("alice", result.version_id)).version_metadata
        assert meta.environment == "dev"

    async def test_context_environment_wins(self, story_root_coordinator, story_root) -> None:
        """An environment on the context overrides the default."""
        ctx = RequestContext(user_id="alice", environment="staging")
        result = await story_root_coordinator.commit(ctx, story_root)
        meta = (await story_root_coordinator.store.get_versioned("alice", result.version_id)).version_metadata
        assert meta.environment == "staging"

    async def test_llm_assisted_can_be_disabled(self, story_root_store, ctx, story_root) -> None:
        """Direct edits can be recorded as not LLM-assisted."""
        coordinator = CommitCoordinator(story_root_store)
        result = await coordinator.commit(ctx, story_root, llm_assisted=False)
        meta = (await story_root_store.get_versioned("alice", result.version_id)).version_metadata
        assert meta.llm_assisted is False
        assert meta.environment is None


class TestStorageFailure:
    """Storage errors propagate with the correlation id."""

    async def test_storage_error_propagates(self, blob_store, story_root_coordinator, ctx, story_root) -> None:
        """A failing store surfaces as StorageError tagged with the request id."""
        blob_store.set_should_fail(True)
        with pytest.raises(StorageError) as exc_info:
            await story_root_coordinator.commit(ctx, story_root)
        assert exc_info.value.correlation_id == ctx.request_id


class TestSharedStoreClockSkew:
    """Two workers over one blob store whose clocks disagree."""

    async def test_lagging_worker_keeps_chain_order(self, blob_store, ctx, story_root) -> None:
        """A commit from a worker with a slow clock becomes the head and the next parent."""
        worker_a = CommitCoordinator(ArtifactStore(STORY_ROOT_SPEC, blob_store))
        worker_b = CommitCoordinator(
            ArtifactStore(
                STORY_ROOT_SPEC,
                blob_store,
                clock=lambda: datetime.now(timezone.utc) - timedelta(seconds=1),
            )
        )

        v1 = (await worker_a.commit(ctx, story_root)).version_id
        v2 = (
            await worker_b.commit(
                ctx, story_root.model_copy(update={"genre": "Gothic"}), expected_version_id=v1
            )
        ).version_id

        history = await worker_a.store.list_versions("alice")
        assert history[0].version_id == v2
        assert await worker_a.store.get_current_version_id("alice") == v2

        v3 = await worker_a.commit(ctx, story_root, expected_version_id=v2)
        assert v3.prior_version_id == v2
        assert [m.version_id for m in await worker_b.store.list_versions("alice")] == [
            v3.version_id,
            v2,
            v1,
        ]
