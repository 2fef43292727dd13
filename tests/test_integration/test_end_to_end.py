"""
End-to-End Tests for StoryForge
=================================

These tests drive the full propose → review → commit workflow through the
StoryForge facade, the way the HTTP layer does, and check the version
chains that result. They run against both blob storage backends.

Scenario:
    1. Empty chain: propose (CREATE), commit with no token      → V1
    2. Propose again (MERGE against V1), commit with token V1   → V2
    3. A second client still holding V1 commits                 → ConflictError
    4. History reads newest first; V1 remains retrievable
"""

import json

import pytest

from storyforge.core.config import StorageConfig, StoryForgeConfig
from storyforge.core.exceptions import ConflictError, StorageError
from storyforge.facade import StoryForge
from storyforge.infrastructure.paths import current_path
from storyforge.integrations.llm.mock import MockLLMProvider
from storyforge.orchestration.proposal_pipeline import compact_json


# =============================================================================
# Helpers
# =============================================================================
def _first_draft() -> dict:
    return {
        "story_root_id": "sr-lisbon",
        "genre": "Noir",
        "tone": "Bleak, rain-soaked",
        "thematic_pillars": "Corruption; redemption",
        "notes": "1947 Lisbon",
    }


def _second_draft() -> dict:
    draft = _first_draft()
    draft["tone"] = "Bleak with flashes of gallows humour"
    return draft


@pytest.fixture(params=["memory", "filesystem"])
def forge_and_provider(request, tmp_path):
    """StoryForge over each storage backend, with a mock completion engine."""
    provider = MockLLMProvider()
    config = StoryForgeConfig(
        environment="staging",
        storage=StorageConfig(backend=request.param, root_dir=str(tmp_path / "blobs")),
    )
    return StoryForge(config, llm_provider=provider), provider


# =============================================================================
# Tests: Full Workflow
# =============================================================================
class TestProposeCommitWorkflow:
    """The propose → commit loop across two versions and a stale client."""

    async def test_full_workflow(self, forge_and_provider, ctx) -> None:
        """Create, merge, then reject a stale commit."""
        forge, provider = forge_and_provider
        service = forge.story_root

        # --- Step 1: create ---
        provider.queue_json_response(_first_draft())
        proposal = await service.propose_merge(ctx, "A noir story set in 1947 Lisbon")
        assert proposal.current is None

        v1 = await service.commit(ctx, proposal.proposal, expected_version_id=None)
        assert v1.prior_version_id is None

        # --- Step 2: merge against V1 ---
        provider.queue_json_response(_second_draft())
        proposal = await service.propose_merge(ctx, "Add some gallows humour")
        assert proposal.current.tone == "Bleak, rain-soaked"
        assert compact_json(proposal.current) in provider.last_prompt

        v2 = await service.commit(ctx, proposal.proposal, expected_version_id=v1.version_id)
        assert v2.prior_version_id == v1.version_id

        # --- Step 3: stale client ---
        with pytest.raises(ConflictError) as exc_info:
            await service.commit(ctx, proposal.proposal, expected_version_id=v1.version_id)
        assert exc_info.value.expected_version_id == v1.version_id
        assert exc_info.value.actual_version_id == v2.version_id

        # --- Step 4: history ---
        history = await service.list_versions(ctx)
        assert [m.version_id for m in history] == [v2.version_id, v1.version_id]
        assert all(m.environment == "staging" for m in history)
        assert all(m.llm_assisted for m in history)
        assert (await service.get_current(ctx)).tone == _second_draft()["tone"]
        assert (await service.get_version(ctx, v1.version_id)).tone == "Bleak, rain-soaked"
        assert provider.call_count == 2

    async def test_world_state_chain_independent(self, forge_and_provider, ctx, world_state) -> None:
        """World State commits alongside Story Root without interference."""
        forge, provider = forge_and_provider
        provider.queue_json_response(_first_draft())
        story = await forge.story_root.propose_merge(ctx, "Noir")
        await forge.story_root.commit(ctx, story.proposal)

        provider.queue_json_response(world_state.to_json_dict())
        world = await forge.world_state.propose_merge(ctx, "Steam and clockwork")
        assert world.current is None
        await forge.world_state.commit(ctx, world.proposal)

        assert await forge.world_state.get_current(ctx) == world_state
        assert len(await forge.story_root.list_versions(ctx)) == 1


# =============================================================================
# Tests: Recovery
# =============================================================================
class TestPointerRecovery:
    """A commit whose pointer write failed is repaired by reconcile_current."""

    async def test_failed_pointer_write_reconciled(self, blob_store, ctx, story_root) -> None:
        """History shows the new version; current lags until reconciled."""
        forge = StoryForge(blob_store=blob_store, llm_provider=MockLLMProvider())
        v1 = await forge.story_root.commit(ctx, story_root)

        blob_store.fail_on_put(current_path("alice", forge.story_root.spec))
        updated = story_root.model_copy(update={"genre": "Hardboiled"})
        with pytest.raises(StorageError):
            await forge.story_root.commit(ctx, updated, expected_version_id=v1.version_id)

        history = await forge.story_root.list_versions(ctx)
        assert len(history) == 2
        assert (await forge.story_root.get_current(ctx)).genre == "Noir"

        blob_store.clear_failures()
        newest = await forge.story_root.reconcile_current(ctx)

        assert newest == history[0].version_id
        assert (await forge.story_root.get_current(ctx)).genre == "Hardboiled"
        pointer = json.loads(await blob_store.get(current_path("alice", forge.story_root.spec)))
        assert pointer == {"version_id": newest}
