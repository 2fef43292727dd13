"""
Shared Test Fixtures for StoryForge
=====================================

This module provides reusable pytest fixtures used across the entire
test suite. Fixtures are organized by layer:

    1. Configuration fixtures
    2. Infrastructure fixtures (BlobStore, ArtifactStore)
    3. Integration fixtures (LLM provider, templates)
    4. Orchestration fixtures (CommitCoordinator, ProposalPipeline)
    5. Facade fixtures (StoryForge)
    6. Sample artifacts and request contexts
"""

from __future__ import annotations

import pytest

from storyforge.core.config import StoryForgeConfig
from storyforge.core.kinds import STORY_ROOT_SPEC, WORLD_STATE_SPEC
from storyforge.core.models import RequestContext, StoryRoot, WorldState
from storyforge.facade import StoryForge
from storyforge.infrastructure.artifact_store import ArtifactStore
from storyforge.infrastructure.blob_store import InMemoryBlobStore
from storyforge.integrations.llm.mock import MockLLMProvider
from storyforge.orchestration.commit_coordinator import CommitCoordinator
from storyforge.orchestration.proposal_pipeline import ProposalPipeline
from storyforge.prompts.factory import PromptFactory
from storyforge.prompts.templates import PackageTemplateProvider


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """StoryForge configuration with defaults (memory storage, mock LLM)."""
    return StoryForgeConfig()


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
def blob_store():
    """Fresh InMemoryBlobStore."""
    return InMemoryBlobStore()


@pytest.fixture
def story_root_store(blob_store):
    """ArtifactStore for Story Root over the shared blob store."""
    return ArtifactStore(STORY_ROOT_SPEC, blob_store)


@pytest.fixture
def world_state_store(blob_store):
    """ArtifactStore for World State over the shared blob store."""
    return ArtifactStore(WORLD_STATE_SPEC, blob_store)


# =============================================================================
# LLM Provider and Templates
# =============================================================================

@pytest.fixture
def mock_llm_provider():
    """Fresh MockLLMProvider with no queued responses."""
    return MockLLMProvider()


@pytest.fixture
def template_provider():
    """Templates bundled with the package."""
    return PackageTemplateProvider()


@pytest.fixture
def prompt_factory(template_provider):
    """PromptFactory over the bundled templates."""
    return PromptFactory(template_provider)


# =============================================================================
# Orchestration
# =============================================================================

@pytest.fixture
def story_root_coordinator(story_root_store):
    """CommitCoordinator for Story Root, default environment 'dev'."""
    return CommitCoordinator(story_root_store, default_environment="dev")


@pytest.fixture
def world_state_coordinator(world_state_store):
    """CommitCoordinator for World State, default environment 'dev'."""
    return CommitCoordinator(world_state_store, default_environment="dev")


@pytest.fixture
def story_root_pipeline(story_root_store, prompt_factory, mock_llm_provider):
    """ProposalPipeline for Story Root with the mock LLM."""
    return ProposalPipeline(story_root_store, prompt_factory, mock_llm_provider)


@pytest.fixture
def world_state_pipeline(world_state_store, prompt_factory, mock_llm_provider):
    """ProposalPipeline for World State with the mock LLM."""
    return ProposalPipeline(world_state_store, prompt_factory, mock_llm_provider)


# =============================================================================
# Facade
# =============================================================================

@pytest.fixture
def forge(config, blob_store, mock_llm_provider):
    """StoryForge facade wired to the in-memory store and mock LLM."""
    return StoryForge(config, blob_store=blob_store, llm_provider=mock_llm_provider)


# =============================================================================
# Sample Data
# =============================================================================

@pytest.fixture
def ctx():
    """Request context for user 'alice'."""
    return RequestContext(user_id="alice", request_id="req-alice-1")


@pytest.fixture
def other_ctx():
    """Request context for a second user, 'bob'."""
    return RequestContext(user_id="bob", request_id="req-bob-1")


@pytest.fixture
def story_root():
    """A complete Story Root."""
    return StoryRoot(
        story_root_id="sr-1",
        genre="Noir",
        tone="Bleak, rain-soaked",
        thematic_pillars="Corruption; redemption",
        notes="Set in 1947 Lisbon",
    )


@pytest.fixture
def world_state():
    """A complete World State."""
    return WorldState(
        world_state_id="ws-1",
        physical_laws="Earth-normal",
        social_structures="Rigid guild hierarchy",
        historical_context="Fifty years after the Collapse",
        magic_or_technology="Steam and clockwork",
    )
