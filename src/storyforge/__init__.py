"""
StoryForge - Versioned Narrative Artifacts with LLM-Assisted Merges
=====================================================================

StoryForge keeps two independently-versioned documents per user, Story
Root and World State, as append-only version chains in an object store.
A completion engine proposes merges of free-form input; the user reviews
them and commits with an optimistic-concurrency token.

    propose_merge(input) → Proposal(proposal, current) → commit(proposal, expected)

Layers (top to bottom):
    1. Facade          - StoryForge, one ArtifactService per kind
    2. Orchestration   - ProposalPipeline, CommitCoordinator, validators
    3. Infrastructure  - ArtifactStore, path scheme, BlobStore
    4. Integrations    - Completion engines (mock, OpenAI-compatible)

Quick Start:
    >>> from storyforge import StoryForge
    >>> from storyforge.core import RequestContext
    >>> forge = StoryForge()
    >>> ctx = RequestContext(user_id="alice")
    >>> proposal = await forge.story_root.propose_merge(ctx, "Gothic horror, slow dread")
"""

# =============================================================================
# Package Version
# =============================================================================
__version__ = "0.1.0"

# =============================================================================
# Package-Level Exports
# =============================================================================
# For specific components, import from submodules directly:
#   from storyforge.core.config import StoryForgeConfig
#   from storyforge.core.models import StoryRoot, RequestContext
# =============================================================================
from storyforge.facade import ArtifactService, StoryForge

__all__ = ["ArtifactService", "StoryForge", "__version__"]
