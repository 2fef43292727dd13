"""
storyforge.orchestration - Proposal and Commit Workflows
==========================================================

    ┌────────────────────┐   propose()   ┌────────────────────┐
    │  ProposalPipeline  │ ────────────→ │  Proposal (review) │
    └────────────────────┘               └─────────┬──────────┘
                                                   │ commit()
                                                   ▼
                                         ┌────────────────────┐
                                         │ CommitCoordinator  │
                                         └────────────────────┘

Both are parameterized by an ArtifactKindSpec through their ArtifactStore
and validate with ArtifactValidator.
"""

from storyforge.orchestration.commit_coordinator import CommitCoordinator
from storyforge.orchestration.proposal_pipeline import ProposalPipeline, compact_json
from storyforge.orchestration.validators import ArtifactValidator

__all__ = [
    "ArtifactValidator",
    "CommitCoordinator",
    "ProposalPipeline",
    "compact_json",
]
