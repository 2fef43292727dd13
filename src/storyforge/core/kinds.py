"""
storyforge.core.kinds - Artifact Kind Descriptors
===================================================

Story Root and World State behave identically apart from a handful of
facts: which model class holds them, which fields are required, where they
live in storage, and which prompt templates build them. This module gathers
those facts into one ArtifactKindSpec per kind, so ArtifactStore,
CommitCoordinator and ProposalPipeline are written once and parameterized
by kind.

    ArtifactKindSpec(STORY_ROOT)
        artifact_type        = StoryRoot
        required_fields      = story_root_id, genre, tone, thematic_pillars
        kind_segment         = "story-root"
        artifact_segment     = "root"
        json_key             = "story_root"
        current_placeholder  = "current_story_root"

Usage:
    >>> spec = get_kind_spec(ArtifactKind.WORLD_STATE)
    >>> spec.template_id(OperationType.MERGE)
    'world-state-merge'
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from storyforge.core.enums import ArtifactKind, OperationType
from storyforge.core.models import NarrativeArtifact, StoryRoot, WorldState


class ArtifactKindSpec(BaseModel):
    """Everything kind-specific about one artifact kind.

    Attributes:
        kind: The kind this spec describes.
        display_name: Human-readable name for messages ("Story Root").
        artifact_type: Pydantic model class for the artifact.
        required_fields: Fields that must be non-blank, in checking order.
        kind_segment: First storage path segment below the user.
        artifact_segment: Second storage path segment below the user.
        json_key: Key holding the artifact in a stored version object.
        current_placeholder: Template placeholder for the current artifact.
    """

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    display_name: str
    artifact_type: type[NarrativeArtifact]
    required_fields: tuple[str, ...]
    kind_segment: str
    artifact_segment: str
    json_key: str
    current_placeholder: str

    def template_id(self, operation: OperationType) -> str:
        """Template id for an operation, e.g. "story-root-create"."""
        return f"{self.kind_segment}-{operation.value}"

    def build(self, data: dict[str, Any]) -> NarrativeArtifact:
        """Construct this kind's artifact model from a JSON object."""
        return self.artifact_type.model_validate(data)


STORY_ROOT_SPEC = ArtifactKindSpec(
    kind=ArtifactKind.STORY_ROOT,
    display_name="Story Root",
    artifact_type=StoryRoot,
    required_fields=("story_root_id", "genre", "tone", "thematic_pillars"),
    kind_segment="story-root",
    artifact_segment="root",
    json_key="story_root",
    current_placeholder="current_story_root",
)

WORLD_STATE_SPEC = ArtifactKindSpec(
    kind=ArtifactKind.WORLD_STATE,
    display_name="World State",
    artifact_type=WorldState,
    required_fields=(
        "world_state_id",
        "physical_laws",
        "social_structures",
        "historical_context",
        "magic_or_technology",
    ),
    kind_segment="world-state",
    artifact_segment="world",
    json_key="world_state",
    current_placeholder="current_world_state",
)

ARTIFACT_KINDS: dict[ArtifactKind, ArtifactKindSpec] = {
    ArtifactKind.STORY_ROOT: STORY_ROOT_SPEC,
    ArtifactKind.WORLD_STATE: WORLD_STATE_SPEC,
}


def get_kind_spec(kind: ArtifactKind | str) -> ArtifactKindSpec:
    """Look up the spec for a kind (enum member or its string value).

    Raises:
        ValueError: If the kind is not a known ArtifactKind.
    """
    return ARTIFACT_KINDS[ArtifactKind(kind)]
