"""
storyforge.core.models - Core Data Models
===========================================

This module defines the Pydantic data models that flow through every layer
of StoryForge.

Model Hierarchy:
    NarrativeArtifact   → Base for the versioned documents
        ├── StoryRoot   → genre, tone, thematic pillars, notes
        └── WorldState  → physical laws, social structures, history, ...
    VersionMetadata     → Provenance of one version (who, when, why, from what)
    VersionedArtifact   → VersionMetadata + artifact (the unit persisted per version)
    CurrentPointer      → {version_id}, one per (user, kind)
    RequestContext      → Request-scoped caller identity + correlation token
    PromptInput         → Template id + variables, produced by the pipeline
    Proposal            → Candidate artifact + current artifact for review
    CommitResult        → Outcome of a successful commit

Design Principles:
    1. Value objects: equality is structural, no identity beyond the id field
    2. Self-validating: Pydantic enforces types at creation
    3. Serializable: snake_case JSON, the stable on-disk shape
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, field_validator

from storyforge.core.enums import OperationType


def _generate_request_id() -> str:
    """Generate a correlation token for a request (UUID4, hex form)."""
    return uuid4().hex


def _now() -> datetime:
    """Get the current UTC timestamp. Every timestamp in StoryForge is UTC."""
    return datetime.now(timezone.utc)


# =============================================================================
# Narrative Artifacts
# =============================================================================
# Flat records of kind-specific string fields. Fields default to "" so a
# partial document can be represented; whether it is acceptable is decided by
# the validators, not by the model. Unknown keys (an LLM adding "summary")
# are ignored rather than rejected.
# =============================================================================
class NarrativeArtifact(BaseModel):
    """Base class for versioned narrative documents.

    Subclasses declare their string fields and set ``id_field``.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id_field: ClassVar[str] = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        # JSON null for a text field means "nothing written yet"
        return "" if value is None else value

    @property
    def artifact_id(self) -> str:
        """The value of this artifact's id field."""
        return getattr(self, self.id_field)

    def to_json_dict(self) -> dict[str, str]:
        """Serialize to the on-disk/prompt JSON shape (snake_case keys)."""
        return self.model_dump(mode="json")


class StoryRoot(NarrativeArtifact):
    """The foundational elements of a narrative.

    Attributes:
        story_root_id: Artifact id.
        genre: The genre of the story.
        tone: The emotional tone and atmosphere.
        thematic_pillars: Core themes and messages.
        notes: Free-form additional context (optional).
    """

    id_field: ClassVar[str] = "story_root_id"

    story_root_id: str = ""
    genre: str = ""
    tone: str = ""
    thematic_pillars: str = ""
    notes: str = ""


class WorldState(NarrativeArtifact):
    """The foundational elements of a story's setting.

    Attributes:
        world_state_id: Artifact id.
        physical_laws: Physical laws and rules of the world.
        social_structures: Social organization and structures.
        historical_context: Historical background and events.
        magic_or_technology: Magic systems or technology level.
        notes: Free-form additional context (optional).
    """

    id_field: ClassVar[str] = "world_state_id"

    world_state_id: str = ""
    physical_laws: str = ""
    social_structures: str = ""
    historical_context: str = ""
    magic_or_technology: str = ""
    notes: str = ""


# =============================================================================
# Version Metadata
# =============================================================================
class VersionMetadata(BaseModel):
    """Provenance of a single committed version.

    Attributes:
        version_id: Opaque id, unique within a (user, kind) chain.
        user_id: Owner of the chain.
        timestamp: UTC write time. Strictly increasing along a chain written
            through one ArtifactStore.
        source_request_id: Correlation token of the commit request.
        prior_version_id: Back-reference to the version that was current when
            this one was committed. None for the first version.
        environment: Deployment label (e.g. "dev", "prod").
        llm_assisted: Whether the content came through the proposal workflow.
    """

    version_id: str = Field(description="Opaque unique version identifier")
    user_id: str = Field(description="Owner of the version chain")
    timestamp: datetime = Field(
        default_factory=_now,
        description="UTC write time",
    )
    source_request_id: Optional[str] = Field(
        default=None,
        description="Correlation token of the request that created this version",
    )
    prior_version_id: Optional[str] = Field(
        default=None,
        description="Version that was current when this one was committed",
    )
    environment: Optional[str] = Field(
        default=None,
        description="Deployment environment label",
    )
    llm_assisted: bool = Field(
        default=False,
        description="Whether the content was proposed by the completion engine",
    )


class VersionedArtifact(BaseModel):
    """One persisted version: metadata plus the artifact it froze."""

    version_metadata: VersionMetadata
    artifact: SerializeAsAny[NarrativeArtifact]

    @property
    def version_id(self) -> str:
        return self.version_metadata.version_id


class CurrentPointer(BaseModel):
    """Mutable reference to the latest committed version of a chain."""

    version_id: str


# =============================================================================
# Request Context
# =============================================================================
# Replaces ambient reads of "who is calling" and "which environment". The
# HTTP layer builds one per request and passes it down explicitly.
# =============================================================================
class RequestContext(BaseModel):
    """Request-scoped caller information.

    Attributes:
        user_id: Authenticated user; selects the version chains.
        request_id: Correlation token. Recorded as source_request_id on
            commits and attached to every error raised for this request.
        environment: Environment label for new versions. When None, the
            configured default is used.

    Example:
        >>> ctx = RequestContext(user_id="user-42")
        >>> ctx.request_id  # auto-generated
        '3f0c...'
    """

    user_id: str = Field(description="Authenticated user id")
    request_id: str = Field(
        default_factory=_generate_request_id,
        description="Correlation token for this request",
    )
    environment: Optional[str] = Field(
        default=None,
        description="Environment label override",
    )


# =============================================================================
# Pipeline Models
# =============================================================================
class PromptInput(BaseModel):
    """Structured prompt inputs: which template and what to put in it."""

    template_id: str = Field(description="Template to assemble")
    variables: dict[str, str] = Field(
        default_factory=dict,
        description="Placeholder name → value",
    )
    operation: OperationType = Field(description="CREATE or MERGE")


class Proposal(BaseModel):
    """A validated candidate artifact, not yet committed.

    Attributes:
        proposal: The candidate produced by the completion engine.
        current: The artifact that is current right now, for side-by-side
            comparison. None if the chain is empty.
        raw_response: The completion engine output the proposal was parsed from.
    """

    proposal: SerializeAsAny[NarrativeArtifact]
    current: Optional[SerializeAsAny[NarrativeArtifact]] = None
    raw_response: str = Field(default="", repr=False)


class CommitResult(BaseModel):
    """Outcome of a successful commit."""

    version_id: str
    artifact: SerializeAsAny[NarrativeArtifact]
    prior_version_id: Optional[str] = None
