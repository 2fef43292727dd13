"""
storyforge.core - Foundation Layer
====================================

This package contains the building blocks every other StoryForge package
depends on:

    - config:      Configuration management (StoryForgeConfig, StorageConfig, LLMConfig)
    - enums:       Type-safe enumerations (ArtifactKind, OperationType)
    - models:      Pydantic data models (StoryRoot, WorldState, VersionMetadata, ...)
    - kinds:       Per-kind descriptors (ArtifactKindSpec) and their registry
    - exceptions:  The closed StoryForgeError hierarchy

Dependency Rule:
    core/ depends on NOTHING else in the storyforge package. No I/O happens
    here, so core types are safe to import anywhere.
"""

from storyforge.core.config import (
    LLMConfig,
    StorageConfig,
    StoryForgeConfig,
    TemplateConfig,
)
from storyforge.core.enums import ArtifactKind, OperationType
from storyforge.core.exceptions import (
    CompletionError,
    CompletionFailureReason,
    ConfigurationError,
    ConflictError,
    InvalidInputError,
    ParseError,
    StorageError,
    StoryForgeError,
    SubstitutionError,
    TemplateNotFoundError,
    ValidationError,
)
from storyforge.core.kinds import (
    ARTIFACT_KINDS,
    STORY_ROOT_SPEC,
    WORLD_STATE_SPEC,
    ArtifactKindSpec,
    get_kind_spec,
)
from storyforge.core.models import (
    CommitResult,
    CurrentPointer,
    NarrativeArtifact,
    PromptInput,
    Proposal,
    RequestContext,
    StoryRoot,
    VersionedArtifact,
    VersionMetadata,
    WorldState,
)

__all__ = [
    # Config
    "StoryForgeConfig",
    "StorageConfig",
    "LLMConfig",
    "TemplateConfig",
    # Enums
    "ArtifactKind",
    "OperationType",
    # Kinds
    "ArtifactKindSpec",
    "ARTIFACT_KINDS",
    "STORY_ROOT_SPEC",
    "WORLD_STATE_SPEC",
    "get_kind_spec",
    # Models
    "NarrativeArtifact",
    "StoryRoot",
    "WorldState",
    "VersionMetadata",
    "VersionedArtifact",
    "CurrentPointer",
    "RequestContext",
    "PromptInput",
    "Proposal",
    "CommitResult",
    # Exceptions
    "StoryForgeError",
    "InvalidInputError",
    "ValidationError",
    "ConflictError",
    "StorageError",
    "CompletionError",
    "CompletionFailureReason",
    "SubstitutionError",
    "ParseError",
    "TemplateNotFoundError",
    "ConfigurationError",
]
