"""
storyforge.core.enums - Type-Safe Enumerations
================================================

All enums inherit from both `str` and `Enum`, which means:
    - They serialize to strings in JSON/YAML (Pydantic-friendly)
    - They can be compared with plain strings: ArtifactKind.STORY_ROOT == "story_root"
"""

from enum import Enum


# =============================================================================
# Artifact Kind Enumeration
# =============================================================================
# The two independently-versioned narrative documents. Each kind has its own
# version chain per user; nothing is shared between them.
#
#   STORY_ROOT  → genre, tone, thematic pillars
#   WORLD_STATE → physical laws, social structures, history, magic/technology
# =============================================================================
class ArtifactKind(str, Enum):
    """The kinds of versioned narrative artifacts.

    Usage:
        >>> kind = ArtifactKind.STORY_ROOT
        >>> kind.value  # "story_root"
    """

    STORY_ROOT = "story_root"
    WORLD_STATE = "world_state"


# =============================================================================
# Operation Type Enumeration
# =============================================================================
# Chosen by the proposal pipeline when preparing a prompt:
#
#   no current artifact → CREATE  (template "<kind>-create")
#   current artifact    → MERGE   (template "<kind>-merge")
# =============================================================================
class OperationType(str, Enum):
    """Prompt operations the proposal pipeline can prepare."""

    CREATE = "create"   # Build a first version from user input alone
    MERGE = "merge"     # Fold user input into the existing artifact
