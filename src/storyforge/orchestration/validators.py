"""
storyforge.orchestration.validators - Required-Field Validation
=================================================================

One ArtifactValidator per kind. A field counts as missing when it is empty
or whitespace only. All missing fields are reported together, in the
order the kind declares them, so a user can fix everything in one pass.

    >>> validator = ArtifactValidator(STORY_ROOT_SPEC)
    >>> validator.validate(StoryRoot(story_root_id="sr-1", genre="Noir"))
    Traceback (most recent call last):
    ValidationError: tone, thematic_pillars are required
"""

from __future__ import annotations

from typing import Any

from storyforge.core.exceptions import InvalidInputError, ValidationError
from storyforge.core.kinds import ArtifactKindSpec
from storyforge.core.models import NarrativeArtifact


class ArtifactValidator:
    """Checks an artifact against its kind's required fields."""

    def __init__(self, spec: ArtifactKindSpec) -> None:
        self.spec = spec

    def missing_fields(self, artifact: NarrativeArtifact) -> list[str]:
        """Required fields that are blank, in declaration order."""
        return [
            field
            for field in self.spec.required_fields
            if not str(getattr(artifact, field, "") or "").strip()
        ]

    def validate(self, artifact: Any) -> NarrativeArtifact:
        """Return the artifact unchanged if it is complete.

        Raises:
            InvalidInputError: If artifact is not this kind's model.
            ValidationError: If any required field is blank.
        """
        if not isinstance(artifact, self.spec.artifact_type):
            raise InvalidInputError(
                f"{self.spec.display_name} must be a "
                f"{self.spec.artifact_type.__name__}, got {type(artifact).__name__}",
                field="artifact",
            )

        missing = self.missing_fields(artifact)
        if missing:
            verb = "is" if len(missing) == 1 else "are"
            raise ValidationError(
                f"{', '.join(missing)} {verb} required",
                kind=self.spec.kind.value,
                missing_fields=missing,
            )
        return artifact

    def is_valid(self, artifact: Any) -> bool:
        """Non-raising form of validate()."""
        if not isinstance(artifact, self.spec.artifact_type):
            return False
        return not self.missing_fields(artifact)

    def __repr__(self) -> str:
        return f"ArtifactValidator(kind={self.spec.kind.value!r})"
