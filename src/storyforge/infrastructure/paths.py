"""
storyforge.infrastructure.paths - Storage Path Scheme
=======================================================

Deterministic mapping from (user, kind, version) to storage keys. The
ArtifactStore is the sole owner of this scheme; nothing else builds keys.

Key Schema (stable, existing data depends on it):
    users/{user}/{kind-segment}/{artifact-segment}/versions/{version_id}.json
    users/{user}/{kind-segment}/{artifact-segment}/current.json

    e.g. users/alice/story-root/root/versions/9f1c....json
         users/alice/world-state/world/current.json

Bijectivity:
    A "/" inside a user id or version id would let two logically distinct
    versions share a key ("a/b" + "c" vs "a" + "b/c"), so such ids are
    rejected. Blank ids are rejected for the same reason.
"""

from __future__ import annotations

from typing import Optional

from storyforge.core.exceptions import InvalidInputError
from storyforge.core.kinds import ArtifactKindSpec

USERS_SEGMENT = "users"
VERSIONS_SEGMENT = "versions"
CURRENT_FILE_NAME = "current.json"
VERSION_FILE_SUFFIX = ".json"


def _check_segment(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field} cannot be empty", field=field)
    if "/" in value or "\\" in value or value in (".", ".."):
        raise InvalidInputError(
            f"{field} contains characters not allowed in a storage key: {value!r}",
            field=field,
        )
    return value


def artifact_root(user_id: str, spec: ArtifactKindSpec) -> str:
    """Key prefix shared by every object of one (user, kind) chain."""
    user_id = _check_segment(user_id, "user_id")
    return f"{USERS_SEGMENT}/{user_id}/{spec.kind_segment}/{spec.artifact_segment}"


def versions_prefix(user_id: str, spec: ArtifactKindSpec) -> str:
    """Prefix under which all version objects of a chain are listed."""
    return f"{artifact_root(user_id, spec)}/{VERSIONS_SEGMENT}/"


def version_path(user_id: str, spec: ArtifactKindSpec, version_id: str) -> str:
    """Storage key of one version object."""
    version_id = _check_segment(version_id, "version_id")
    return f"{versions_prefix(user_id, spec)}{version_id}{VERSION_FILE_SUFFIX}"


def current_path(user_id: str, spec: ArtifactKindSpec) -> str:
    """Storage key of the current-version pointer."""
    return f"{artifact_root(user_id, spec)}/{CURRENT_FILE_NAME}"


def version_id_from_path(path: str) -> Optional[str]:
    """Recover the version id from a version object key.

    Returns None for keys that are not version objects (e.g. stray files
    under the versions prefix in a filesystem-backed store).
    """
    name = path.rsplit("/", 1)[-1]
    if not name.endswith(VERSION_FILE_SUFFIX):
        return None
    version_id = name[: -len(VERSION_FILE_SUFFIX)]
    return version_id or None


class PathNamer:
    """The path scheme bound to one artifact kind.

    Example:
        >>> namer = PathNamer(STORY_ROOT_SPEC)
        >>> namer.current_path("alice")
        'users/alice/story-root/root/current.json'
    """

    def __init__(self, spec: ArtifactKindSpec) -> None:
        self._spec = spec

    @property
    def spec(self) -> ArtifactKindSpec:
        return self._spec

    def version_path(self, user_id: str, version_id: str) -> str:
        return version_path(user_id, self._spec, version_id)

    def current_path(self, user_id: str) -> str:
        return current_path(user_id, self._spec)

    def versions_prefix(self, user_id: str) -> str:
        return versions_prefix(user_id, self._spec)

    def __repr__(self) -> str:
        return f"PathNamer(kind={self._spec.kind.value!r})"
