"""
storyforge.infrastructure.artifact_store - Versioned Artifact Persistence
===========================================================================

This module owns the version chains. Each (user, kind) pair has an
append-only list of version objects plus one mutable pointer naming the
current version. Nothing else in StoryForge reads or writes those objects.

Architecture Context:

    ┌────────────────────┐                  ┌────────────────────┐
    │ CommitCoordinator  │ ── save/list ──→ │   ArtifactStore    │
    │ ProposalPipeline   │ ── get_current → │   (one per kind)   │
    └────────────────────┘                  └─────────┬──────────┘
                                                      │ JSON bytes
                                                      ▼
                                            ┌────────────────────┐
                                            │     BlobStore      │
                                            └────────────────────┘

Stored Shapes (stable, existing data depends on them):
    version object:  {"version_metadata": {...}, "story_root": {...}}
    pointer object:  {"version_id": "9f1c..."}

Write Order:
    save_new_version writes the version object first and the pointer second.
    A pointer therefore never names a version that was not written. If the
    pointer write fails, the new version is durable but unreferenced;
    reconcile_current repairs that.

Usage:
    >>> store = ArtifactStore(STORY_ROOT_SPEC, InMemoryBlobStore())
    >>> version_id = await store.save_new_version("alice", story_root)
    >>> await store.get_current("alice")
    StoryRoot(story_root_id='sr-1', genre='Noir', ...)
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

import structlog
from pydantic import ValidationError as PydanticValidationError

from storyforge.core.exceptions import InvalidInputError, StorageError
from storyforge.core.kinds import ArtifactKindSpec
from storyforge.core.models import (
    CurrentPointer,
    NarrativeArtifact,
    VersionedArtifact,
    VersionMetadata,
)
from storyforge.infrastructure.blob_store import BlobStore
from storyforge.infrastructure.paths import PathNamer, version_id_from_path


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


def _generate_version_id() -> str:
    """Generate a fresh version id (UUID4, hex form)."""
    return uuid4().hex


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ArtifactStore:
    """Version-chain storage for one artifact kind.

    Attributes:
        spec: The artifact kind this store persists.

    Args:
        clock: Source of "now" for new versions. Defaults to the UTC wall
            clock.

    Example:
        >>> store = ArtifactStore(WORLD_STATE_SPEC, blob_store)
        >>> history = await store.list_versions("alice")
        >>> [m.version_id for m in history]   # newest first
    """

    def __init__(
        self,
        spec: ArtifactKindSpec,
        blob_store: BlobStore,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.spec = spec
        self._blobs = blob_store
        self._paths = PathNamer(spec)
        self._clock = clock or _utc_now
        self._logger = logger.bind(component="artifact_store", kind=spec.kind.value)

    # =========================================================================
    # Blob I/O
    # =========================================================================
    # Every exception from the blob store surfaces as StorageError with the
    # key attached. Nothing is retried.
    # =========================================================================

    async def _read_json(self, path: str) -> Optional[dict[str, Any]]:
        try:
            data = await self._blobs.get(path)
        except Exception as exc:
            self._logger.error("blob_read_failed", path=path, error=str(exc))
            raise StorageError(
                f"Failed to read '{path}': {exc}",
                path=path,
                details={"error": str(exc)},
            ) from exc

        if data is None:
            return None

        try:
            decoded = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StorageError(
                f"Stored object at '{path}' is not valid JSON",
                path=path,
                details={"error": str(exc)},
            ) from exc

        if not isinstance(decoded, dict):
            raise StorageError(
                f"Stored object at '{path}' is not a JSON object",
                path=path,
            )
        return decoded

    async def _write_json(self, path: str, payload: dict[str, Any]) -> None:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        try:
            await self._blobs.put(path, data)
        except Exception as exc:
            self._logger.error("blob_write_failed", path=path, error=str(exc))
            raise StorageError(
                f"Failed to write '{path}': {exc}",
                path=path,
                details={"error": str(exc)},
            ) from exc

    # =========================================================================
    # Serialization
    # =========================================================================

    def _encode_version(self, versioned: VersionedArtifact) -> dict[str, Any]:
        return {
            "version_metadata": versioned.version_metadata.model_dump(mode="json"),
            self.spec.json_key: versioned.artifact.to_json_dict(),
        }

    def _decode_version(self, path: str, payload: dict[str, Any]) -> VersionedArtifact:
        try:
            metadata = VersionMetadata.model_validate(payload.get("version_metadata"))
            artifact = self.spec.build(payload.get(self.spec.json_key) or {})
        except PydanticValidationError as exc:
            raise StorageError(
                f"Stored version at '{path}' has an invalid shape",
                path=path,
                details={"error": str(exc)},
            ) from exc
        return VersionedArtifact(version_metadata=metadata, artifact=artifact)

    def _next_timestamp(self, floor: Optional[datetime]) -> datetime:
        # Strictly after the chain head, whatever this process's clock says
        now = self._clock()
        if floor is not None and now <= floor:
            now = floor + timedelta(microseconds=1)
        return now

    async def _chain_floor(
        self,
        user_id: str,
        prior_version_id: Optional[str],
        prior_timestamp: Optional[datetime],
    ) -> Optional[datetime]:
        if prior_timestamp is not None:
            return prior_timestamp
        anchor = prior_version_id or await self.get_current_version_id(user_id)
        if anchor is None:
            return None
        versioned = await self.get_versioned(user_id, anchor)
        return versioned.version_metadata.timestamp if versioned is not None else None

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_current_version_id(self, user_id: str) -> Optional[str]:
        """Read the current pointer only.

        Returns:
            The current version id, or None if the chain has no pointer.

        Raises:
            StorageError: If the pointer cannot be read or decoded.
        """
        path = self._paths.current_path(user_id)
        payload = await self._read_json(path)
        if payload is None:
            return None
        try:
            pointer = CurrentPointer.model_validate(payload)
        except PydanticValidationError as exc:
            raise StorageError(
                f"Current pointer at '{path}' has an invalid shape",
                path=path,
                error_code="CHAIN_INTEGRITY",
                details={"error": str(exc)},
            ) from exc

        if not pointer.version_id:
            return None
        try:
            self._paths.version_path(user_id, pointer.version_id)
        except InvalidInputError as exc:
            raise StorageError(
                f"Current pointer at '{path}' names an unusable version id",
                path=path,
                error_code="CHAIN_INTEGRITY",
                details={"version_id": pointer.version_id},
            ) from exc
        return pointer.version_id

    async def get_versioned(
        self, user_id: str, version_id: str
    ) -> Optional[VersionedArtifact]:
        """Load one version with its metadata. None if it does not exist."""
        path = self._paths.version_path(user_id, version_id)
        payload = await self._read_json(path)
        if payload is None:
            return None
        return self._decode_version(path, payload)

    async def get_version(
        self, user_id: str, version_id: str
    ) -> Optional[NarrativeArtifact]:
        """Load the artifact frozen in one version. None if it does not exist."""
        versioned = await self.get_versioned(user_id, version_id)
        return versioned.artifact if versioned is not None else None

    async def get_current(self, user_id: str) -> Optional[NarrativeArtifact]:
        """Load the artifact the current pointer names.

        Returns:
            The current artifact, or None for an empty chain.

        Raises:
            StorageError: With error_code "CHAIN_INTEGRITY" if the pointer
                names a version that does not exist.
        """
        version_id = await self.get_current_version_id(user_id)
        if version_id is None:
            return None

        artifact = await self.get_version(user_id, version_id)
        if artifact is None:
            self._logger.error(
                "chain_integrity_violation",
                user_id=user_id,
                version_id=version_id,
            )
            raise StorageError(
                f"Current pointer references missing version '{version_id}'",
                path=self._paths.version_path(user_id, version_id),
                error_code="CHAIN_INTEGRITY",
                details={"version_id": version_id},
            )
        return artifact

    async def list_versions(self, user_id: str) -> list[VersionMetadata]:
        """Metadata of every version in the chain, newest first.

        Reads one object per version. Ties on timestamp are broken by
        version id, descending.
        """
        prefix = self._paths.versions_prefix(user_id)
        try:
            keys = await self._blobs.list(prefix)
        except Exception as exc:
            self._logger.error("blob_list_failed", prefix=prefix, error=str(exc))
            raise StorageError(
                f"Failed to list '{prefix}': {exc}",
                path=prefix,
                details={"error": str(exc)},
            ) from exc

        history: list[VersionMetadata] = []
        for key in keys:
            if version_id_from_path(key) is None:
                continue
            payload = await self._read_json(key)
            if payload is None:
                # Deleted between list and read
                continue
            history.append(self._decode_version(key, payload).version_metadata)

        history.sort(key=lambda m: (m.timestamp, m.version_id), reverse=True)
        return history

    # =========================================================================
    # Writes
    # =========================================================================

    async def save_new_version(
        self,
        user_id: str,
        artifact: NarrativeArtifact,
        prior_version_id: Optional[str] = None,
        source_request_id: Optional[str] = None,
        environment: Optional[str] = None,
        llm_assisted: bool = False,
        prior_timestamp: Optional[datetime] = None,
    ) -> str:
        """Append a version to the chain and move the pointer to it.

        No concurrency check happens here; that is CommitCoordinator's job.

        The new timestamp is strictly later than the chain head's, so the
        version sorts first in list_versions even when this process's
        clock lags the writer of the head. The head is prior_timestamp
        when given, else the prior version (or the current one) is read.

        Returns:
            The new version id.

        Raises:
            InvalidInputError: If artifact is not this store's kind.
            StorageError: If either write fails. A failed pointer write
                leaves the new version durable but unreferenced.
        """
        if not isinstance(artifact, self.spec.artifact_type):
            raise InvalidInputError(
                f"Expected {self.spec.artifact_type.__name__}, "
                f"got {type(artifact).__name__}",
                field="artifact",
            )

        floor = await self._chain_floor(user_id, prior_version_id, prior_timestamp)
        version_id = _generate_version_id()
        metadata = VersionMetadata(
            version_id=version_id,
            user_id=user_id,
            timestamp=self._next_timestamp(floor),
            source_request_id=source_request_id,
            prior_version_id=prior_version_id,
            environment=environment,
            llm_assisted=llm_assisted,
        )
        versioned = VersionedArtifact(version_metadata=metadata, artifact=artifact)

        version_path = self._paths.version_path(user_id, version_id)
        await self._write_json(version_path, self._encode_version(versioned))
        await self._write_json(
            self._paths.current_path(user_id),
            CurrentPointer(version_id=version_id).model_dump(),
        )

        self._logger.info(
            "version_saved",
            user_id=user_id,
            version_id=version_id,
            prior_version_id=prior_version_id,
            request_id=source_request_id,
        )
        return version_id

    async def reconcile_current(self, user_id: str) -> Optional[str]:
        """Point current at the newest version in the chain.

        Recovery for a commit whose pointer write failed. A no-op write is
        skipped when the pointer is already correct.

        Returns:
            The newest version id, or None for an empty chain.
        """
        history = await self.list_versions(user_id)
        if not history:
            return None

        newest = history[0].version_id
        current_path = self._paths.current_path(user_id)
        pointed = await self._read_json(current_path)
        if pointed is None or pointed.get("version_id") != newest:
            await self._write_json(
                current_path, CurrentPointer(version_id=newest).model_dump()
            )
            self._logger.warning(
                "current_pointer_reconciled",
                user_id=user_id,
                version_id=newest,
                previous=(pointed or {}).get("version_id"),
            )
        return newest

    def __repr__(self) -> str:
        return f"ArtifactStore(kind={self.spec.kind.value!r})"
