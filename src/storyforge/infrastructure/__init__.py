"""
storyforge.infrastructure - Storage Layer
===========================================

This package persists the version chains. It is split in three:

    ┌─────────────── ORCHESTRATION LAYER ─────────────────┐
    │  CommitCoordinator, ProposalPipeline                 │
    └─────────────────────┬───────────────────────────────┘
                          │ artifacts, version metadata
                          ▼
    ┌─────────────── INFRASTRUCTURE LAYER ────────────────┐
    │                                                      │
    │  ArtifactStore     - version chains + current pointer │
    │  paths             - (user, kind, version) → key      │
    │  BlobStore (ABC)   - flat key → bytes                 │
    │    ├── InMemoryBlobStore                             │
    │    └── FileSystemBlobStore                           │
    │                                                      │
    └──────────────────────────────────────────────────────┘

Usage:
    from storyforge.infrastructure import ArtifactStore, InMemoryBlobStore
"""

from storyforge.infrastructure.artifact_store import ArtifactStore
from storyforge.infrastructure.blob_store import (
    BlobStore,
    FileSystemBlobStore,
    InMemoryBlobStore,
    create_blob_store,
)
from storyforge.infrastructure.paths import (
    PathNamer,
    current_path,
    version_id_from_path,
    version_path,
    versions_prefix,
)

__all__ = [
    "ArtifactStore",
    "BlobStore",
    "FileSystemBlobStore",
    "InMemoryBlobStore",
    "PathNamer",
    "create_blob_store",
    "current_path",
    "version_id_from_path",
    "version_path",
    "versions_prefix",
]
