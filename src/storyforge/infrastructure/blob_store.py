"""
storyforge.infrastructure.blob_store - Raw Object Storage
===========================================================

This module provides the lowest storage layer: a flat key → bytes store.
It knows nothing about artifacts, versions or pointers. The ArtifactStore
builds keys with the path scheme and decides what the bytes mean.

Architecture Context:

    ┌─────────────────┐   version / pointer JSON   ┌─────────────────────┐
    │  ArtifactStore  │ ─────── put/get/list ────→ │  BlobStore (ABC)    │
    └─────────────────┘                            │  ├── InMemory       │
                                                   │  └── FileSystem     │
                                                   └─────────────────────┘

Storage Implementations:
    - InMemoryBlobStore:   Dict-based, for development/testing. Supports
                           failure injection so error paths can be tested.
    - FileSystemBlobStore: Keys become relative paths under a root directory.
                           Writes go to a temp file first and are moved into
                           place with os.replace, so readers never see a
                           half-written blob.

Usage:
    >>> store = InMemoryBlobStore()
    >>> await store.put("users/alice/story-root/root/current.json", b"{}")
    >>> await store.get("users/alice/story-root/root/current.json")
    b'{}'
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import structlog

from storyforge.core.config import StorageConfig
from storyforge.core.exceptions import ConfigurationError


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


# =============================================================================
# Abstract Base Class
# =============================================================================
class BlobStore(ABC):
    """Abstract interface for a flat key → bytes object store.

    Keys are "/"-separated strings. Implementations may raise any exception
    on I/O failure; the ArtifactStore turns them into StorageError.

    Methods:
        put(path, data): Create or overwrite an object.
        get(path): Read an object, or None if it does not exist.
        exists(path): Check whether an object exists.
        list(prefix): All keys starting with prefix.
        delete(path): Remove an object.
    """

    @abstractmethod
    async def put(self, path: str, data: bytes) -> None:
        """Create or overwrite the object at path."""
        ...

    @abstractmethod
    async def get(self, path: str) -> Optional[bytes]:
        """Read the object at path.

        Returns:
            The object's bytes, or None if no object exists at path.
        """
        ...

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return True if an object exists at path."""
        ...

    @abstractmethod
    async def list(self, prefix: str) -> list[str]:
        """List every key that starts with prefix.

        Returns:
            Matching keys in lexicographic order. Callers must not rely on
            the order for anything but determinism.
        """
        ...

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Remove the object at path.

        Returns:
            True if an object was removed, False if none existed.
        """
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================
class InMemoryBlobStore(BlobStore):
    """In-memory blob store for development and testing.

    Not suitable for production: data is lost when the process exits and
    is not shared between processes.

    Failure injection:
        fail_on_put(path)  → the next puts to exactly that key raise OSError
        set_should_fail()  → every operation raises OSError until cleared

    Example:
        >>> store = InMemoryBlobStore()
        >>> store.fail_on_put("users/alice/story-root/root/current.json")
        >>> await store.put("users/alice/story-root/root/current.json", b"{}")
        Traceback (most recent call last):
        OSError: Simulated write failure: ...
    """

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._failing_put_paths: set[str] = set()
        self._should_fail = False
        self._failure_message = "Simulated storage failure"
        self._logger = logger.bind(component="in_memory_blob_store")

    # --- Failure injection -------------------------------------------------

    def fail_on_put(self, path: str) -> None:
        """Make every put to this exact key raise until cleared."""
        self._failing_put_paths.add(path)

    def set_should_fail(
        self,
        should_fail: bool,
        message: str = "Simulated storage failure",
    ) -> None:
        """Make every operation raise OSError (or stop doing so)."""
        self._should_fail = should_fail
        self._failure_message = message

    def clear_failures(self) -> None:
        """Remove all injected failures."""
        self._failing_put_paths.clear()
        self._should_fail = False

    def _check_failure(self) -> None:
        if self._should_fail:
            raise OSError(self._failure_message)

    # --- BlobStore ---------------------------------------------------------

    async def put(self, path: str, data: bytes) -> None:
        self._check_failure()
        if path in self._failing_put_paths:
            raise OSError(f"Simulated write failure: {path}")
        self._blobs[path] = bytes(data)
        self._logger.debug("blob_put", path=path, size=len(data))

    async def get(self, path: str) -> Optional[bytes]:
        self._check_failure()
        return self._blobs.get(path)

    async def exists(self, path: str) -> bool:
        self._check_failure()
        return path in self._blobs

    async def list(self, prefix: str) -> list[str]:
        self._check_failure()
        return sorted(key for key in self._blobs if key.startswith(prefix))

    async def delete(self, path: str) -> bool:
        self._check_failure()
        if path in self._blobs:
            del self._blobs[path]
            self._logger.debug("blob_deleted", path=path)
            return True
        return False

    def __len__(self) -> int:
        return len(self._blobs)


# =============================================================================
# Filesystem Implementation
# =============================================================================
class FileSystemBlobStore(BlobStore):
    """Blob store rooted at a local directory.

    Key "users/alice/story-root/root/current.json" is stored at
    "<root_dir>/users/alice/story-root/root/current.json". File I/O runs in
    a worker thread so the event loop is never blocked.

    Attributes:
        root_dir: Directory under which all blobs live. Created on demand.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self.root_dir = Path(root_dir).resolve()
        self._logger = logger.bind(component="filesystem_blob_store")

    def _resolve(self, path: str) -> Path:
        target = (self.root_dir / path).resolve()
        if target != self.root_dir and self.root_dir not in target.parents:
            raise ValueError(f"Blob key escapes the store root: {path!r}")
        return target

    # --- Synchronous helpers, run via asyncio.to_thread ---------------------

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self, target: Path) -> Optional[bytes]:
        try:
            return target.read_bytes()
        except FileNotFoundError:
            return None

    def _list(self, prefix: str) -> list[str]:
        # Walk the deepest existing directory named by the prefix
        directory = prefix.rsplit("/", 1)[0] if "/" in prefix else ""
        base = self._resolve(directory) if directory else self.root_dir
        if not base.is_dir():
            return []
        keys = []
        for file_path in base.rglob("*"):
            if not file_path.is_file() or file_path.name.endswith(".tmp"):
                continue
            key = file_path.relative_to(self.root_dir).as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    def _delete(self, target: Path) -> bool:
        try:
            target.unlink()
            return True
        except FileNotFoundError:
            return False

    # --- BlobStore ---------------------------------------------------------

    async def put(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        await asyncio.to_thread(self._write, target, data)
        self._logger.debug("blob_put", path=path, size=len(data))

    async def get(self, path: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read, self._resolve(path))

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._resolve(path).is_file)

    async def list(self, prefix: str) -> list[str]:
        return await asyncio.to_thread(self._list, prefix)

    async def delete(self, path: str) -> bool:
        deleted = await asyncio.to_thread(self._delete, self._resolve(path))
        if deleted:
            self._logger.debug("blob_deleted", path=path)
        return deleted

    def __repr__(self) -> str:
        return f"FileSystemBlobStore(root_dir={str(self.root_dir)!r})"


# =============================================================================
# Factory
# =============================================================================
def create_blob_store(config: StorageConfig) -> BlobStore:
    """Create the blob store selected by the storage configuration.

    Raises:
        ConfigurationError: If the backend name is not recognized.
    """
    backend = config.backend.lower()

    if backend == "memory":
        logger.info("blob_store_created", backend="memory")
        return InMemoryBlobStore()

    if backend == "filesystem":
        logger.info("blob_store_created", backend="filesystem", root_dir=config.root_dir)
        return FileSystemBlobStore(config.root_dir)

    raise ConfigurationError(
        message=f"Unknown storage backend: '{config.backend}'",
        error_code="UNKNOWN_STORAGE_BACKEND",
        details={
            "backend": config.backend,
            "supported_backends": ["memory", "filesystem"],
        },
    )
