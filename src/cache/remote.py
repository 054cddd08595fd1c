"""Remote content cache keyed by composite strings.

The workspace root is passed explicitly to every call: cached paths are
relative to it both when saving and when restoring.
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import tarfile
import tempfile
import zlib
from typing import List, Optional, Sequence

from constants import Constants
from common.actions import is_ghes
from errors import CacheBackendError

logger = logging.getLogger(__name__)


class RemoteCache:
    """Interface of a remote key/value content cache."""

    def is_available(self) -> bool:
        """Return True if the backend can be used in this environment."""
        raise NotImplementedError

    async def restore(self, paths: Sequence[str], key: str, workspace: str) -> Optional[str]:
        """Restore ``paths`` under ``workspace``; return the key on a hit.

        Raises:
            CacheBackendError: If the backend fails.
        """
        raise NotImplementedError

    async def save(self, paths: Sequence[str], key: str, workspace: str) -> None:
        """Persist ``paths`` (relative to ``workspace``) under ``key``.

        Raises:
            CacheBackendError: If the backend fails or refuses the key.
        """
        raise NotImplementedError


class DirectoryRemoteCache(RemoteCache):
    """Stores one gzip tarball per key in a (typically shared) directory."""

    def __init__(self, store: Optional[str]):
        """Initialize the cache.

        Args:
            store: Store directory; None disables the cache.
        """
        self._store = store

    @classmethod
    def from_env(cls, store: Optional[str] = None) -> "DirectoryRemoteCache":
        """Build from ``store`` or the WPTL_CACHE_STORE environment variable."""
        return cls(store or os.environ.get(Constants.ENV_CACHE_STORE) or None)

    def is_available(self) -> bool:
        return bool(self._store) and not is_ghes()

    def archive_path(self, key: str) -> str:
        """Return the archive file backing ``key``.

        Raises:
            CacheBackendError: If no store directory is configured.
        """
        if not self._store:
            raise CacheBackendError("Cache store is not configured")
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self._store, f"{digest}.tar.gz")

    async def restore(self, paths: Sequence[str], key: str, workspace: str) -> Optional[str]:
        archive = self.archive_path(key)
        try:
            restored = await asyncio.to_thread(self._extract, archive, paths, workspace)
        except (tarfile.TarError, OSError, EOFError, zlib.error) as exc:
            raise CacheBackendError(f"Failed to restore {key}: {exc}") from exc
        if not restored:
            return None
        logger.debug("Restored %s into %s", key, workspace)
        return key

    @staticmethod
    def _members_for(tar: tarfile.TarFile, paths: Sequence[str]) -> List[tarfile.TarInfo]:
        roots = [p.rstrip("/") for p in paths]
        return [
            m for m in tar.getmembers()
            if any(m.name == r or m.name.startswith(f"{r}/") for r in roots)
        ]

    @classmethod
    def _extract(cls, archive: str, paths: Sequence[str], workspace: str) -> bool:
        if not os.path.isfile(archive):
            return False
        with tarfile.open(archive, "r:gz") as tar:
            members = cls._members_for(tar, paths)
            if not members:
                return False
            tar.extractall(workspace, members=members, filter="data")
        return True

    async def save(self, paths: Sequence[str], key: str, workspace: str) -> None:
        archive = self.archive_path(key)
        if os.path.exists(archive):
            raise CacheBackendError(f"Cache entry {key} already exists")
        try:
            await asyncio.to_thread(self._write, archive, paths, workspace)
        except (tarfile.TarError, OSError) as exc:
            raise CacheBackendError(f"Failed to save {key}: {exc}") from exc
        logger.debug("Saved %s from %s", key, workspace)

    def _write(self, archive: str, paths: Sequence[str], workspace: str) -> None:
        # Written to a temporary file first; readers only ever see complete archives
        os.makedirs(self._store, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._store, suffix=".tmp")
        os.close(fd)
        try:
            with tarfile.open(tmp_path, "w:gz") as tar:
                for path in paths:
                    full = os.path.join(workspace, path)
                    if not os.path.exists(full):
                        raise CacheBackendError(f"Path {full} does not exist")
                    tar.add(full, arcname=path)
            os.replace(tmp_path, archive)
            tmp_path = None
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
