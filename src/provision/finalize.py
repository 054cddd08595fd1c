"""Post-run persistence of remote cache entries.

Runs as a separate invocation after the job. Every failure here is a
warning; this step never fails the job.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from cache.models import PendingCacheRecord
from cache.remote import DirectoryRemoteCache, RemoteCache
from cache.state import RunStateStore
from errors import CacheBackendError

logger = logging.getLogger(__name__)


class FinalizeCache:
    """Saves the cache entries recorded as misses by the setup run."""

    def __init__(self, store: RunStateStore, remote: RemoteCache):
        self._store = store
        self._remote = remote

    async def _save(self, record: PendingCacheRecord) -> bool:
        logger.info("Saving %s cache with the key of %s", record.artifact, record.key)
        try:
            await self._remote.save([record.artifact], record.key, record.directory)
        except CacheBackendError as exc:
            logger.warning("Failed to save cache for %s: %s", record.artifact, exc)
            return False
        return True

    async def run(self) -> List[PendingCacheRecord]:
        """Persist pending records; return the ones saved."""
        if not self._store.is_successful():
            logger.warning("Setup did not complete successfully, not saving the cache")
            return []
        records = self._store.records()
        if not records:
            logger.info("Nothing to cache")
            return []
        saved = []
        for record in records:
            if await self._save(record):
                saved.append(record)
        return saved


async def run_finalize(state_file: Optional[str] = None, cache_store: Optional[str] = None) -> List[PendingCacheRecord]:
    """Entry point of the finalize step."""
    finalizer = FinalizeCache(
        RunStateStore(state_file),
        DirectoryRemoteCache.from_env(cache_store),
    )
    return await finalizer.run()
