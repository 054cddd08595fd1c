"""Ordered cache lookup for one artifact.

Strategies run in order: the machine-local tool cache first, then the
remote cache. The first HIT wins; MISS and UNAVAILABLE fall through.
"""
from __future__ import annotations

import logging
import os
from typing import Optional, Sequence

from common.fs_utils import rm_rf, symlink
from common.logging_utils import extra_context, is_debug_enabled
from errors import CacheBackendError
from provision.models import Artifact, RunState
from .models import LookupOutcome
from .remote import RemoteCache
from .state import RunStateStore
from .tool_cache import ToolCache

logger = logging.getLogger(__name__)


class CacheStrategy:
    """One step of the lookup chain."""

    name = "base"

    async def lookup(self, artifact: Artifact, state: RunState) -> LookupOutcome:
        raise NotImplementedError


class ToolCacheStrategy(CacheStrategy):
    """Link a machine-local cache entry into the target directory."""

    name = "tool-cache"

    def __init__(self, tool_cache: Optional[ToolCache]):
        self._tool_cache = tool_cache

    async def lookup(self, artifact: Artifact, state: RunState) -> LookupOutcome:
        if not state.has_toolcache or not state.semver or self._tool_cache is None:
            return LookupOutcome.UNAVAILABLE
        cache_path = self._tool_cache.find(artifact.name, state.semver)
        if not cache_path:
            return LookupOutcome.MISS
        resolved = os.path.realpath(cache_path)
        logger.info("Using cached %s from %s", artifact.label, resolved)
        # A failed link is fatal; it does not fall through to other sources
        await symlink(resolved, state.artifact_dir(artifact))
        return LookupOutcome.HIT


class RemoteCacheStrategy(CacheStrategy):
    """Restore from the remote cache, recording misses for the finalize step."""

    name = "remote-cache"

    def __init__(self, remote: Optional[RemoteCache], store: Optional[RunStateStore] = None):
        self._remote = remote
        self._store = store

    async def lookup(self, artifact: Artifact, state: RunState) -> LookupOutcome:
        if not state.has_cache or not state.semver or self._remote is None:
            return LookupOutcome.UNAVAILABLE
        key = state.cache_key(artifact)
        logger.info("Checking cache key %s for %s", key, artifact.name)
        outcome = LookupOutcome.MISS
        try:
            hit = await self._remote.restore([artifact.name], key, state.directory)
            if hit:
                logger.info("Using cached %s, key is %s", artifact.label, key)
                return LookupOutcome.HIT
        except CacheBackendError as exc:
            logger.warning("Cache restore failed for %s: %s", artifact.name, exc)
            await rm_rf(state.artifact_dir(artifact))
            outcome = LookupOutcome.UNAVAILABLE

        record = state.pending_record(artifact, key)
        if self._store is not None:
            self._store.add_record(record)
        return outcome


class CacheLookupChain:
    """Runs cache strategies in order until one reports a hit."""

    def __init__(self, strategies: Sequence[CacheStrategy]):
        self._strategies = list(strategies)

    async def lookup(self, artifact: Artifact, state: RunState) -> bool:
        """Return True if ``artifact`` is now present in the target directory."""
        for strategy in self._strategies:
            outcome = await strategy.lookup(artifact, state)
            if is_debug_enabled(logger):
                logger.debug(
                    "Cache lookup",
                    extra=extra_context(
                        event="cache_lookup",
                        component="cache_chain",
                        action=strategy.name,
                        target=artifact.name,
                        outcome=outcome.value,
                    ),
                )
            if outcome == LookupOutcome.HIT:
                return True
        return False
