"""Run state and artifact descriptions."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from typing import Optional

from cache.models import PendingCacheRecord
from constants import Artifacts, Constants
from versioning.semver import coerce_semver


@dataclass(frozen=True)
class Artifact:
    """One provisioned tree."""

    name: str  # tool-cache name, remote-cache path and subdirectory
    label: str


WORDPRESS = Artifact(Artifacts.WORDPRESS.value, "WordPress")
TESTS_LIB = Artifact(Artifacts.TESTS_LIB.value, "WordPress Test Library")


@dataclass
class ProvisionConfig:
    """Inputs of a provisioning run."""

    version: str = Constants.DEFAULT_VERSION
    dir: str = field(default_factory=tempfile.gettempdir)
    cache_prefix: str = Constants.DEFAULT_CACHE_PREFIX
    db_user: str = Constants.DEFAULT_DB_USER
    db_password: str = Constants.DEFAULT_DB_PASSWORD
    db_name: str = Constants.DEFAULT_DB_NAME
    db_host: str = Constants.DEFAULT_DB_HOST
    cache_store: Optional[str] = None
    tool_cache_dir: Optional[str] = None
    state_file: Optional[str] = None

    def __post_init__(self) -> None:
        self.dir = os.path.abspath(self.dir)


@dataclass
class RunState:
    """State held for the lifetime of one provisioning run.

    ``version`` is resolved once; ``semver`` derives from it and switches
    caching on or off for both artifacts together.
    """

    directory: str
    has_cache: bool
    has_toolcache: bool
    cache_prefix: str = ""
    version: Optional[str] = None
    semver: Optional[str] = None

    def apply_version(self, version: str) -> None:
        """Record the resolved version and derive the cache switch from it.

        A version without a semantic form, or the rolling build, disables
        both caches for the rest of the run.
        """
        if self.version is not None and self.version != version:
            raise ValueError(f"Version already resolved to {self.version}")
        self.version = version
        self.semver = coerce_semver(version)
        if not self.semver or version == Constants.NIGHTLY:
            self.has_cache = False
            self.has_toolcache = False

    def cache_key(self, artifact: Artifact) -> str:
        """Remote cache key, ``<schema>:<prefix>:<artifact>:<semver>``."""
        return ":".join(
            (Constants.CACHE_SCHEMA_VERSION, self.cache_prefix, artifact.name, str(self.semver))
        )

    def artifact_dir(self, artifact: Artifact) -> str:
        return os.path.join(self.directory, artifact.name)

    @property
    def archive_path(self) -> str:
        return os.path.join(self.directory, Constants.ARCHIVE_NAME)

    def pending_record(self, artifact: Artifact, key: str) -> PendingCacheRecord:
        """Describe a cache entry for the finalize step to save."""
        return PendingCacheRecord(artifact=artifact.name, directory=self.directory, key=key)
