"""Machine-local tool cache.

Uses the runner tool-cache layout: ``<root>/<tool>/<version>/<arch>/``
holds the content and the sibling file ``<arch>.complete`` marks the
entry as fully written.
"""
from __future__ import annotations

import asyncio
import logging
import os
import platform
import shutil
from typing import Optional

from constants import Constants
from errors import ProvisionIOError

logger = logging.getLogger(__name__)

_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
}


def host_arch() -> str:
    """Return the host architecture in tool-cache naming."""
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine or "x64")


class ToolCache:
    """Content cache keyed by (tool, version, arch) on the local machine."""

    def __init__(self, root: str, arch: Optional[str] = None):
        """Initialize the cache.

        Args:
            root: Tool-cache root directory.
            arch: Architecture segment; detected from the host if omitted.
        """
        self._root = root
        self._arch = arch or host_arch()

    @classmethod
    def from_env(cls, root: Optional[str] = None) -> Optional["ToolCache"]:
        """Return a cache rooted at ``root`` or RUNNER_TOOL_CACHE, or None if neither is set."""
        root = root or os.environ.get(Constants.ENV_TOOL_CACHE)
        if not root:
            return None
        return cls(root)

    @property
    def root(self) -> str:
        return self._root

    def _entry_path(self, tool: str, version: str) -> str:
        return os.path.join(self._root, tool, version, self._arch)

    def find(self, tool: str, version: str) -> Optional[str]:
        """Return the cached directory for ``tool``/``version`` if complete."""
        path = self._entry_path(tool, version)
        if os.path.isdir(path) and os.path.isfile(f"{path}.complete"):
            logger.debug("Tool cache hit for %s %s at %s", tool, version, path)
            return path
        return None

    @staticmethod
    def _copy_into(source: str, dest: str) -> None:
        marker = f"{dest}.complete"
        if os.path.exists(marker):
            os.unlink(marker)
        if os.path.isdir(dest):
            shutil.rmtree(dest)
        shutil.copytree(source, dest, symlinks=True)
        with open(marker, "w", encoding="utf-8"):
            pass

    async def cache_dir(self, source: str, tool: str, version: str) -> str:
        """Copy the contents of ``source`` into the cache and mark it complete.

        Raises:
            ProvisionIOError: If the copy fails.
        """
        dest = self._entry_path(tool, version)
        logger.debug("Caching %s %s from %s", tool, version, source)
        try:
            await asyncio.to_thread(self._copy_into, source, dest)
        except OSError as exc:
            raise ProvisionIOError(f"Failed to cache {tool} {version}: {exc}") from exc
        return dest
