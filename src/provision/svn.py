"""Subversion checkouts via the ``svn`` command-line client."""

from __future__ import annotations

import asyncio
import logging
from typing import List

from common.logging_utils import Timer, safe_url
from errors import FetchError

logger = logging.getLogger(__name__)


class SvnClient:
    """Runs ``svn checkout`` as a subprocess without blocking the event loop."""

    def __init__(self, executable: str = "svn"):
        self._executable = executable

    def _command(self, url: str, dest: str) -> List[str]:
        return [self._executable, "checkout", "--quiet", "--non-interactive", url, dest]

    async def checkout(self, url: str, dest: str) -> None:
        """Check out ``url`` into ``dest``.

        Raises:
            FetchError: If svn is missing or exits non-zero.
        """
        target = safe_url(url)
        with Timer() as t:
            try:
                proc = await asyncio.create_subprocess_exec(
                    *self._command(url, dest),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as exc:
                raise FetchError(f"Failed to run {self._executable}: {exc}") from exc
            _, stderr = await proc.communicate()
        if proc.returncode != 0:
            detail = stderr.decode("utf-8", "replace").strip()
            raise FetchError(f"Failed to check out {target}: {detail or proc.returncode}")
        logger.debug("Checked out %s in %d ms", target, t.duration_ms())
