"""Async HTTP helpers for the version feed, text files and archives.

All network access goes through ``HttpClient`` so a single aiohttp session
is shared by the concurrent artifact pipelines of one run.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Tuple

import aiohttp

from constants import Constants
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from errors import FetchError

logger = logging.getLogger(__name__)


class HttpClient:
    """Thin wrapper around an aiohttp session."""

    def __init__(self, timeout: int = Constants.REQUEST_TIMEOUT):
        """Initialize the client.

        Args:
            timeout: Total timeout in seconds for JSON and text requests.
                Archive downloads only bound the time between reads.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._download_timeout = aiohttp.ClientTimeout(total=None, sock_read=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": Constants.USER_AGENT},
            )

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            await self.start()
        assert self._session is not None
        return self._session

    async def get_json(self, url: str) -> Tuple[int, Optional[Any]]:
        """GET ``url`` and parse the body as JSON.

        Returns:
            Tuple of (status_code, parsed_json_or_none). Connection failures
            are reported as status 0.
        """
        session = await self._ensure_session()
        safe_target = safe_url(url)
        with Timer() as t:
            try:
                async with session.get(url, timeout=self._timeout) as response:
                    status = response.status
                    text = await response.text()
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.debug("GET %s failed: %s", safe_target, exc)
                return 0, None
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="get_json",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                ),
            )
        if status != 200 or not text:
            return status, None
        try:
            return status, json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Invalid JSON from %s", safe_target)
            return status, None

    async def download_text(self, url: str) -> str:
        """Download ``url`` as text, retrying transient failures.

        Raises:
            FetchError: If every attempt fails or the final status is not 200.
        """
        session = await self._ensure_session()
        safe_target = safe_url(url)
        last_error = ""
        for attempt in range(Constants.HTTP_RETRY_MAX):
            if attempt:
                await asyncio.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * attempt)
            try:
                async with session.get(url, timeout=self._timeout) as response:
                    if response.status == 200:
                        return await response.text()
                    last_error = f"error {response.status}"
                    # Client errors will not improve on retry
                    if response.status < 500:
                        break
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                last_error = str(exc) or type(exc).__name__
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP attempt failed",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        action="download_text",
                        attempt=attempt + 1,
                        target=safe_target,
                    ),
                )
        raise FetchError(f"Failed to download {safe_target}: {last_error}")

    async def download_file(self, url: str, dest: str) -> str:
        """Stream ``url`` into the file ``dest`` and return ``dest``.

        Raises:
            FetchError: On connection failure or a non-200 status.
        """
        session = await self._ensure_session()
        safe_target = safe_url(url)
        with Timer() as t:
            try:
                async with session.get(url, timeout=self._download_timeout) as response:
                    if response.status != 200:
                        raise FetchError(
                            f"Failed to download {safe_target}: error {response.status}"
                        )
                    with open(dest, "wb") as fh:
                        async for chunk in response.content.iter_chunked(
                            Constants.DOWNLOAD_CHUNK_SIZE
                        ):
                            fh.write(chunk)
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                raise FetchError(f"Failed to download {safe_target}: {exc}") from exc
            except OSError as exc:
                raise FetchError(f"Failed to write {dest}: {exc}") from exc
        logger.debug("Downloaded %s in %d ms", safe_target, t.duration_ms())
        return dest

    async def __aenter__(self) -> "HttpClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
