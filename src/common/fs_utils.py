"""Filesystem primitives used by the provisioning pipeline.

Blocking work runs in a worker thread so concurrent pipeline steps keep
making progress.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import zipfile

from errors import FetchError, ProvisionIOError


async def is_dir(path: str) -> bool:
    """Check if a given path is a directory."""
    try:
        return await asyncio.to_thread(os.path.isdir, path)
    except OSError:
        return False


def _remove(path: str) -> None:
    if os.path.islink(path) or os.path.isfile(path):
        os.unlink(path)
    elif os.path.isdir(path):
        shutil.rmtree(path)


async def rm_rf(path: str) -> None:
    """Remove a file, link or directory tree; missing paths are ignored.

    Links are unlinked, never followed, so a link into a shared cache
    leaves the cache intact.

    Raises:
        ProvisionIOError: If the path exists but cannot be removed.
    """
    try:
        await asyncio.to_thread(_remove, path)
    except OSError as exc:
        raise ProvisionIOError(f"Failed to remove {path}: {exc}") from exc


async def mkdir_p(path: str) -> None:
    """Create ``path`` and any missing parents.

    Raises:
        ProvisionIOError: If the directory cannot be created.
    """
    try:
        await asyncio.to_thread(os.makedirs, path, exist_ok=True)
    except OSError as exc:
        raise ProvisionIOError(f"Failed to create {path}: {exc}") from exc


async def symlink(source: str, link_name: str) -> None:
    """Create ``link_name`` pointing at ``source``.

    Raises:
        ProvisionIOError: If the link cannot be created.
    """
    try:
        await asyncio.to_thread(os.symlink, source, link_name, target_is_directory=True)
    except OSError as exc:
        raise ProvisionIOError(f"Failed to link {source} to {link_name}: {exc}") from exc


def _extract(archive: str, dest: str) -> None:
    with zipfile.ZipFile(archive) as zf:
        zf.extractall(dest)


async def extract_zip(archive: str, dest: str) -> str:
    """Extract ``archive`` into ``dest`` and return ``dest``.

    Raises:
        FetchError: If the archive is corrupt or cannot be extracted.
    """
    try:
        await asyncio.to_thread(_extract, archive, dest)
    except (zipfile.BadZipFile, OSError) as exc:
        raise FetchError(f"Failed to extract {archive}: {exc}") from exc
    return dest
