"""Tests for the tool cache, remote cache, state store and lookup chain."""

import asyncio
import os

import pytest

from cache.chain import CacheLookupChain, RemoteCacheStrategy, ToolCacheStrategy
from cache.models import LookupOutcome, PendingCacheRecord
from cache.remote import DirectoryRemoteCache, RemoteCache
from cache.state import RunStateStore
from cache.tool_cache import ToolCache
from errors import CacheBackendError, ProvisionIOError
from provision.models import TESTS_LIB, WORDPRESS, RunState


def _tree(root, name, files=("index.php",)):
    path = os.path.join(root, name)
    os.makedirs(path, exist_ok=True)
    for f in files:
        with open(os.path.join(path, f), "w", encoding="utf-8") as fh:
            fh.write(f"<?php // {f}\n")
    return path


def _state(directory, version="6.4.2", has_cache=True, has_toolcache=True, prefix=""):
    state = RunState(
        directory=str(directory),
        has_cache=has_cache,
        has_toolcache=has_toolcache,
        cache_prefix=prefix,
    )
    state.apply_version(version)
    return state


class _FailingRemote(RemoteCache):
    def is_available(self):
        return True

    async def restore(self, paths, key, workspace):
        os.makedirs(os.path.join(workspace, paths[0]), exist_ok=True)
        raise CacheBackendError("connection reset")

    async def save(self, paths, key, workspace):
        raise CacheBackendError("connection reset")


class TestRunState:
    """Tests for cache switches and keys derived from the version."""

    def test_keys_share_semver(self, tmp_path):
        state = _state(tmp_path, version="6.4", prefix="php8")
        assert state.cache_key(WORDPRESS) == "1:php8:wordpress:6.4.0"
        assert state.cache_key(TESTS_LIB) == "1:php8:wordpress-tests-lib:6.4.0"

    def test_nightly_disables_caches(self, tmp_path):
        state = _state(tmp_path, version="nightly")
        assert state.semver is None
        assert state.has_cache is False
        assert state.has_toolcache is False

    def test_version_resolved_once(self, tmp_path):
        state = _state(tmp_path)
        with pytest.raises(ValueError):
            state.apply_version("6.3.0")


class TestToolCache:
    """Tests for the machine-local tool cache."""

    def test_cache_then_find(self, tmp_path):
        source = _tree(str(tmp_path / "src"), "wordpress")
        cache = ToolCache(str(tmp_path / "tc"), arch="x64")
        assert cache.find("wordpress", "6.4.2") is None

        dest = asyncio.run(cache.cache_dir(source, "wordpress", "6.4.2"))

        assert dest == str(tmp_path / "tc" / "wordpress" / "6.4.2" / "x64")
        assert os.path.isfile(os.path.join(dest, "index.php"))
        assert os.path.isfile(f"{dest}.complete")
        assert cache.find("wordpress", "6.4.2") == dest

    def test_incomplete_entry_is_ignored(self, tmp_path):
        cache = ToolCache(str(tmp_path), arch="x64")
        os.makedirs(tmp_path / "wordpress" / "6.4.2" / "x64")
        assert cache.find("wordpress", "6.4.2") is None

    def test_from_env(self, tmp_path, monkeypatch):
        assert ToolCache.from_env() is None
        monkeypatch.setenv("RUNNER_TOOL_CACHE", str(tmp_path))
        assert ToolCache.from_env().root == str(tmp_path)
        assert ToolCache.from_env(str(tmp_path / "explicit")).root == str(tmp_path / "explicit")


class TestDirectoryRemoteCache:
    """Tests for the directory-backed remote cache."""

    def test_save_and_restore(self, tmp_path):
        store = str(tmp_path / "store")
        origin = tmp_path / "origin"
        _tree(str(origin), "wordpress", files=("index.php", "wp-load.php"))
        remote = DirectoryRemoteCache(store)

        asyncio.run(remote.save(["wordpress"], "1::wordpress:6.4.2", str(origin)))
        target = tmp_path / "target"
        target.mkdir()
        hit = asyncio.run(remote.restore(["wordpress"], "1::wordpress:6.4.2", str(target)))

        assert hit == "1::wordpress:6.4.2"
        assert (target / "wordpress" / "wp-load.php").is_file()

    def test_restore_miss(self, tmp_path):
        remote = DirectoryRemoteCache(str(tmp_path))
        assert asyncio.run(remote.restore(["wordpress"], "1::wordpress:1.0.0", str(tmp_path))) is None

    def test_existing_key_is_refused(self, tmp_path):
        origin = tmp_path / "origin"
        _tree(str(origin), "wordpress")
        remote = DirectoryRemoteCache(str(tmp_path / "store"))
        asyncio.run(remote.save(["wordpress"], "k", str(origin)))
        with pytest.raises(CacheBackendError, match="already exists"):
            asyncio.run(remote.save(["wordpress"], "k", str(origin)))

    def test_missing_path_is_refused(self, tmp_path):
        remote = DirectoryRemoteCache(str(tmp_path / "store"))
        with pytest.raises(CacheBackendError):
            asyncio.run(remote.save(["wordpress"], "k", str(tmp_path)))
        assert not os.path.exists(remote.archive_path("k"))

    def test_corrupt_archive_raises(self, tmp_path):
        remote = DirectoryRemoteCache(str(tmp_path))
        with open(remote.archive_path("k"), "wb") as fh:
            fh.write(b"not a tarball")
        with pytest.raises(CacheBackendError):
            asyncio.run(remote.restore(["wordpress"], "k", str(tmp_path)))

    def test_truncated_archive_raises(self, tmp_path):
        origin = tmp_path / "origin"
        _tree(str(origin), "wordpress", files=[f"f{i}.php" for i in range(50)])
        remote = DirectoryRemoteCache(str(tmp_path / "store"))
        asyncio.run(remote.save(["wordpress"], "k", str(origin)))
        archive = remote.archive_path("k")
        with open(archive, "rb") as fh:
            data = fh.read()
        with open(archive, "wb") as fh:
            fh.write(data[: len(data) // 2])

        target = tmp_path / "target"
        target.mkdir()
        with pytest.raises(CacheBackendError, match="Failed to restore"):
            asyncio.run(remote.restore(["wordpress"], "k", str(target)))

    def test_archive_without_requested_paths_is_a_miss(self, tmp_path):
        origin = tmp_path / "origin"
        _tree(str(origin), "wordpress")
        remote = DirectoryRemoteCache(str(tmp_path / "store"))
        asyncio.run(remote.save(["wordpress"], "k", str(origin)))
        assert asyncio.run(remote.restore(["wordpress-tests-lib"], "k", str(tmp_path))) is None

    def test_unconfigured_store_raises(self, tmp_path):
        remote = DirectoryRemoteCache(None)
        with pytest.raises(CacheBackendError, match="not configured"):
            remote.archive_path("k")
        with pytest.raises(CacheBackendError):
            asyncio.run(remote.restore(["wordpress"], "k", str(tmp_path)))

    def test_availability(self, tmp_path, monkeypatch):
        assert DirectoryRemoteCache(None).is_available() is False
        assert DirectoryRemoteCache(str(tmp_path)).is_available() is True
        monkeypatch.setenv("GITHUB_SERVER_URL", "https://github.example.com")
        assert DirectoryRemoteCache(str(tmp_path)).is_available() is False

    def test_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("WPTL_CACHE_STORE", str(tmp_path))
        assert DirectoryRemoteCache.from_env().is_available() is True


class TestRunStateStore:
    """Tests for the setup/finalize side channel."""

    def test_reset_clears_previous_run(self, tmp_path):
        store = RunStateStore(str(tmp_path / "state.json"))
        store.add_record(PendingCacheRecord("wordpress", "/tmp/x", "k"))
        store.mark_success()
        store.reset()
        assert store.records() == []
        assert store.is_successful() is False

    def test_records_keep_order_and_replace_same_artifact(self, tmp_path):
        store = RunStateStore(str(tmp_path / "state.json"))
        store.add_record(PendingCacheRecord("wordpress", "/a", "k1"))
        store.add_record(PendingCacheRecord("wordpress-tests-lib", "/a", "k2"))
        store.add_record(PendingCacheRecord("wordpress", "/b", "k3"))
        assert [(r.artifact, r.key) for r in store.records()] == [
            ("wordpress-tests-lib", "k2"),
            ("wordpress", "k3"),
        ]

    def test_missing_or_corrupt_file_is_not_successful(self, tmp_path):
        path = tmp_path / "state.json"
        store = RunStateStore(str(path))
        assert store.is_successful() is False
        path.write_text("{not json", encoding="utf-8")
        assert store.is_successful() is False
        assert store.records() == []


class TestCacheLookupChain:
    """Tests for the ordered tool-cache / remote-cache lookup."""

    def _chain(self, tool_cache=None, remote=None, store=None):
        return CacheLookupChain([ToolCacheStrategy(tool_cache), RemoteCacheStrategy(remote, store)])

    def test_tool_cache_hit_links_and_skips_remote(self, tmp_path):
        cache = ToolCache(str(tmp_path / "tc"), arch="x64")
        asyncio.run(cache.cache_dir(_tree(str(tmp_path / "src"), "wordpress"), "wordpress", "6.4.2"))
        target = tmp_path / "target"
        target.mkdir()
        state = _state(target)
        store = RunStateStore(str(tmp_path / "state.json"))

        present = asyncio.run(self._chain(cache, _FailingRemote(), store).lookup(WORDPRESS, state))

        assert present is True
        link = target / "wordpress"
        assert link.is_symlink()
        assert (link / "index.php").is_file()
        assert store.records() == []

    def test_link_failure_is_fatal(self, tmp_path):
        cache = ToolCache(str(tmp_path / "tc"), arch="x64")
        asyncio.run(cache.cache_dir(_tree(str(tmp_path / "src"), "wordpress"), "wordpress", "6.4.2"))
        target = tmp_path / "target"
        (target / "wordpress").mkdir(parents=True)
        state = _state(target)
        with pytest.raises(ProvisionIOError):
            asyncio.run(self._chain(cache).lookup(WORDPRESS, state))

    def test_remote_hit(self, tmp_path):
        origin = tmp_path / "origin"
        _tree(str(origin), "wordpress-tests-lib")
        remote = DirectoryRemoteCache(str(tmp_path / "store"))
        asyncio.run(remote.save(["wordpress-tests-lib"], "1::wordpress-tests-lib:6.4.2", str(origin)))
        target = tmp_path / "target"
        target.mkdir()
        state = _state(target, has_toolcache=False)
        store = RunStateStore(str(tmp_path / "state.json"))

        present = asyncio.run(self._chain(remote=remote, store=store).lookup(TESTS_LIB, state))

        assert present is True
        assert (target / "wordpress-tests-lib" / "index.php").is_file()
        assert store.records() == []

    def test_remote_miss_records_key(self, tmp_path):
        store = RunStateStore(str(tmp_path / "state.json"))
        state = _state(tmp_path, prefix="p")
        chain = self._chain(ToolCache(str(tmp_path / "tc")), DirectoryRemoteCache(str(tmp_path / "s")), store)

        present = asyncio.run(chain.lookup(WORDPRESS, state))

        assert present is False
        assert store.records() == [PendingCacheRecord("wordpress", str(tmp_path), "1:p:wordpress:6.4.2")]

    def test_backend_error_falls_through_and_records(self, tmp_path):
        state = _state(tmp_path, has_toolcache=False)
        store = RunStateStore(str(tmp_path / "state.json"))
        strategy = RemoteCacheStrategy(_FailingRemote(), store)

        outcome = asyncio.run(strategy.lookup(WORDPRESS, state))

        assert outcome == LookupOutcome.UNAVAILABLE
        assert [r.artifact for r in store.records()] == ["wordpress"]
        assert not (tmp_path / "wordpress").exists()

    def test_no_semver_records_nothing(self, tmp_path):
        store = RunStateStore(str(tmp_path / "state.json"))
        store.reset()
        state = _state(tmp_path, version="nightly")
        chain = self._chain(ToolCache(str(tmp_path / "tc")), _FailingRemote(), store)

        assert asyncio.run(chain.lookup(WORDPRESS, state)) is False
        assert asyncio.run(chain.lookup(TESTS_LIB, state)) is False
        assert store.records() == []

    def test_no_caches_configured(self, tmp_path):
        state = _state(tmp_path)
        assert asyncio.run(ToolCacheStrategy(None).lookup(WORDPRESS, state)) == LookupOutcome.UNAVAILABLE
        assert asyncio.run(self._chain().lookup(WORDPRESS, state)) is False
