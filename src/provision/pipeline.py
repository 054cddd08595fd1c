"""Provisioning of WordPress and its PHPUnit test library.

Both artifacts are provisioned concurrently. For each one the cache chain
is consulted first; on a miss the artifact is fetched and, when the
machine-local tool cache is enabled, seeded into it.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, List, Optional

from cache.chain import CacheLookupChain, RemoteCacheStrategy, ToolCacheStrategy
from cache.remote import DirectoryRemoteCache, RemoteCache
from cache.state import RunStateStore
from cache.tool_cache import ToolCache
from common import actions
from common.fs_utils import extract_zip, is_dir, mkdir_p, rm_rf
from common.http_client import HttpClient
from constants import Constants
from errors import PreconditionError, ProvisionIOError
from versioning.resolvers import WordPressVersionResolver
from versioning.urls import tests_lib_base_url, wordpress_download_url
from .config_template import ConfigMaterializer, ConfigParams
from .models import TESTS_LIB, WORDPRESS, ProvisionConfig, RunState
from .svn import SvnClient

logger = logging.getLogger(__name__)


async def join_all(*aws: Awaitable[Any]) -> List[Any]:
    """Await every awaitable, then raise the first failure if any."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


@dataclass
class SetupResult:
    """Paths and version produced by a successful run."""

    version: str
    wordpress_dir: str
    tests_lib_dir: str
    config_file: str


class ProvisionPipeline:
    """Fetch-or-reuse orchestration for one target directory."""

    def __init__(
        self,
        config: ProvisionConfig,
        http: HttpClient,
        svn: Optional[SvnClient] = None,
        tool_cache: Optional[ToolCache] = None,
        remote_cache: Optional[RemoteCache] = None,
        store: Optional[RunStateStore] = None,
    ):
        self._config = config
        self._http = http
        self._svn = svn or SvnClient()
        self._tool_cache = tool_cache
        self._remote_cache = remote_cache
        self._store = store or RunStateStore(config.state_file)
        self._resolver = WordPressVersionResolver(http)
        self._materializer = ConfigMaterializer(http)
        self._chain = CacheLookupChain([
            ToolCacheStrategy(tool_cache),
            RemoteCacheStrategy(remote_cache, self._store),
        ])

    def build_state(self) -> RunState:
        """Create the run state with cache availability detected once."""
        return RunState(
            directory=self._config.dir,
            has_cache=bool(self._remote_cache and self._remote_cache.is_available()),
            has_toolcache=self._tool_cache is not None,
            cache_prefix=self._config.cache_prefix,
        )

    async def purge(self, state: RunState) -> None:
        """Remove leftovers of a previous run from the target directory."""
        await join_all(
            rm_rf(state.artifact_dir(WORDPRESS)),
            rm_rf(state.artifact_dir(TESTS_LIB)),
            rm_rf(state.archive_path),
        )

    async def provision_wordpress(self, state: RunState, url: str) -> None:
        """Reuse a cached WordPress tree or download and extract one.

        The downloaded archive is removed on every exit path.
        """
        dest = state.archive_path
        try:
            if await self._chain.lookup(WORDPRESS, state):
                return

            logger.info("Downloading WordPress...")
            archive = await self._http.download_file(url, dest)
            target_dir = await extract_zip(archive, state.directory)
            if state.has_toolcache and self._tool_cache is not None:
                await self._tool_cache.cache_dir(
                    os.path.join(target_dir, WORDPRESS.name), WORDPRESS.name, str(state.semver)
                )
        finally:
            await rm_rf(dest)

    async def _save_template(self, url: str, dest: str) -> None:
        text = await self._http.download_text(url)
        try:
            with open(dest, "w", encoding="utf-8") as fh:
                fh.write(text)
        except OSError as exc:
            raise ProvisionIOError(f"Failed to write {dest}: {exc}") from exc

    async def provision_tests_lib(self, state: RunState, base_url: str) -> None:
        """Reuse a cached test library or check it out from Subversion."""
        if await self._chain.lookup(TESTS_LIB, state):
            return

        logger.info("Downloading WordPress Test Library...")
        lib_dir = state.artifact_dir(TESTS_LIB)
        await mkdir_p(lib_dir)
        subtrees = [os.path.join(lib_dir, name) for name in Constants.TESTS_LIB_SUBTREES]
        await join_all(
            *(
                self._svn.checkout(f"{base_url}/tests/phpunit/{name}/", path)
                for name, path in zip(Constants.TESTS_LIB_SUBTREES, subtrees)
            ),
            self._save_template(
                f"{base_url}/{Constants.CONFIG_TEMPLATE}",
                os.path.join(lib_dir, Constants.CONFIG_TEMPLATE),
            ),
        )
        await join_all(*(rm_rf(os.path.join(p, Constants.SVN_METADATA_DIR)) for p in subtrees))

        if state.has_toolcache and self._tool_cache is not None:
            await self._tool_cache.cache_dir(lib_dir, TESTS_LIB.name, str(state.semver))

    async def run(self) -> SetupResult:
        """Resolve, provision and configure; raises on any fatal error."""
        config = self._config
        self._store.reset()
        state = self.build_state()
        if not await is_dir(state.directory):
            raise PreconditionError(f"Directory {state.directory} does not exist")

        logger.info("Determining WordPress version...")
        version = await self._resolver.resolve(config.version)
        logger.info("WordPress version: %s", version)
        state.apply_version(version)

        await self.purge(state)

        logger.info("Cache is available: %s", "yes" if state.has_cache else "no")
        logger.info("Tool cache is available: %s", "yes" if state.has_toolcache else "no")

        base_url = tests_lib_base_url(version)
        await join_all(
            self.provision_wordpress(state, wordpress_download_url(version)),
            self.provision_tests_lib(state, base_url),
        )

        logger.info("Configuring WordPress...")
        wordpress_dir = state.artifact_dir(WORDPRESS)
        tests_lib_dir = state.artifact_dir(TESTS_LIB)
        params = ConfigParams(
            db_name=config.db_name,
            db_user=config.db_user,
            db_password=config.db_password,
            db_host=config.db_host,
            wordpress_dir=wordpress_dir,
        )
        config_file = await self._materializer.materialize(
            tests_lib_dir, params, f"{base_url}/{Constants.CONFIG_TEMPLATE}"
        )
        return SetupResult(
            version=version,
            wordpress_dir=wordpress_dir,
            tests_lib_dir=tests_lib_dir,
            config_file=config_file,
        )


def publish(result: SetupResult) -> None:
    """Expose the run's results to later steps."""
    actions.set_output("wp_version", result.version)
    actions.export_variable(Constants.ENV_TESTS_DIR, result.tests_lib_dir)
    actions.set_output("wp_directory", result.wordpress_dir)
    actions.set_output("wptl_directory", result.tests_lib_dir)


async def run_setup(config: ProvisionConfig) -> SetupResult:
    """Run the main provisioning step end to end.

    Outputs and the success marker are written only after configuration
    has completed.
    """
    tool_cache = ToolCache.from_env(config.tool_cache_dir)
    remote_cache = DirectoryRemoteCache.from_env(config.cache_store)
    store = RunStateStore(config.state_file)
    async with HttpClient() as http:
        pipeline = ProvisionPipeline(
            config,
            http,
            tool_cache=tool_cache,
            remote_cache=remote_cache,
            store=store,
        )
        result = await pipeline.run()
    publish(result)
    store.mark_success()
    logger.info("Success")
    return result
