"""WordPress version resolver backed by the core version-check feed."""

import logging
from typing import List

from constants import Constants
from common.http_client import HttpClient
from errors import ResolutionError
from ..compare import sort_versions
from ..models import SpecifierKind
from ..parser import parse_specifier

logger = logging.getLogger(__name__)


class WordPressVersionResolver:
    """Resolve version specifiers ("latest", "6.x", "nightly", "6.4.2").

    The feed is only consulted for "latest" and branch specifiers; literal
    versions are returned verbatim and a wrong literal surfaces later as a
    failed download.
    """

    def __init__(self, http: HttpClient):
        self._http = http

    async def resolve(self, specifier: str) -> str:
        """Turn ``specifier`` into a concrete version or "nightly".

        Raises:
            ResolutionError: If the feed is unreachable, fails, or has no
                matching offer.
        """
        spec = parse_specifier(specifier)
        if spec.kind == SpecifierKind.NIGHTLY:
            return Constants.NIGHTLY
        if spec.kind == SpecifierKind.LATEST:
            return await self.get_latest_version()
        if spec.kind == SpecifierKind.BRANCH:
            assert spec.prefix is not None
            return await self.get_latest_branch_version(spec.prefix)
        return spec.raw

    async def _fetch_offer_versions(self, url: str) -> List[str]:
        status, data = await self._http.get_json(url)
        if status != 200 or not isinstance(data, dict):
            raise ResolutionError(f"Failed to fetch WordPress versions: error {status}")
        offers = data.get("offers") or []
        return [o["version"] for o in offers if isinstance(o, dict) and o.get("version")]

    async def get_latest_version(self) -> str:
        """Return the newest published WordPress version."""
        versions = await self._fetch_offer_versions(Constants.VERSION_CHECK_URL_LATEST)
        if not versions:
            raise ResolutionError("Failed to fetch WordPress versions: no offers")
        return versions[0]

    async def get_latest_branch_version(self, prefix: str) -> str:
        """Return the newest published version starting with ``prefix``."""
        versions = await self._fetch_offer_versions(Constants.VERSION_CHECK_URL)
        candidates = sort_versions(v for v in versions if v.startswith(prefix))
        logger.debug("Branch %s candidates: %s", prefix, candidates)
        if not candidates:
            raise ResolutionError(f"No WordPress version matches {prefix}{Constants.BRANCH_SUFFIX}")
        return candidates[0]
