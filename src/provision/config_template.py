"""Generation of wp-tests-config.php from the upstream sample.

Each marker is replaced at its first occurrence only; later occurrences,
such as "localhost" in the sample's comments, stay as shipped.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from constants import Constants
from common.http_client import HttpClient
from errors import FetchError, ProvisionIOError

logger = logging.getLogger(__name__)

WORDPRESS_SOURCE_MARKER = "dirname( __FILE__ ) . '/src/'"


@dataclass(frozen=True)
class ConfigParams:
    """Values injected into the config template."""

    db_name: str
    db_user: str
    db_password: str
    db_host: str
    wordpress_dir: str


def replace_first(text: str, replacements: Sequence[Tuple[str, str]]) -> str:
    """Apply ``(marker, value)`` pairs in order, first occurrence only."""
    for marker, value in replacements:
        text = text.replace(marker, value, 1)
    return text


def build_replacements(params: ConfigParams) -> List[Tuple[str, str]]:
    wp_dir = params.wordpress_dir.rstrip("/\\")
    return [
        ("youremptytestdbnamehere", params.db_name),
        ("yourusernamehere", params.db_user),
        ("yourpasswordhere", params.db_password),
        ("localhost", params.db_host),
        (WORDPRESS_SOURCE_MARKER, f"'{wp_dir}/'"),
    ]


class ConfigMaterializer:
    """Writes the test library configuration file."""

    def __init__(self, http: HttpClient):
        self._http = http

    async def load_template(self, tests_lib_dir: str, template_url: Optional[str]) -> str:
        """Read the sample saved next to the test library, else fetch it.

        Raises:
            ProvisionIOError: If neither source yields the template.
        """
        local = os.path.join(tests_lib_dir, Constants.CONFIG_TEMPLATE)
        if os.path.isfile(local):
            try:
                with open(local, "r", encoding="utf-8") as fh:
                    return fh.read()
            except OSError as exc:
                raise ProvisionIOError(f"Failed to read {local}: {exc}") from exc
        if not template_url:
            raise ProvisionIOError(f"Config template {local} not found")
        try:
            return await self._http.download_text(template_url)
        except FetchError as exc:
            raise ProvisionIOError(str(exc)) from exc

    async def materialize(
        self, tests_lib_dir: str, params: ConfigParams, template_url: Optional[str] = None
    ) -> str:
        """Render the template into ``tests_lib_dir`` and return the file path."""
        template = await self.load_template(tests_lib_dir, template_url)
        config = replace_first(template, build_replacements(params))
        dest = os.path.join(tests_lib_dir, Constants.CONFIG_FILE)
        try:
            with open(dest, "w", encoding="utf-8") as fh:
                fh.write(config)
        except OSError as exc:
            raise ProvisionIOError(f"Failed to write {dest}: {exc}") from exc
        logger.debug("Wrote %s", dest)
        return dest
