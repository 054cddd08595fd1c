"""Download locations for a resolved WordPress version."""

from constants import Constants


def wordpress_download_url(version: str) -> str:
    """Return the distribution archive URL for ``version``."""
    if version == Constants.NIGHTLY:
        return Constants.NIGHTLY_BUILD_URL
    return f"{Constants.WORDPRESS_URL}{version}.zip"


def tests_lib_base_url(version: str) -> str:
    """Return the Subversion base URL holding the test library for ``version``."""
    tag = "trunk" if version == Constants.NIGHTLY else f"tags/{version}"
    return f"{Constants.SVN_URL}{tag}"
