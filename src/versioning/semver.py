"""Coercion of WordPress versions into strict semantic versions."""

import re
from typing import Optional

import semantic_version

# First run of up to three dot-separated numbers not glued to other digits,
# anywhere in the string. semantic_version.Version.coerce only accepts a
# leading number and keeps prerelease text, so it is used for formatting only.
_COERCE_RE = re.compile(r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])")


def coerce_semver(version: str) -> Optional[str]:
    """Coerce ``version`` into ``MAJOR.MINOR.PATCH``.

    "6.4" becomes "6.4.0" and "6.5-RC1" becomes "6.5.0". Returns None when
    the string carries no number at all, e.g. "nightly".
    """
    match = _COERCE_RE.search(version)
    if not match:
        return None
    major, minor, patch = (int(g or 0) for g in match.groups())
    return str(semantic_version.Version(major=major, minor=minor, patch=patch))
