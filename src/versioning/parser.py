"""Specifier parsing."""

from constants import Constants

from .models import SpecifierKind, VersionSpec


def parse_specifier(raw: str) -> VersionSpec:
    """Classify a user-supplied version specifier.

    Matching is exact: "Latest" or " 6.x" are treated as literal versions,
    surrounding whitespace is expected to be trimmed by the config layer.
    """
    if raw in Constants.NIGHTLY_ALIASES:
        return VersionSpec(raw=raw, kind=SpecifierKind.NIGHTLY)
    if raw == Constants.LATEST:
        return VersionSpec(raw=raw, kind=SpecifierKind.LATEST)
    if raw.endswith(Constants.BRANCH_SUFFIX):
        prefix = raw[: -len(Constants.BRANCH_SUFFIX)]
        return VersionSpec(raw=raw, kind=SpecifierKind.BRANCH, prefix=prefix)
    return VersionSpec(raw=raw, kind=SpecifierKind.LITERAL)
