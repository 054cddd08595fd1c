"""Data models for WordPress version specifiers."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SpecifierKind(Enum):
    """How a specifier is turned into a concrete version."""
    NIGHTLY = "nightly"
    LATEST = "latest"
    BRANCH = "branch"
    LITERAL = "literal"


@dataclass(frozen=True)
class VersionSpec:
    """Parsed version specifier."""
    raw: str
    kind: SpecifierKind
    prefix: Optional[str] = None  # branch prefix without the trailing ".x"
