"""Data models shared by the cache layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict


class LookupOutcome(Enum):
    """Result of one cache strategy.

    UNAVAILABLE covers a disabled cache and a failing backend; the chain
    currently treats it like MISS.
    """

    HIT = "hit"
    MISS = "miss"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class PendingCacheRecord:
    """A remote-cache miss to be persisted by the finalize step."""

    artifact: str
    directory: str
    key: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingCacheRecord":
        return cls(
            artifact=str(data["artifact"]),
            directory=str(data["directory"]),
            key=str(data["key"]),
        )
