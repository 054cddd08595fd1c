"""Durable side channel between the setup and finalize invocations."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional

from constants import Constants
from errors import ProvisionIOError
from .models import PendingCacheRecord

logger = logging.getLogger(__name__)


def default_state_file() -> str:
    """Return WPTL_STATE_FILE or a file in the system temp directory."""
    return os.environ.get(Constants.ENV_STATE_FILE) or os.path.join(
        tempfile.gettempdir(), Constants.STATE_FILE_NAME
    )


class RunStateStore:
    """JSON file holding pending cache records and the success marker."""

    def __init__(self, path: Optional[str] = None):
        self._path = path or default_state_file()

    @property
    def path(self) -> str:
        return self._path

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(self._path) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise ProvisionIOError(f"Failed to write state file {self._path}: {exc}") from exc

    def reset(self) -> None:
        """Start a new run: no records, no success marker."""
        self._write({"records": [], "success": False})

    def add_record(self, record: PendingCacheRecord) -> None:
        """Append ``record``, replacing an earlier one for the same artifact."""
        data = self._read()
        records = [
            r for r in data.get("records", [])
            if isinstance(r, dict) and r.get("artifact") != record.artifact
        ]
        records.append(record.to_dict())
        data["records"] = records
        data.setdefault("success", False)
        self._write(data)

    def mark_success(self) -> None:
        data = self._read()
        data.setdefault("records", [])
        data["success"] = True
        self._write(data)

    def is_successful(self) -> bool:
        return self._read().get("success") is True

    def records(self) -> List[PendingCacheRecord]:
        result = []
        for raw in self._read().get("records", []):
            try:
                result.append(PendingCacheRecord.from_dict(raw))
            except (KeyError, TypeError):
                logger.warning("Skipping malformed state record: %r", raw)
        return result
