"""Layered configuration for the setup and finalize commands.

Precedence, highest first: CLI flags, runner inputs (``INPUT_<NAME>``
environment variables), the YAML file given by ``--config``, defaults.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from errors import ProvisionIOError
from provision.models import ProvisionConfig

logger = logging.getLogger(__name__)

# config field -> (argparse dest, runner input name)
_FIELDS = {
    "version": ("VERSION", "version"),
    "dir": ("DIR", "dir"),
    "cache_prefix": ("CACHE_PREFIX", "cache_prefix"),
    "db_user": ("DB_USER", "db_user"),
    "db_password": ("DB_PASSWORD", "db_password"),
    "db_name": ("DB_NAME", "db_name"),
    "db_host": ("DB_HOST", "db_host"),
    "cache_store": ("CACHE_STORE", "cache_store"),
    "tool_cache_dir": ("TOOL_CACHE", "tool_cache"),
    "state_file": ("STATE_FILE", "state_file"),
}


def get_input(name: str) -> Optional[str]:
    """Return a runner input, trimmed; empty values count as unset."""
    env_name = Constants.INPUT_PREFIX + name.replace(" ", "_").upper()
    value = os.environ.get(env_name, "").strip()
    return value or None


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load settings from a YAML file.

    A top-level ``wptl`` mapping is used when present, otherwise the whole
    document.

    Raises:
        ProvisionIOError: If the file cannot be read or parsed.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ProvisionIOError(f"Failed to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ProvisionIOError(f"Invalid config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: expected a mapping", path)
        return {}
    section = data.get("wptl", data)
    return section if isinstance(section, dict) else {}


def build_config(args: Any) -> ProvisionConfig:
    """Merge CLI arguments, runner inputs and the config file."""
    file_values = load_config_file(getattr(args, "CONFIG", None))
    unknown = set(file_values) - set(_FIELDS)
    if unknown:
        logger.warning("Unknown config keys ignored: %s", ", ".join(sorted(unknown)))

    values: Dict[str, Any] = {}
    for field_name, (dest, input_name) in _FIELDS.items():
        cli_value = getattr(args, dest, None)
        if cli_value not in (None, ""):
            values[field_name] = cli_value
            continue
        env_value = get_input(input_name)
        if env_value is not None:
            values[field_name] = env_value
            continue
        file_value = file_values.get(field_name)
        if file_value not in (None, ""):
            values[field_name] = str(file_value)
    return ProvisionConfig(**values)
