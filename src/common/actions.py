"""CI runner integration: outputs, exported variables and annotations."""

from __future__ import annotations

import logging
import os
import sys
import urllib.parse
import uuid

from constants import Constants

logger = logging.getLogger(__name__)


def in_runner() -> bool:
    """Return True when running inside a CI runner."""
    return os.environ.get(Constants.ENV_ACTIONS, "").lower() == "true"


def is_ghes() -> bool:
    """Return True if the server URL points at a non-default deployment."""
    url = os.environ.get(Constants.ENV_SERVER_URL)
    if not url:
        return False
    host = urllib.parse.urlparse(url).hostname or ""
    return host.lower() != Constants.DEFAULT_SERVER_HOST


def _append_command_file(path: str, name: str, value: str) -> None:
    if "\n" in value:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        entry = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    else:
        entry = f"{name}={value}\n"
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(entry)


def set_output(name: str, value: str) -> None:
    """Publish a step output.

    Appends to the runner's output file when present, otherwise prints
    ``name=value`` to stdout for the calling script to capture.
    """
    output_file = os.environ.get(Constants.ENV_OUTPUT_FILE)
    if output_file:
        _append_command_file(output_file, name, value)
    else:
        sys.stdout.write(f"{name}={value}\n")
    logger.debug("Output %s=%s", name, value)


def export_variable(name: str, value: str) -> None:
    """Export an environment variable to this process and later steps."""
    os.environ[name] = value
    env_file = os.environ.get(Constants.ENV_ENV_FILE)
    if env_file:
        _append_command_file(env_file, name, value)


def set_failed(message: str) -> None:
    """Report the run failure once."""
    logger.error(message)
    if in_runner():
        sys.stdout.write(f"::error::{message}\n")
