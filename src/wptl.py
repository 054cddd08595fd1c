"""wptl - WordPress and PHPUnit test library provisioning for CI jobs.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import sys

from args import parse_args
from cli_config import build_config
from common.actions import set_failed
from common.logging_utils import add_file_handler, configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes
from errors import ProvisionError

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        add_file_handler(log_file)
        logger.info("Logging to file: %s", log_file)


def run_setup_command(args) -> int:
    """Run the main provisioning step and map failures to exit codes."""
    from provision.pipeline import run_setup  # pylint: disable=import-outside-toplevel

    try:
        config = build_config(args)
        asyncio.run(run_setup(config))
    except ProvisionError as e:
        set_failed(str(e))
        return e.exit_code.value
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.debug("Unexpected failure", exc_info=True)
        set_failed(str(e) or type(e).__name__)
        return ExitCodes.FILE_ERROR.value
    return ExitCodes.SUCCESS.value


def run_finalize_command(args) -> int:
    """Run the finalize step; it never fails the job."""
    from provision.finalize import run_finalize  # pylint: disable=import-outside-toplevel

    try:
        config = build_config(args)
        asyncio.run(run_finalize(config.state_file, config.cache_store))
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.warning("Failed to save cache: %s", e)
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND),
        )

    if args.COMMAND == "finalize":
        code = run_finalize_command(args)
    else:
        code = run_setup_command(args)
    sys.exit(code)


if __name__ == "__main__":
    main()
