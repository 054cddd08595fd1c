"""Argument parsing functionality for wptl."""

import argparse


def _add_common(parser):
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--state-file",
                        dest="STATE_FILE",
                        help="File shared between the setup and finalize steps",
                        action="store",
                        type=str)
    parser.add_argument("--cache-store",
                        dest="CACHE_STORE",
                        help="Directory holding remote cache archives",
                        action="store",
                        type=str)


def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wptl",
        description="Provision WordPress and the WordPress PHPUnit test library",
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="COMMAND", required=True)

    setup = subparsers.add_parser("setup", help="Resolve, download and configure")
    setup.add_argument("-v", "--version",
                       dest="VERSION",
                       help="WordPress version: latest, nightly, trunk, 6.x, 6.4.x or 6.4.2",
                       action="store", type=str)
    setup.add_argument("-d", "--dir",
                       dest="DIR",
                       help="Existing target directory (default: system temp directory)",
                       action="store", type=str)
    setup.add_argument("--cache-prefix",
                       dest="CACHE_PREFIX",
                       help="Prefix for remote cache keys",
                       action="store", type=str)
    setup.add_argument("--db-user", dest="DB_USER", help="Database user", action="store", type=str)
    setup.add_argument("--db-password", dest="DB_PASSWORD", help="Database password",
                       action="store", type=str)
    setup.add_argument("--db-name", dest="DB_NAME", help="Test database name",
                       action="store", type=str)
    setup.add_argument("--db-host", dest="DB_HOST", help="Database host", action="store", type=str)
    setup.add_argument("--tool-cache",
                       dest="TOOL_CACHE",
                       help="Tool cache root (default: $RUNNER_TOOL_CACHE)",
                       action="store", type=str)
    _add_common(setup)

    finalize = subparsers.add_parser("finalize", help="Save remote cache entries after the job")
    _add_common(finalize)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
