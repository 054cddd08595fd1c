"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2


class Artifacts(Enum):
    """Artifacts provisioned into the target directory.

    Args:
        Enum (string): Tool name, also the subdirectory name.
    """

    WORDPRESS = "wordpress"
    TESTS_LIB = "wordpress-tests-lib"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    # http:// returns a newest-first offer list that differs from the https:// one
    VERSION_CHECK_URL_LATEST = "http://api.wordpress.org/core/version-check/1.7/"
    VERSION_CHECK_URL = "https://api.wordpress.org/core/version-check/1.7/"
    NIGHTLY_BUILD_URL = "https://wordpress.org/nightly-builds/wordpress-latest.zip"
    WORDPRESS_URL = "https://wordpress.org/wordpress-"
    SVN_URL = "https://develop.svn.wordpress.org/"

    NIGHTLY = "nightly"
    NIGHTLY_ALIASES = ("nightly", "trunk")
    LATEST = "latest"
    BRANCH_SUFFIX = ".x"

    ARCHIVE_NAME = "wordpress.zip"
    CONFIG_TEMPLATE = "wp-tests-config-sample.php"
    CONFIG_FILE = "wp-tests-config.php"
    TESTS_LIB_SUBTREES = ("includes", "data")
    SVN_METADATA_DIR = ".svn"

    CACHE_SCHEMA_VERSION = "1"

    DEFAULT_VERSION = "latest"
    DEFAULT_CACHE_PREFIX = ""
    DEFAULT_DB_USER = "wordpress"
    DEFAULT_DB_PASSWORD = "wordpress"
    DEFAULT_DB_NAME = "wordpress_test"
    DEFAULT_DB_HOST = "127.0.0.1"
    STATE_FILE_NAME = "wptl-state.json"

    ENV_TOOL_CACHE = "RUNNER_TOOL_CACHE"
    ENV_CACHE_STORE = "WPTL_CACHE_STORE"
    ENV_STATE_FILE = "WPTL_STATE_FILE"
    ENV_LOG_LEVEL = "WPTL_LOG_LEVEL"
    ENV_SERVER_URL = "GITHUB_SERVER_URL"
    ENV_OUTPUT_FILE = "GITHUB_OUTPUT"
    ENV_ENV_FILE = "GITHUB_ENV"
    ENV_ACTIONS = "GITHUB_ACTIONS"
    ENV_TESTS_DIR = "WP_TESTS_DIR"
    INPUT_PREFIX = "INPUT_"
    DEFAULT_SERVER_HOST = "github.com"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    USER_AGENT = "setup-wptl/1.0"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for JSON and text requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    DOWNLOAD_CHUNK_SIZE = 64 * 1024
