"""Shared fakes for the network and Subversion collaborators."""

import io
import os
import zipfile

import pytest

from errors import FetchError

SAMPLE_TEMPLATE = (
    "<?php\n"
    "define( 'ABSPATH', dirname( __FILE__ ) . '/src/' );\n"
    "define( 'DB_NAME', 'youremptytestdbnamehere' );\n"
    "define( 'DB_USER', 'yourusernamehere' );\n"
    "define( 'DB_PASSWORD', 'yourpasswordhere' );\n"
    "define( 'DB_HOST', 'localhost' );\n"
    "// Test with localhost only.\n"
)


def make_wordpress_zip() -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("wordpress/index.php", "<?php // index\n")
        zf.writestr("wordpress/wp-includes/version.php", "<?php $wp_version = '6.4.2';\n")
    return buf.getvalue()


class FakeHttp:
    """Stands in for HttpClient; records every call."""

    def __init__(self, feed=None, feed_status=200, archive=None, texts=None):
        self.feed = feed
        self.feed_status = feed_status
        self.archive = make_wordpress_zip() if archive is None else archive
        self.texts = texts if texts is not None else {}
        self.json_calls = []
        self.file_calls = []
        self.text_calls = []

    async def get_json(self, url):
        self.json_calls.append(url)
        if self.feed_status != 200:
            return self.feed_status, None
        return 200, self.feed

    async def download_text(self, url):
        self.text_calls.append(url)
        for suffix, text in self.texts.items():
            if url.endswith(suffix):
                return text
        if url.endswith("wp-tests-config-sample.php"):
            return SAMPLE_TEMPLATE
        raise FetchError(f"Failed to download {url}: error 404")

    async def download_file(self, url, dest):
        self.file_calls.append(url)
        with open(dest, "wb") as fh:
            fh.write(self.archive)
        return dest


class FakeSvn:
    """Creates a checkout-shaped directory instead of running svn."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.calls = []

    async def checkout(self, url, dest):
        self.calls.append((url, dest))
        if self.fail_on and self.fail_on in url:
            raise FetchError(f"Failed to check out {url}: E170000")
        os.makedirs(os.path.join(dest, ".svn"), exist_ok=True)
        with open(os.path.join(dest, "bootstrap.php"), "w", encoding="utf-8") as fh:
            fh.write("<?php\n")


@pytest.fixture
def fake_http():
    return FakeHttp(feed={"offers": [{"version": "6.4.2"}, {"version": "6.3.2"}]})


@pytest.fixture
def fake_svn():
    return FakeSvn()


@pytest.fixture(autouse=True)
def clean_runner_env(monkeypatch):
    """Keep the host runner environment out of the tests."""
    for name in (
        "RUNNER_TOOL_CACHE",
        "WPTL_CACHE_STORE",
        "WPTL_STATE_FILE",
        "GITHUB_SERVER_URL",
        "GITHUB_OUTPUT",
        "GITHUB_ENV",
        "GITHUB_ACTIONS",
        "WP_TESTS_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name, raising=False)
