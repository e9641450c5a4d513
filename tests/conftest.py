import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from csp_html.build.site_builder import SiteBuilder
from csp_html.csp import parse_csp_header
from csp_html.plugin import CspHtmlPlugin
from csp_html.services.nonce_service import NONCE_SIZE, encode_nonce

FIXTURES_DIR = Path(__file__).resolve().parent / 'fixtures'


class SequentialRandomBytes:
    """Deterministic random source: call n returns n repeated ``size`` times."""

    def __init__(self):
        self.calls = 0

    def __call__(self, size):
        self.calls += 1
        return bytes([self.calls % 256]) * size

    @staticmethod
    def nonce(call):
        """Nonce produced by the n-th call (1-based)."""
        return encode_nonce(bytes([call % 256]) * NONCE_SIZE)


def read_fixture(name):
    return (FIXTURES_DIR / name).read_text(encoding='utf-8')


def directives_of(build, filename):
    return parse_csp_header(build.results[filename].policy)


@pytest.fixture
def random_bytes():
    return SequentialRandomBytes()


@pytest.fixture
def make_plugin(random_bytes):
    def _make(policy=None, **options):
        return CspHtmlPlugin(policy, options, random_bytes=random_bytes)
    return _make


@pytest.fixture
def build_site(make_plugin):
    """
    Build a site with one bundle (``index.bundle.js``) and the given pages.

    Each page is a dict of ``SiteBuilder.add_page`` arguments.
    """
    def _build(pages, policy=None, options=None, assets=None, chunks=None, public_path=''):
        plugin = make_plugin(policy, **(options or {}))
        builder = SiteBuilder([plugin], public_path=public_path)
        assets = assets if assets is not None else {'index.bundle.js': 'console.log("bundle")'}
        for name, content in assets.items():
            builder.add_asset(name, content)
        for name, names in (chunks or {'index': list(assets)}).items():
            builder.add_chunk(name, names)
        for page in pages:
            builder.add_page(**page)
        return builder.build()
    return _build
