import pytest
from flask import Flask, jsonify

from csp_html.build.freezer import csp_page, filename_for, freeze_app, iter_static_urls
from csp_html.models import PageState
from csp_html.plugin import CspHtmlPlugin
from csp_html.services.digest_service import compute_digest, hash_source
from csp_html.settings import TestingConfig
from csp_html.utils.html_document import HtmlDocument
from tests.conftest import SequentialRandomBytes, directives_of

OFF_PAGE = '<html><head></head><body><script>x()</script></body></html>'


@pytest.fixture
def random_source():
    return SequentialRandomBytes()


@pytest.fixture
def app(tmp_path, random_source):
    static = tmp_path / 'static'
    static.mkdir()
    (static / 'app.js').write_text('boot()', encoding='utf-8')

    app = Flask(__name__, static_folder=str(static))
    app.config.from_object(TestingConfig)
    CspHtmlPlugin.from_config(app.config, random_bytes=random_source).init_app(app)

    @app.route('/')
    def index():
        return ('<!DOCTYPE html><html><head><title>Home</title>'
                '<script src="/static/app.js"></script></head>'
                '<body><script>hi()</script></body></html>')

    @app.route('/admin/')
    @csp_page(policy={'script-src': ["'self'"]}, nonce_enabled={'script-src': False})
    def admin():
        return '<html><head><script src="/static/app.js"></script></head><body></body></html>'

    @app.route('/off')
    @csp_page(enabled=False)
    def off():
        return OFF_PAGE

    @app.route('/api/data')
    def data():
        return jsonify(value=1)

    @app.route('/item/<int:item_id>')
    def item(item_id):
        return str(item_id)

    return app


def test_filename_for():
    assert filename_for('/') == 'index.html'
    assert filename_for('/admin/') == 'admin/index.html'
    assert filename_for('/about') == 'about.html'
    assert filename_for('/feed.xml') == 'feed.xml'


def test_csp_page_keeps_view_behaviour():
    @csp_page(enabled=False)
    def view():
        return 'ok'

    assert view() == 'ok'
    assert view.__name__ == 'view'
    assert view.csp_plugin == {'enabled': False}


def test_iter_static_urls(app):
    assert sorted(iter_static_urls(app)) == ['/', '/admin/', '/api/data', '/off']


def test_freeze_app(app, random_source):
    build = freeze_app(app)

    assert sorted(build.results) == ['admin/index.html', 'index.html', 'off.html']
    assert build.files['static/app.js'] == b'boot()'
    assert not build.failed

    index = HtmlDocument.parse(build.files['index.html'])
    bundle = index.select_one('script[src]')
    assert bundle['integrity'] == compute_digest(b'boot()', 'sha384')
    assert bundle['nonce'] == random_source.nonce(1)
    assert directives_of(build, 'index.html')['script-src'][-2:] == [
        hash_source('hi()'), f"'nonce-{random_source.nonce(1)}'",
    ]


def test_freeze_app_applies_view_overrides(app):
    build = freeze_app(app)

    assert directives_of(build, 'admin/index.html')['script-src'] == ["'self'"]
    assert 'nonce=' not in build.files['admin/index.html']

    assert build.results['off.html'].state == PageState.SKIPPED
    assert build.files['off.html'] == OFF_PAGE


def test_freeze_app_selected_urls(app):
    build = freeze_app(app, urls=['/'])
    assert list(build.results) == ['index.html']


def test_freeze_app_skips_non_html(app, caplog):
    with caplog.at_level('WARNING', logger='csp_html'):
        build = freeze_app(app, urls=['/api/data', '/missing'])

    assert build.results == {}
    assert 'Skipping /api/data' in caplog.text
    assert 'Skipping /missing: status 404' in caplog.text
