# build/freezer.py
"""
Freeze a Flask application into static pages with a Content-Security-Policy.

Every argument-less GET route returning HTML is requested through the test
client, files of the static folder are emitted alongside and their SRI
values are made available to the pages that reference them.
"""

import logging
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

from flask import Flask

from csp_html.build.site_builder import SiteBuilder
from csp_html.models import BuildContext
from csp_html.services.digest_service import compute_digest

logger = logging.getLogger(__name__)


def csp_page(**overrides: Any) -> Callable:
    """
    Decorator declaring per-page CSP overrides for a view.

    Example::

        @app.route('/admin')
        @csp_page(policy={'script-src': ["'self'"]}, nonce_enabled={'style-src': False})
        def admin():
            ...
    """
    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def decorated_function(*args, **kwargs):
            return view(*args, **kwargs)
        decorated_function.csp_plugin = dict(overrides)
        return decorated_function
    return decorator


def iter_static_urls(app: Flask) -> Iterator[str]:
    """URLs of GET routes that take no arguments, static files excluded."""
    for rule in app.url_map.iter_rules():
        if rule.endpoint == 'static' or rule.arguments:
            continue
        if 'GET' in (rule.methods or ()):
            yield rule.rule


def filename_for(url: str) -> str:
    path = url.strip('/')
    if not path:
        return 'index.html'
    if url.endswith('/'):
        return f"{path}/index.html"
    if Path(path).suffix:
        return path
    return f"{path}.html"


def _static_files(app: Flask) -> Dict[str, Path]:
    if not app.static_folder or not Path(app.static_folder).is_dir():
        return {}
    root = Path(app.static_folder)
    return {
        file.relative_to(root).as_posix(): file
        for file in sorted(root.rglob('*'))
        if file.is_file()
    }


def freeze_app(app: Flask, builder: Optional[SiteBuilder] = None,
               urls: Optional[Iterable[str]] = None) -> BuildContext:
    """
    Build static pages from a Flask app.

    Args:
        app: application created with ``create_app`` (or any Flask app)
        builder: builder to use, ``SiteBuilder.from_app(app)`` by default
        urls: URLs to freeze, every argument-less GET route by default

    Returns:
        BuildContext of the underlying build
    """
    builder = builder or SiteBuilder.from_app(app)
    urls = list(urls) if urls is not None else list(iter_static_urls(app))

    integrity: Dict[str, str] = {}
    static_url_path = (app.static_url_path or '').rstrip('/')
    for name, path in _static_files(app).items():
        content = path.read_bytes()
        asset_name = f"{static_url_path.lstrip('/')}/{name}" if static_url_path else name
        builder.add_asset(asset_name, content)
        integrity[f"{static_url_path}/{name}"] = compute_digest(content, builder.sri_hashing_method)

    adapter = app.url_map.bind('localhost')
    client = app.test_client()
    for url in urls:
        response = client.get(url)
        if response.status_code != 200 or response.mimetype != 'text/html':
            logger.warning(f"Skipping {url}: status {response.status_code}, type {response.mimetype}")
            continue

        endpoint, _ = adapter.match(url, method='GET')
        view = app.view_functions.get(endpoint)
        overrides = getattr(view, 'csp_plugin', None)

        builder.add_page(
            filename_for(url),
            html=response.get_data(as_text=True),
            csp_plugin=overrides,
            integrity=integrity,
        )
        logger.debug(f"Frozen {url} -> {filename_for(url)}")

    return builder.build()
