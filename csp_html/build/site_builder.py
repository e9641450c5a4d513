# build/site_builder.py
"""
Minimal static site build used to drive the CSP plugin.

Pages are rendered from Jinja2 templates (or given as ready HTML), the tags
of their chunks are injected into <head>, subresource-integrity values are
computed for the injected assets and every page is handed to the configured
plugins before being emitted.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from csp_html.models import BuildContext, PageData
from csp_html.services.digest_service import compute_digest, validate_hashing_method
from csp_html.utils.logging_config import get_page_logger

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{{ title }}</title>
  </head>
  <body>
  </body>
</html>
"""


@dataclass
class PageSpec:
    """A page waiting to be built."""
    data: PageData
    template: Optional[str] = None
    html: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


class SiteBuilder:
    """Renders pages, injects chunk tags and runs them through the CSP plugins."""

    def __init__(self, plugins: Optional[Iterable] = None, public_path: str = '',
                 template_dir: Optional[Union[str, Path]] = None,
                 output_dir: Optional[Union[str, Path]] = None,
                 sri_hashing_method: str = 'sha384'):
        self.plugins = list(plugins or [])
        self.public_path = public_path or ''
        self.output_dir = Path(output_dir) if output_dir else None
        self.sri_hashing_method = validate_hashing_method(sri_hashing_method)
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)) if template_dir else None,
            autoescape=select_autoescape(['html', 'xml']),
        )
        self.assets: Dict[str, bytes] = {}
        self.chunks: Dict[str, List[str]] = {}
        self.pages: List[PageSpec] = []

    @classmethod
    def from_app(cls, app, **kwargs) -> 'SiteBuilder':
        """Builder configured from a Flask app created by ``create_app``."""
        from csp_html.plugin import CspHtmlPlugin

        plugin = app.extensions.get('csp_html') or CspHtmlPlugin.from_config(app.config)
        kwargs.setdefault('public_path', app.config.get('CSP_PUBLIC_PATH', ''))
        kwargs.setdefault('template_dir', app.config.get('CSP_TEMPLATE_DIR'))
        kwargs.setdefault('output_dir', app.config.get('CSP_OUTPUT_DIR'))
        kwargs.setdefault('sri_hashing_method', app.config.get('CSP_SRI_HASHING_METHOD', 'sha384'))
        return cls([plugin], **kwargs)

    # -----------------------------
    # Inputs
    # -----------------------------
    def add_asset(self, name: str, content: Union[str, bytes]) -> None:
        if isinstance(content, str):
            content = content.encode('utf-8')
        self.assets[name] = content

    def add_chunk(self, name: str, assets: Iterable[str]) -> None:
        assets = list(assets)
        missing = [asset for asset in assets if asset not in self.assets]
        if missing:
            raise ValueError(f"Chunk '{name}' references unknown assets: {', '.join(missing)}")
        self.chunks[name] = assets

    def add_page(self, filename: str, template: Optional[str] = None, html: Optional[str] = None,
                 chunks: Optional[List[str]] = None, title: str = '', xhtml: Optional[bool] = None,
                 csp_plugin: Optional[Dict[str, Any]] = None, integrity: Optional[Dict[str, str]] = None,
                 context: Optional[Dict[str, Any]] = None) -> PageData:
        """
        Register a page.

        Args:
            filename: output file name
            template: template name in ``template_dir``; the default template when omitted
            html: ready markup, skips template rendering
            chunks: chunk names to inject; all chunks for templated pages, none for ``html`` pages
            title: page title given to the template
            xhtml: serialize void elements as ``<tag/>``; auto-detected when None
            csp_plugin: per-page overrides (enabled, policy, hash_enabled, nonce_enabled, process_fn)
            integrity: extra URL -> SRI values for assets the page references itself
            context: extra template variables
        """
        if chunks is None:
            chunks = [] if html is not None else list(self.chunks)
        unknown = [chunk for chunk in chunks if chunk not in self.chunks]
        if unknown:
            raise ValueError(f"Page '{filename}' references unknown chunks: {', '.join(unknown)}")

        data = PageData(
            filename=filename,
            csp_plugin=dict(csp_plugin or {}),
            public_path=self.public_path,
            integrity=dict(integrity or {}),
            chunks=list(chunks),
            xhtml=xhtml,
            title=title,
        )
        self.pages.append(PageSpec(data, template=template, html=html, context=dict(context or {})))
        return data

    # -----------------------------
    # Build
    # -----------------------------
    def asset_url(self, name: str) -> str:
        return f"{self.public_path}{name}"

    def _render(self, spec: PageSpec) -> str:
        if spec.html is not None:
            return spec.html
        context = {'title': spec.data.title, 'page': spec.data}
        for plugin in self.plugins:
            nonce = getattr(plugin, 'prime_react_nonce', None)
            if nonce:
                context.setdefault('csp_prime_react_nonce', nonce)
        context.update(spec.context)
        if spec.template:
            template = self.env.get_template(spec.template)
        else:
            template = self.env.from_string(DEFAULT_TEMPLATE)
        return template.render(**context)

    def _chunk_assets(self, page: PageData) -> List[str]:
        names: List[str] = []
        for chunk in page.chunks or []:
            for asset in self.chunks[chunk]:
                if asset not in names:
                    names.append(asset)
        return names

    def _inject_tags(self, markup: str, page: PageData, assets: List[str]) -> str:
        close = '/>' if page.xhtml else '>'
        styles = [f'<link href="{self.asset_url(name)}" rel="stylesheet"{close}'
                  for name in assets if name.endswith('.css')]
        scripts = [f'<script defer src="{self.asset_url(name)}"></script>'
                   for name in assets if name.endswith('.js')]
        tags = ''.join(styles + scripts)
        if not tags:
            return markup
        if '</head>' in markup:
            return markup.replace('</head>', f'{tags}</head>', 1)
        if '<body>' in markup:
            return markup.replace('<body>', f'<body>{tags}', 1)
        return tags + markup

    def build_page(self, spec: PageSpec, build: BuildContext) -> str:
        page = spec.data
        page_logger = get_page_logger(page.filename)
        started = time.perf_counter()

        markup = self._render(spec)
        assets = self._chunk_assets(page)
        for name in assets:
            page.integrity.setdefault(self.asset_url(name),
                                      compute_digest(self.assets[name], self.sri_hashing_method))
        markup = self._inject_tags(markup, page, assets)

        for plugin in self.plugins:
            markup = plugin.process(page, markup, build)

        build.emit_asset(page.filename, markup)
        page_logger.log_performance(logging.DEBUG, 'build_page', time.perf_counter() - started)
        return markup

    def build(self) -> BuildContext:
        build = BuildContext(output_dir=self.output_dir)
        for name, content in self.assets.items():
            build.emit_asset(name, content)

        for spec in self.pages:
            self.build_page(spec, build)

        failed = [result.filename for result in build.results.values() if result.error is not None]
        if failed:
            logger.error(f"Build finished with {len(failed)} failed page(s): {', '.join(failed)}")
        else:
            logger.info(f"Built {len(self.pages)} page(s)")
        return build
