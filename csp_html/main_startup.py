"""
Ponto de entrada: fábrica da aplicação Flask e CLI de build.
"""

import argparse
import importlib
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from dotenv import load_dotenv
from flask import Flask

from csp_html.build.site_builder import SiteBuilder
from csp_html.csp import parse_csp_header
from csp_html.exceptions import CspError
from csp_html.models import BuildContext
from csp_html.plugin import CspHtmlPlugin
from csp_html.settings import BaseConfig, ConfigError, config_map
from csp_html.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _select_config(env_name: Optional[str] = None, config_class=None) -> Type[BaseConfig]:
    if config_class is None:
        env = (env_name or os.getenv('FLASK_ENV', 'production') or 'production').strip().lower()
        return config_map.get(env, BaseConfig)
    if isinstance(config_class, str):
        return config_map.get(config_class.strip().lower(), BaseConfig)
    return config_class


def create_app(env_name: Optional[str] = None, config_class=None) -> Flask:
    """
    Factory para criar a aplicação Flask cujas páginas serão congeladas.

    O plugin CSP é criado a partir da configuração e registrado em
    ``app.extensions['csp_html']``.
    """
    selected_config = _select_config(env_name, config_class)
    selected_config.validate()

    app = Flask(__name__)
    app.config.from_object(selected_config)
    if not app.config.get('TESTING'):
        selected_config.init_app(app)

    plugin = CspHtmlPlugin.from_config(app.config)
    plugin.init_app(app)
    return app


def _load_callable(value: Any):
    """Resolve ``"package.module:function"`` strings used for process_fn in site files."""
    if not isinstance(value, str):
        return value
    module_name, _, attribute = value.partition(':')
    if not attribute:
        raise ConfigError(f"Invalid callable reference '{value}', expected 'module:function'")
    return getattr(importlib.import_module(module_name), attribute)


def _resolve_callables(options: Dict[str, Any]) -> Dict[str, Any]:
    options = dict(options or {})
    if 'process_fn' in options:
        options['process_fn'] = _load_callable(options['process_fn'])
    return options


def load_site(site_file: Path, config: Type[BaseConfig],
              output_dir: Optional[Path] = None) -> SiteBuilder:
    """
    Create a SiteBuilder from a JSON site description.

    Relative paths (template_dir, assets) are resolved against the site file.
    """
    site_file = Path(site_file)
    base_dir = site_file.parent
    with open(site_file, 'r', encoding='utf-8') as f:
        site = json.load(f)

    policy = dict(config.CSP_POLICY or {})
    policy.update(site.get('policy') or {})
    plugin = CspHtmlPlugin.from_config(config, policy=policy, options=_resolve_callables(site.get('options')))

    template_dir = site.get('template_dir', config.CSP_TEMPLATE_DIR)
    builder = SiteBuilder(
        [plugin],
        public_path=site.get('public_path', config.CSP_PUBLIC_PATH),
        template_dir=base_dir / template_dir if template_dir else None,
        output_dir=output_dir or site.get('output_dir') or config.CSP_OUTPUT_DIR,
        sri_hashing_method=site.get('sri_hashing_method', config.CSP_SRI_HASHING_METHOD),
    )

    for name, path in (site.get('assets') or {}).items():
        builder.add_asset(name, (base_dir / path).read_bytes())
    for name, assets in (site.get('chunks') or {}).items():
        builder.add_chunk(name, assets)
    for page in site.get('pages') or []:
        page = dict(page)
        filename = page.pop('filename')
        if 'csp_plugin' in page:
            page['csp_plugin'] = _resolve_callables(page['csp_plugin'])
        builder.add_page(filename, **page)
    return builder


def report(build: BuildContext) -> None:
    for filename, result in build.results.items():
        if result.error is not None:
            print(f"✗ {filename}: {result.error}")
        elif result.policy is None:
            print(f"- {filename}: {result.state.value}")
        else:
            directives = parse_csp_header(result.policy)
            hashes = sum(1 for sources in directives.values() for s in sources if s.startswith("'sha"))
            nonces = sum(1 for sources in directives.values() for s in sources if s.startswith("'nonce-"))
            print(f"✓ {filename}: {len(directives)} directives, {hashes} hashes, {nonces} nonces")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Função principal da CLI ``csp-html``.
    """
    load_dotenv(override=True)

    parser = argparse.ArgumentParser(
        prog='csp-html',
        description='Build static HTML pages with an injected Content-Security-Policy.',
    )
    parser.add_argument('site', type=Path, help='JSON site description')
    parser.add_argument('-o', '--output', type=Path, help='output directory (default: CSP_OUTPUT_DIR)')
    parser.add_argument('--env', default=os.getenv('FLASK_ENV', 'production'),
                        help='configuration environment (development, testing, production)')
    parser.add_argument('--log-level', help='override LOG_LEVEL')
    parser.add_argument('--log-file', help='also write logs to this file')
    parser.add_argument('--json-logs', action='store_true', help='JSON lines in the log file')
    args = parser.parse_args(argv)

    config = _select_config(args.env)
    setup_logging(args.log_level or config.LOG_LEVEL, args.log_file, json_logs=args.json_logs)

    try:
        config.validate()
        builder = load_site(args.site, config, args.output)
        build = builder.build()
    except (ConfigError, CspError, ValueError, OSError) as e:
        logger.error(f"Build aborted: {e}")
        return 1

    report(build)
    if build.failed:
        logger.error(f"{len(build.errors)} page(s) failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
