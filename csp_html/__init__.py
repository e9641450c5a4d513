"""
Pacote principal do csp_html: política CSP, hashes e nonces para páginas HTML geradas.
"""

from csp_html.exceptions import ConfigurationError, CspError, PolicyError
from csp_html.models import BuildContext, PageData, PageResult, PageState
from csp_html.plugin import CspHtmlPlugin, set_policy_in_meta_tag

__version__ = '1.0.0'


def create_app(env_name=None, config_class=None):
    from .main_startup import create_app as _create_app
    return _create_app(env_name, config_class)

__all__ = [
    'create_app',
    'CspHtmlPlugin',
    'set_policy_in_meta_tag',
    'PageData',
    'PageResult',
    'PageState',
    'BuildContext',
    'CspError',
    'ConfigurationError',
    'PolicyError',
]
