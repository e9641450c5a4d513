"""
Pipeline de build: renderização de páginas, injeção de chunks e congelamento de apps Flask.
"""

from csp_html.build.site_builder import SiteBuilder, PageSpec, DEFAULT_TEMPLATE
from csp_html.build.freezer import freeze_app, csp_page, filename_for

__all__ = ['SiteBuilder', 'PageSpec', 'DEFAULT_TEMPLATE', 'freeze_app', 'csp_page', 'filename_for']
