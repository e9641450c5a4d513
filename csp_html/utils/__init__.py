"""Utils package for csp_html

Este pacote contém o adaptador de documento HTML e a configuração de logging.
"""

from csp_html.utils.html_document import HtmlDocument, looks_like_xhtml
from csp_html.utils.logging_config import setup_logging, get_page_logger, StructuredFormatter

__all__ = [
    'HtmlDocument',
    'looks_like_xhtml',
    'setup_logging',
    'get_page_logger',
    'StructuredFormatter',
]
