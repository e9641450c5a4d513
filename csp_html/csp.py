# csp.py
"""
Content Security Policy (CSP) serialization.
"""

import logging
from typing import Dict, List

logger = logging.getLogger(__name__)

DIRECTIVE_SEPARATOR = "; "
CSP_META_HTTP_EQUIV = "Content-Security-Policy"


def build_csp_header(csp_config: Dict[str, List[str]]) -> str:
    """
    Build CSP string from a resolved policy.

    Args:
        csp_config: Ordered mapping of directive to source expressions

    Returns:
        ``directive source source; directive source`` without a trailing
        separator. Directives without sources are emitted bare
        (``upgrade-insecure-requests``).
    """
    csp_parts = []

    for directive, sources in csp_config.items():
        if sources:
            csp_parts.append(f"{directive} {' '.join(sources)}")
        else:
            csp_parts.append(directive)

    csp_header = DIRECTIVE_SEPARATOR.join(csp_parts)
    logger.debug(f"CSP header generated: {csp_header}")
    return csp_header


def parse_csp_header(header: str) -> Dict[str, List[str]]:
    """Split a serialized policy back into directives; used by reports and tests."""
    directives: Dict[str, List[str]] = {}
    for segment in header.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        name, *values = segment.split()
        directives[name] = values
    return directives
