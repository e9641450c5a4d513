# services/digest_service.py
"""
Content digests used as CSP hash-sources and as subresource-integrity values.
"""

import base64
import hashlib
from typing import Union

from csp_html.exceptions import ConfigurationError
from csp_html.settings.base import SUPPORTED_HASHING_METHODS


def validate_hashing_method(method: str) -> str:
    if method not in SUPPORTED_HASHING_METHODS:
        raise ConfigurationError(f"'{method}' is not a valid hashing method")
    return method


def compute_digest(content: Union[bytes, str], algorithm: str = 'sha384') -> str:
    """
    Compute ``<algorithm>-<base64 digest>`` of the given content.

    Text is encoded as UTF-8 and hashed as is: whitespace and line endings
    are part of the digest, exactly as browsers compute it.
    """
    validate_hashing_method(algorithm)
    if isinstance(content, str):
        content = content.encode('utf-8')
    digest = hashlib.new(algorithm, content).digest()
    return f"{algorithm}-{base64.b64encode(digest).decode('ascii')}"


def hash_source(content: Union[bytes, str], algorithm: str = 'sha384') -> str:
    """Quoted hash-source as it appears inside a directive."""
    return f"'{compute_digest(content, algorithm)}'"
