# services/nonce_service.py
"""
Nonce allocation for external scripts and stylesheets.
"""

import base64
import logging
import secrets
from typing import Callable, Iterable, Optional
from urllib.parse import urljoin

logger = logging.getLogger(__name__)

STRICT_DYNAMIC = "'strict-dynamic'"
NONCE_SIZE = 16

RandomBytes = Callable[[int], bytes]


def encode_nonce(raw: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(raw).decode('ascii').rstrip('=')


def nonce_source(token: str) -> str:
    return f"'nonce-{token}'"


class NonceAllocator:
    """Generates nonces and decides which external elements need one."""

    def __init__(self, random_bytes: Optional[RandomBytes] = None, size: int = NONCE_SIZE):
        # secrets.token_bytes in production, a deterministic sequence in tests
        self.random_bytes = random_bytes or secrets.token_bytes
        self.size = size

    def allocate(self) -> str:
        return encode_nonce(self.random_bytes(self.size))

    @staticmethod
    def host_covered(url: str, sources: Iterable[str], public_path: Optional[str] = None) -> bool:
        """
        Check whether an unquoted source of the directive already allows ``url``.

        Relative URLs are resolved against ``public_path`` first. Matching is
        plain substring containment; wildcard hosts are not expanded.
        """
        resolved = urljoin(public_path, url) if public_path else url
        for source in sources:
            if not source or source.startswith("'"):
                continue
            if source in resolved:
                return True
        return False

    def should_nonce(self, url: str, sources: Iterable[str], nonce_enabled: bool,
                     public_path: Optional[str] = None) -> bool:
        if not nonce_enabled:
            return False
        sources = list(sources)
        if self.host_covered(url, sources, public_path):
            # 'strict-dynamic' makes browsers ignore the host allowlist
            return STRICT_DYNAMIC in sources
        return True


def move_strict_dynamic_last(sources: list) -> list:
    """Return ``sources`` with 'strict-dynamic' (if present) moved to the end."""
    if STRICT_DYNAMIC not in sources:
        return sources
    return [source for source in sources if source != STRICT_DYNAMIC] + [STRICT_DYNAMIC]
