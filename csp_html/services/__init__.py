"""
Serviços do núcleo de CSP: camadas de política, digests e nonces.
"""

from csp_html.services.policy_service import (
    DEFAULT_POLICY,
    KEYWORDS,
    resolve_flags,
    resolve_option,
    resolve_policy,
    validate_policy,
)
from csp_html.services.digest_service import compute_digest, hash_source, validate_hashing_method
from csp_html.services.nonce_service import NonceAllocator, encode_nonce, move_strict_dynamic_last

__all__ = [
    'DEFAULT_POLICY',
    'KEYWORDS',
    'resolve_flags',
    'resolve_option',
    'resolve_policy',
    'validate_policy',
    'compute_digest',
    'hash_source',
    'validate_hashing_method',
    'NonceAllocator',
    'encode_nonce',
    'move_strict_dynamic_last',
]
