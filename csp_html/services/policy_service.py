# services/policy_service.py
"""
Policy layering and validation.

A page policy is assembled from three layers: the built-in defaults, the
policy given to the plugin instance, and the overrides declared by the page.
A directive present in a higher layer replaces the whole source list of the
lower layer; sources are never merged one by one.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from csp_html.exceptions import PolicyError

logger = logging.getLogger(__name__)

Policy = Dict[str, List[str]]
PolicyInput = Mapping[str, Union[str, Iterable[str]]]

# Bare tokens that are only meaningful inside apostrophes
KEYWORDS = frozenset([
    'self',
    'unsafe-inline',
    'unsafe-eval',
    'none',
    'strict-dynamic',
    'report-sample',
])

DEFAULT_POLICY: Mapping[str, tuple] = {
    'base-uri': ("'self'",),
    'object-src': ("'none'",),
    'script-src': ("'unsafe-inline'", "'self'", "'unsafe-eval'"),
    'style-src': ("'unsafe-inline'", "'self'", "'unsafe-eval'"),
}

DEFAULT_FLAGS: Mapping[str, bool] = {
    'script-src': True,
    'style-src': True,
}


def normalize_sources(sources: Union[None, str, Iterable[str]]) -> List[str]:
    """Return a fresh list for a directive value given as a string or a sequence."""
    if sources is None:
        return []
    if isinstance(sources, str):
        return [sources]
    return list(sources)


def normalize_policy(policy: Optional[PolicyInput]) -> Policy:
    return {directive: normalize_sources(sources) for directive, sources in (policy or {}).items()}


def resolve_policy(default: Optional[PolicyInput],
                   instance: Optional[PolicyInput] = None,
                   page: Optional[PolicyInput] = None) -> Policy:
    """
    Merge the three policy layers into a new mapping.

    Args:
        default: lowest precedence layer
        instance: plugin instance layer
        page: per-page layer, highest precedence

    Returns:
        Fresh ordered mapping of directive to source list. None of the inputs
        is mutated.
    """
    resolved = normalize_policy(default)
    for layer in (instance, page):
        for directive, sources in normalize_policy(layer).items():
            # Existing keys keep their position, new keys are appended
            resolved[directive] = sources
    return resolved


def resolve_flags(default: Optional[Mapping[str, bool]],
                  instance: Optional[Mapping[str, bool]] = None,
                  page: Optional[Mapping[str, bool]] = None) -> Dict[str, bool]:
    """Resolve per-directive feature flags (hash_enabled / nonce_enabled) key by key."""
    flags = dict(default or {})
    for layer in (instance, page):
        if layer:
            flags.update(layer)
    return flags


def flag_enabled(flags: Mapping[str, bool], directive: str) -> bool:
    # Directives nobody configured are enabled
    return bool(flags.get(directive, True))


def resolve_option(name: str, default: Any,
                   instance: Optional[Mapping[str, Any]] = None,
                   page: Optional[Mapping[str, Any]] = None) -> Any:
    """Resolve a scalar option (enabled, process_fn) with page > instance > default precedence."""
    for layer in (page, instance):
        if layer and name in layer and layer[name] is not None:
            return layer[name]
    return default


def _is_wrapped(source: str) -> bool:
    return len(source) >= 2 and source.startswith("'") and source.endswith("'")


def validate_policy(policy: PolicyInput) -> None:
    """
    Ensure that CSP keywords are wrapped in apostrophes.

    Raises:
        PolicyError: for the first offending directive/token pair
    """
    for directive, sources in policy.items():
        for source in normalize_sources(sources):
            if source.strip('\'"') in KEYWORDS and not _is_wrapped(source):
                logger.debug(f"Unquoted keyword {source} found in {directive}")
                raise PolicyError(directive, source)
