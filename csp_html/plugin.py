# plugin.py
"""
Per-page CSP augmentation.

``CspHtmlPlugin`` resolves the policy of a page, hashes its inline scripts
and styles, hands out nonces to external ones, attaches subresource
integrity and finally passes the serialized policy to an output hook
(by default: the ``Content-Security-Policy`` meta tag of the page).
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from csp_html.csp import CSP_META_HTTP_EQUIV, build_csp_header
from csp_html.exceptions import PolicyError
from csp_html.models import AttributeMutation, BuildContext, PageData, PageResult, PageState
from csp_html.services.digest_service import hash_source, validate_hashing_method
from csp_html.services.nonce_service import NonceAllocator, RandomBytes, move_strict_dynamic_last, nonce_source
from csp_html.services.policy_service import (
    DEFAULT_FLAGS,
    DEFAULT_POLICY,
    Policy,
    flag_enabled,
    normalize_policy,
    resolve_flags,
    resolve_option,
    resolve_policy,
    validate_policy,
)
from csp_html.utils.html_document import HtmlDocument

logger = logging.getLogger(__name__)

RESOURCE_SELECTOR = 'script, style, link'
CSP_META_SELECTOR = f'meta[http-equiv="{CSP_META_HTTP_EQUIV}"]'

ProcessFn = Callable[[str, PageData, HtmlDocument, BuildContext], None]


def set_policy_in_meta_tag(policy: str, page: PageData, document: HtmlDocument, build: BuildContext) -> None:
    """Default output hook: write the policy into the CSP meta tag, adding the tag if needed."""
    meta = document.select_one(CSP_META_SELECTOR)
    if meta is not None:
        document.set_attr(meta, 'content', policy)
    else:
        meta = document.create_element('meta', {
            'http-equiv': CSP_META_HTTP_EQUIV,
            'content': policy,
        })
        # First element of <head> so the policy applies before anything loads
        document.prepend_to_head(meta)

    result = build.results.get(page.filename)
    if result is not None:
        result.mutations.append(AttributeMutation('meta', 'content', policy))


class CspHtmlPlugin:
    """
    Adds a CSP meta tag, hashes, nonces and integrity attributes to generated pages.

    ``prime_react_enabled`` is off unless asked for, so a plugin built with no
    options emits only the default policy plus page hashes and nonces. Turn
    it on to add the shared ``style-src`` nonce for PrimeReact-style runtime
    ``<style>`` injection (``prime_react_nonce``).
    """

    OPTION_DEFAULTS: Dict[str, Any] = {
        'enabled': True,
        'integrity_enabled': True,
        'hashing_method': 'sha384',
        'hash_enabled': DEFAULT_FLAGS,
        'nonce_enabled': DEFAULT_FLAGS,
        'process_fn': set_policy_in_meta_tag,
        'prime_react_enabled': False,
    }

    PAGE_OPTIONS = ('enabled', 'policy', 'hash_enabled', 'nonce_enabled', 'process_fn')

    def __init__(self, policy: Optional[Mapping] = None, options: Optional[Mapping] = None,
                 random_bytes: Optional[RandomBytes] = None):
        options = dict(options or {})
        for key in options:
            if key not in self.OPTION_DEFAULTS:
                logger.warning(f"Ignoring unknown CSP plugin option '{key}'")

        self.hashing_method = validate_hashing_method(
            options.get('hashing_method', self.OPTION_DEFAULTS['hashing_method'])
        )
        self.policy: Policy = normalize_policy(policy)
        self.enabled = resolve_option('enabled', self.OPTION_DEFAULTS['enabled'], options)
        self.integrity_enabled = bool(options.get('integrity_enabled', self.OPTION_DEFAULTS['integrity_enabled']))
        self.hash_enabled = resolve_flags(DEFAULT_FLAGS, options.get('hash_enabled'))
        self.nonce_enabled = resolve_flags(DEFAULT_FLAGS, options.get('nonce_enabled'))
        self.process_fn: ProcessFn = options.get('process_fn') or self.OPTION_DEFAULTS['process_fn']
        self.prime_react_enabled = bool(options.get('prime_react_enabled', False))

        self.nonces = NonceAllocator(random_bytes)
        # Allocated once per plugin, shared by every page of the build
        self.prime_react_nonce = self.nonces.allocate() if self.prime_react_enabled else None

    @classmethod
    def from_config(cls, config, policy: Optional[Mapping] = None, options: Optional[Mapping] = None,
                    random_bytes: Optional[RandomBytes] = None) -> 'CspHtmlPlugin':
        """
        Create a plugin from a Flask config (mapping) or a settings class.

        ``policy`` replaces ``CSP_POLICY`` and ``options`` are applied on top
        of the ``CSP_*`` settings.
        """
        if isinstance(config, Mapping):
            get = config.get
        else:
            def get(key, default=None):
                return getattr(config, key, default)

        resolved_options = {
            'enabled': get('CSP_ENABLED', True),
            'integrity_enabled': get('CSP_INTEGRITY_ENABLED', True),
            'hashing_method': get('CSP_HASHING_METHOD', 'sha384'),
            'hash_enabled': get('CSP_HASH_ENABLED'),
            'nonce_enabled': get('CSP_NONCE_ENABLED'),
            'prime_react_enabled': get('CSP_PRIME_REACT_ENABLED', False),
        }
        resolved_options.update(options or {})
        if policy is None:
            policy = get('CSP_POLICY') or {}
        return cls(policy, resolved_options, random_bytes=random_bytes)

    def init_app(self, app) -> None:
        """Register the plugin on a Flask app and expose the runtime style nonce to templates."""
        app.extensions['csp_html'] = self

        @app.context_processor
        def inject_csp_prime_react_nonce():
            return {'csp_prime_react_nonce': self.prime_react_nonce}

        logger.info("CSP plugin registered")

    # -----------------------------
    # Resolution
    # -----------------------------
    @staticmethod
    def _evaluate(enabled, page: PageData) -> bool:
        if callable(enabled):
            return bool(enabled(page))
        return bool(enabled)

    def is_enabled(self, page: PageData) -> bool:
        if not self._evaluate(self.enabled, page):
            return False
        # An explicit None means "not set", as for process_fn
        return self._evaluate(resolve_option('enabled', True, page=page.csp_plugin), page)

    def _page_options(self, page: PageData) -> Dict[str, Any]:
        overrides = dict(page.csp_plugin or {})
        for key in overrides:
            if key not in self.PAGE_OPTIONS:
                logger.warning(f"{page.filename}: ignoring unknown per-page CSP option '{key}'")
        return overrides

    def resolve_page_policy(self, page: PageData) -> Policy:
        overrides = self._page_options(page)
        return resolve_policy(DEFAULT_POLICY, self.policy, overrides.get('policy'))

    def resolve_process_fn(self, page: PageData) -> ProcessFn:
        return resolve_option('process_fn', set_policy_in_meta_tag,
                              {'process_fn': self.process_fn}, page.csp_plugin)

    # -----------------------------
    # Processing
    # -----------------------------
    def process(self, page: PageData, html: str, build: Optional[BuildContext] = None) -> str:
        """
        Augment one page and return its markup.

        Disabled and failed pages are returned exactly as received.
        """
        build = build if build is not None else BuildContext()
        if not self.is_enabled(page):
            result = PageResult(page.filename)
            result.transition(PageState.SKIPPED)
            build.results[page.filename] = result
            logger.info(f"CSP disabled for {page.filename}, leaving markup untouched")
            return html

        document = HtmlDocument.parse(html, xhtml=page.xhtml)
        result = self.process_document(page, document, build)
        if result.state == PageState.FAILED:
            return html
        return document.serialize()

    def process_document(self, page: PageData, document: HtmlDocument,
                         build: Optional[BuildContext] = None) -> PageResult:
        build = build if build is not None else BuildContext()
        result = PageResult(page.filename)
        build.results[page.filename] = result

        if not self.is_enabled(page):
            result.transition(PageState.SKIPPED)
            return result

        policy = self.resolve_page_policy(page)
        overrides = page.csp_plugin or {}
        hash_enabled = resolve_flags(DEFAULT_FLAGS, self.hash_enabled, overrides.get('hash_enabled'))
        nonce_enabled = resolve_flags(DEFAULT_FLAGS, self.nonce_enabled, overrides.get('nonce_enabled'))
        result.transition(PageState.POLICY_RESOLVED)

        try:
            validate_policy(policy)
        except PolicyError as e:
            result.error = e
            result.transition(PageState.FAILED)
            build.report_error(e)
            logger.error(f"{page.filename}: {e}")
            return result
        result.transition(PageState.VALIDATED)

        self._augment(document, page, policy, hash_enabled, nonce_enabled, result)
        result.transition(PageState.AUGMENTED)

        result.policy = build_csp_header(policy)
        result.transition(PageState.SERIALIZED)

        process_fn = self.resolve_process_fn(page)
        process_fn(result.policy, page, document, build)
        result.transition(PageState.HOOK_INVOKED)
        return result

    def _augment(self, document: HtmlDocument, page: PageData, policy: Policy,
                 hash_enabled: Mapping[str, bool], nonce_enabled: Mapping[str, bool],
                 result: PageResult) -> None:
        hashes: Dict[str, list] = {'script-src': [], 'style-src': []}
        nonces: Dict[str, list] = {'script-src': [], 'style-src': []}

        for element in document.select(RESOURCE_SELECTOR):
            tag = document.tag_name(element)
            if tag == 'link':
                rel = (document.get_attr(element, 'rel') or '').lower().split()
                if 'stylesheet' not in rel or not document.has_attr(element, 'href'):
                    continue
                directive, url = 'style-src', document.get_attr(element, 'href')
            elif tag == 'script' and document.has_attr(element, 'src'):
                directive, url = 'script-src', document.get_attr(element, 'src')
            else:
                directive = 'script-src' if tag == 'script' else 'style-src'
                if flag_enabled(hash_enabled, directive):
                    source = hash_source(document.text(element), self.hashing_method)
                    if source not in hashes[directive] and source not in policy.get(directive, []):
                        hashes[directive].append(source)
                continue

            if self.integrity_enabled and url in page.integrity:
                document.set_attr(element, 'integrity', page.integrity[url])
                result.mutations.append(AttributeMutation(tag, 'integrity', page.integrity[url], url))

            if self.nonces.should_nonce(url, policy.get(directive, []),
                                        flag_enabled(nonce_enabled, directive), page.public_path):
                token = self.nonces.allocate()
                document.set_attr(element, 'nonce', token)
                nonces[directive].append(nonce_source(token))
                result.mutations.append(AttributeMutation(tag, 'nonce', token, url))
            else:
                logger.debug(f"{page.filename}: {url} already allowed by {directive}, no nonce")

        if self.prime_react_nonce:
            nonces['style-src'].append(nonce_source(self.prime_react_nonce))

        for directive in ('script-src', 'style-src'):
            if hashes[directive] or nonces[directive]:
                policy[directive] = policy.get(directive, []) + hashes[directive] + nonces[directive]
        for directive, sources in policy.items():
            policy[directive] = move_strict_dynamic_last(sources)
