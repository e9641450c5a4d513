import os, json, logging
from logging import handlers
from pathlib import Path

class ConfigError(Exception):
    pass

def getenv_typed(name, cast, default=None):
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except Exception as e:
        raise ConfigError(f"Env var {name} invalid: {e}")

def _as_bool(value):
    return value.lower() == 'true'

SUPPORTED_HASHING_METHODS = ('sha256', 'sha384', 'sha512')

class BaseConfig:
    DEBUG = False
    TESTING = False

    LOG_FILE = Path(os.getenv('LOG_FILE', 'logs/csp_html.log'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # -----------------------------
    # Content Security Policy
    # -----------------------------
    # Instance layer of the policy. The built-in defaults (base-uri, object-src,
    # script-src, style-src) are always merged underneath this mapping.
    CSP_POLICY = getenv_typed('CSP_POLICY', json.loads, {})

    CSP_ENABLED = getenv_typed('CSP_ENABLED', _as_bool, True)
    CSP_INTEGRITY_ENABLED = getenv_typed('CSP_INTEGRITY_ENABLED', _as_bool, True)
    CSP_HASHING_METHOD = os.getenv('CSP_HASHING_METHOD', 'sha384').lower()
    CSP_HASH_ENABLED = {
        'script-src': getenv_typed('CSP_HASH_SCRIPT_SRC', _as_bool, True),
        'style-src': getenv_typed('CSP_HASH_STYLE_SRC', _as_bool, True),
    }
    CSP_NONCE_ENABLED = {
        'script-src': getenv_typed('CSP_NONCE_SCRIPT_SRC', _as_bool, True),
        'style-src': getenv_typed('CSP_NONCE_STYLE_SRC', _as_bool, True),
    }
    # Nonce shared with runtime-injected <style> elements (PrimeReact)
    CSP_PRIME_REACT_ENABLED = getenv_typed('CSP_PRIME_REACT_ENABLED', _as_bool, False)

    # -----------------------------
    # Build pipeline
    # -----------------------------
    CSP_PUBLIC_PATH = os.getenv('CSP_PUBLIC_PATH', '')
    CSP_OUTPUT_DIR = Path(os.getenv('CSP_OUTPUT_DIR', 'dist'))
    CSP_TEMPLATE_DIR = os.getenv('CSP_TEMPLATE_DIR')
    # Algorithm used by the build for subresource-integrity of emitted assets
    CSP_SRI_HASHING_METHOD = os.getenv('CSP_SRI_HASHING_METHOD', 'sha384').lower()

    @classmethod
    def init_app(cls, app):
        # logs do Flask e do pacote (csp_html.*) no mesmo arquivo rotativo
        level = getattr(logging, cls.LOG_LEVEL)
        cls.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        file_handler = handlers.RotatingFileHandler(
            str(cls.LOG_FILE), maxBytes=10_000_000, backupCount=5, encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s'))
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(file_handler.formatter)

        for target in (app.logger, logging.getLogger('csp_html')):
            target.addHandler(file_handler)
            target.addHandler(console_handler)
            target.setLevel(level)

    @classmethod
    def validate(cls):
        if cls.CSP_HASHING_METHOD not in SUPPORTED_HASHING_METHODS:
            raise ConfigError(f"Unsupported CSP hashing method {cls.CSP_HASHING_METHOD}")
        if cls.CSP_SRI_HASHING_METHOD not in SUPPORTED_HASHING_METHODS:
            raise ConfigError(f"Unsupported SRI hashing method {cls.CSP_SRI_HASHING_METHOD}")
        if not isinstance(cls.CSP_POLICY, dict):
            raise ConfigError("CSP_POLICY must be a JSON object")
