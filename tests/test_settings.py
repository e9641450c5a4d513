import json

import pytest

from csp_html.plugin import CspHtmlPlugin
from csp_html.settings import (
    BaseConfig,
    ConfigError,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    config_map,
)
from csp_html.settings.base import getenv_typed


def test_config_map():
    assert config_map['testing'] is TestingConfig
    assert config_map['development'] is DevelopmentConfig
    assert config_map['production'] is ProductionConfig
    assert config_map['default'] is BaseConfig


def test_getenv_typed(monkeypatch):
    monkeypatch.setenv('CSP_TEST_POLICY', '{"img-src": ["\'self\'"]}')
    assert getenv_typed('CSP_TEST_POLICY', json.loads) == {'img-src': ["'self'"]}
    assert getenv_typed('CSP_TEST_UNSET', json.loads, {}) == {}

    monkeypatch.setenv('CSP_TEST_POLICY', 'not json')
    with pytest.raises(ConfigError, match='Env var CSP_TEST_POLICY invalid'):
        getenv_typed('CSP_TEST_POLICY', json.loads)


def test_validate_rejects_unknown_hashing_method():
    class BrokenConfig(TestingConfig):
        CSP_HASHING_METHOD = 'md5'

    with pytest.raises(ConfigError, match='Unsupported CSP hashing method md5'):
        BrokenConfig.validate()


def test_validate_rejects_non_object_policy():
    class BrokenConfig(TestingConfig):
        CSP_POLICY = ["'self'"]

    with pytest.raises(ConfigError):
        BrokenConfig.validate()


def test_production_requires_integrity():
    class NoIntegrityConfig(ProductionConfig):
        CSP_INTEGRITY_ENABLED = False

    with pytest.raises(ConfigError, match='must be enabled in production'):
        NoIntegrityConfig.validate()


def test_plugin_from_config_class_and_mapping():
    plugin = CspHtmlPlugin.from_config(DevelopmentConfig)
    assert plugin.integrity_enabled is False

    plugin = CspHtmlPlugin.from_config(
        {'CSP_HASHING_METHOD': 'sha512', 'CSP_POLICY': {'img-src': "'self'"}},
        options={'nonce_enabled': {'style-src': False}},
    )
    assert plugin.hashing_method == 'sha512'
    assert plugin.policy == {'img-src': ["'self'"]}
    assert plugin.nonce_enabled == {'script-src': True, 'style-src': False}
