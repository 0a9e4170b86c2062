import logging
import pytest

from storefront.config.caching import caching_config_from_env, DEFAULT_MAX_BODY_BYTES
from storefront.config.log import configure_logging
from storefront.config.pagination import normalize_pagination, DEFAULT_LIMIT, MAX_LIMIT


def test_caching_defaults(monkeypatch):
    for key in ('ENABLED', 'HASH', 'DIGEST_LENGTH', 'MAX_BODY_BYTES', 'EXCLUDED_PATHS'):
        monkeypatch.delenv(f'CONDITIONAL_CACHE_{key}', raising=False)
    cfg = caching_config_from_env()
    assert cfg['CONDITIONAL_CACHE_ENABLED'] is True
    assert cfg['CONDITIONAL_CACHE_HASH'] == 'md5'
    assert cfg['CONDITIONAL_CACHE_DIGEST_LENGTH'] == 16
    assert cfg['CONDITIONAL_CACHE_MAX_BODY_BYTES'] == DEFAULT_MAX_BODY_BYTES
    assert cfg['CONDITIONAL_CACHE_EXCLUDED_PATHS'] == ('/healthz', '/docs')


def test_caching_env_overrides(monkeypatch):
    monkeypatch.setenv('CONDITIONAL_CACHE_ENABLED', 'off')
    monkeypatch.setenv('CONDITIONAL_CACHE_HASH', 'sha256')
    monkeypatch.setenv('CONDITIONAL_CACHE_DIGEST_LENGTH', '32')
    monkeypatch.setenv('CONDITIONAL_CACHE_EXCLUDED_PATHS', '/a, /b,,')
    cfg = caching_config_from_env()
    assert cfg['CONDITIONAL_CACHE_ENABLED'] is False
    assert cfg['CONDITIONAL_CACHE_HASH'] == 'sha256'
    assert cfg['CONDITIONAL_CACHE_DIGEST_LENGTH'] == 32
    assert cfg['CONDITIONAL_CACHE_EXCLUDED_PATHS'] == ('/a', '/b')


def test_caching_env_rejects_junk(monkeypatch):
    monkeypatch.setenv('CONDITIONAL_CACHE_MAX_BODY_BYTES', 'lots')
    with pytest.raises(ValueError):
        caching_config_from_env()


def test_pagination_normalization():
    assert normalize_pagination(None, None) == (DEFAULT_LIMIT, 0)
    assert normalize_pagination('1000', '-3') == (MAX_LIMIT, 0)
    assert normalize_pagination('0', '5') == (1, 5)
    with pytest.raises(ValueError):
        normalize_pagination('ten', None)


def test_configure_logging_sets_storefront_level():
    try:
        assert configure_logging('debug') == 'DEBUG'
        logger = logging.getLogger('storefront')
        assert logger.level == logging.DEBUG
        assert logger.propagate is True
    finally:
        configure_logging('INFO')


def test_core_modules_keep_their_docstrings():
    import storefront.middleware.conditional_cache as cache_mod
    import storefront.services.orders as orders_mod
    import storefront.utils.conditional as conditional_mod
    import storefront.utils.etag as etag_mod
    for mod in (cache_mod, orders_mod, conditional_mod, etag_mod):
        assert mod.__doc__, mod.__name__
