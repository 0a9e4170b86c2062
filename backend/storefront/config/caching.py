import os

from storefront.utils.etag import DEFAULT_HASH, DEFAULT_DIGEST_LENGTH

DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024
DEFAULT_EXCLUDED_PATHS = ('/healthz', '/docs')

_TRUTHY = {'1', 'true', 'yes', 'on'}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_paths(name: str, default):
    raw = os.getenv(name)
    if raw is None:
        return tuple(default)
    return tuple(p.strip() for p in raw.split(',') if p.strip())


def caching_config_from_env():
    """Conditional cache settings, overridable through the environment."""
    try:
        digest_length = int(os.getenv('CONDITIONAL_CACHE_DIGEST_LENGTH', DEFAULT_DIGEST_LENGTH))
        max_body = int(os.getenv('CONDITIONAL_CACHE_MAX_BODY_BYTES', DEFAULT_MAX_BODY_BYTES))
    except ValueError:
        raise ValueError('CONDITIONAL_CACHE_DIGEST_LENGTH/CONDITIONAL_CACHE_MAX_BODY_BYTES must be int')
    return {
        'CONDITIONAL_CACHE_ENABLED': _env_bool('CONDITIONAL_CACHE_ENABLED', True),
        'CONDITIONAL_CACHE_HASH': os.getenv('CONDITIONAL_CACHE_HASH', DEFAULT_HASH),
        'CONDITIONAL_CACHE_DIGEST_LENGTH': digest_length,
        'CONDITIONAL_CACHE_MAX_BODY_BYTES': max_body,
        'CONDITIONAL_CACHE_EXCLUDED_PATHS': _env_paths('CONDITIONAL_CACHE_EXCLUDED_PATHS', DEFAULT_EXCLUDED_PATHS),
    }
