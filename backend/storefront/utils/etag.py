"""Entity tags derived from response bodies.

A tag is a truncated hex digest of the exact body bytes. No salt or
process-local state goes into the digest, so every worker in a fleet
produces the same tag for the same body.
"""
from __future__ import annotations
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Union

DEFAULT_HASH = 'md5'
DEFAULT_DIGEST_LENGTH = 16
WEAK_PREFIX = 'W/'

Body = Union[bytes, bytearray, memoryview, str, dict, list]


class UnhashableBodyError(TypeError):
    """Raised when a response body cannot be reduced to bytes."""


@dataclass(frozen=True)
class EntityTag:
    opaque_value: str
    is_weak: bool = False

    def to_header(self) -> str:
        quoted = f'"{self.opaque_value}"'
        return f'{WEAK_PREFIX}{quoted}' if self.is_weak else quoted

    def __str__(self) -> str:
        return self.to_header()


def body_to_bytes(body: Any) -> bytes:
    """Return the byte sequence a body would be transmitted as.

    Structured payloads are serialized as compact JSON with sorted keys so
    that dict ordering never changes the fingerprint.
    """
    if isinstance(body, bytes):
        return body
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode('utf-8')
    if isinstance(body, (dict, list)):
        try:
            return json.dumps(body, sort_keys=True, separators=(',', ':'), ensure_ascii=False).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise UnhashableBodyError(f'body is not JSON serializable: {e}') from e
    raise UnhashableBodyError(f'unsupported body type {type(body).__name__}')


def ensure_hash_algorithm(name: str) -> str:
    """Validate a hashlib algorithm name up front (raises ValueError)."""
    try:
        hashlib.new(name)
    except (ValueError, TypeError) as e:
        raise ValueError(f'Unknown hash algorithm {name!r}') from e
    return name


def ensure_digest_length(name: str, length: int) -> int:
    """Validate a tag length against the algorithm's hex digest (raises ValueError)."""
    try:
        length = int(length)
    except (TypeError, ValueError) as e:
        raise ValueError(f'Digest length must be an integer, got {length!r}') from e
    if length < 1:
        raise ValueError('Digest length must be positive')
    digest_size = _new_hash(name).digest_size
    # shake_* report 0 and can produce any length
    if digest_size and length > 2 * digest_size:
        raise ValueError(f'Digest length {length} exceeds {2 * digest_size} hex chars of {name}')
    return length


def _new_hash(name: str):
    if name == 'md5':
        # md5 is a fingerprint here, not a security primitive (FIPS builds refuse it otherwise)
        return hashlib.md5(usedforsecurity=False)
    return hashlib.new(name)


def compute_fingerprint(body: Body, algorithm: str = DEFAULT_HASH, length: int = DEFAULT_DIGEST_LENGTH) -> str:
    if length < 1:
        raise ValueError('length must be positive')
    h = _new_hash(algorithm)
    h.update(body_to_bytes(body))
    if h.digest_size == 0:
        # variable-length digests (shake_*) need an explicit size
        return h.hexdigest(length)[:length]  # type: ignore[call-arg]
    return h.hexdigest()[:length]


def generate_etag(body: Body, algorithm: str = DEFAULT_HASH, length: int = DEFAULT_DIGEST_LENGTH) -> EntityTag:
    """Strong entity tag for the given body."""
    return EntityTag(compute_fingerprint(body, algorithm, length))


__all__ = [
    'EntityTag', 'UnhashableBodyError', 'body_to_bytes', 'compute_fingerprint',
    'generate_etag', 'ensure_hash_algorithm', 'ensure_digest_length', 'DEFAULT_HASH', 'DEFAULT_DIGEST_LENGTH', 'WEAK_PREFIX'
]
