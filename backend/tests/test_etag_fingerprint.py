import hashlib
import pytest

from storefront.utils.etag import (
    EntityTag, UnhashableBodyError, body_to_bytes, compute_fingerprint, ensure_digest_length, ensure_hash_algorithm,
    generate_etag,
)


def test_fingerprint_is_truncated_md5_hex():
    assert compute_fingerprint(b'X') == hashlib.md5(b'X').hexdigest()[:16]
    assert len(compute_fingerprint(b'')) == 16


def test_fingerprint_is_deterministic():
    body = b'{"products":[1,2,3]}'
    assert compute_fingerprint(body) == compute_fingerprint(bytes(body))
    assert generate_etag(body) == generate_etag(bytearray(body))


def test_distinct_bodies_get_distinct_tags():
    corpus = [b'', b'a', b'b', b'ab', b'ba', b'{}', b'[]', b'{"a":1}', b'{"a":2}', b'x' * 4096]
    tags = {compute_fingerprint(b) for b in corpus}
    assert len(tags) == len(corpus)


def test_single_byte_change_changes_tag():
    a = b'{"stock":10}'
    b = b'{"stock":11}'
    assert generate_etag(a) != generate_etag(b)


def test_str_body_hashes_as_utf8():
    text = 'Đồng Hồ'
    assert compute_fingerprint(text) == compute_fingerprint(text.encode('utf-8'))


def test_structured_body_ignores_key_order():
    assert compute_fingerprint({'a': 1, 'b': [1, 2]}) == compute_fingerprint({'b': [1, 2], 'a': 1})
    assert body_to_bytes({'b': 1, 'a': 2}) == b'{"a":2,"b":1}'


def test_unhashable_body_raises():
    with pytest.raises(UnhashableBodyError):
        compute_fingerprint(object())
    with pytest.raises(UnhashableBodyError):
        compute_fingerprint({'when': object()})
    # still a TypeError for callers that only know the builtin
    with pytest.raises(TypeError):
        compute_fingerprint(42)


def test_generated_tag_is_strong_and_quoted():
    tag = generate_etag(b'hello')
    assert isinstance(tag, EntityTag)
    assert not tag.is_weak
    assert tag.to_header() == f'"{tag.opaque_value}"'
    assert EntityTag('abc', is_weak=True).to_header() == 'W/"abc"'


def test_other_algorithms_and_lengths():
    assert compute_fingerprint(b'X', 'sha256', 32) == hashlib.sha256(b'X').hexdigest()[:32]
    assert compute_fingerprint(b'X', 'md5', 8) == hashlib.md5(b'X').hexdigest()[:8]
    assert len(compute_fingerprint(b'X', 'shake_128', 20)) == 20


def test_invalid_length_rejected():
    with pytest.raises(ValueError):
        compute_fingerprint(b'X', length=0)


def test_unknown_algorithm_rejected():
    with pytest.raises(ValueError):
        ensure_hash_algorithm('not-a-hash')
    assert ensure_hash_algorithm('sha1') == 'sha1'


def test_digest_length_bounds():
    assert ensure_digest_length('md5', 16) == 16
    assert ensure_digest_length('md5', '32') == 32
    assert ensure_digest_length('shake_256', 200) == 200
    for bad in (0, -1, 33, 'abc', None):
        with pytest.raises(ValueError):
            ensure_digest_length('md5', bad)
