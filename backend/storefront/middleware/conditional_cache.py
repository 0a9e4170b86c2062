"""Conditional GET support for every response leaving the app.

Handlers never deal with validators themselves. Once a view has produced its
final response, ``ConditionalCache`` wraps it in a ``ConditionalResponseWriter``
which fingerprints the body, attaches ``ETag`` and, when the client's
If-None-Match already names that tag, collapses the response into an empty
304.

Usage:
    conditional_cache = ConditionalCache()
    conditional_cache.init_app(app)

The body has to be fully buffered before it can be hashed. Streamed and
``direct_passthrough`` responses (e.g. ``send_file``) and bodies above
``CONDITIONAL_CACHE_MAX_BODY_BYTES`` are passed through untouched.
"""
from __future__ import annotations
import enum
import logging
from typing import Optional

from flask import Flask, Response, current_app, request

from storefront.config.caching import caching_config_from_env
from storefront.utils.conditional import ConditionalRequest, MatchResult
from storefront.utils.etag import (
    DEFAULT_DIGEST_LENGTH,
    DEFAULT_HASH,
    EntityTag,
    ensure_digest_length,
    ensure_hash_algorithm,
    generate_etag,
)

logger = logging.getLogger(__name__)

SAFE_METHODS = frozenset({'GET', 'HEAD'})
# headers describing a body that a 304 no longer carries
BODY_HEADERS = ('Content-Length', 'Content-Type', 'Content-Encoding', 'Content-Range', 'Transfer-Encoding')


class WriterState(enum.Enum):
    PENDING = 'pending'
    HASHED = 'hashed'
    SHORT_CIRCUITED = 'short_circuited'
    FULLY_SENT = 'fully_sent'
    CLOSED = 'closed'


class ConditionalResponseWriter:
    """Wraps one finalized response; ``finalize`` may be called exactly once.

    States: PENDING -> HASHED -> {SHORT_CIRCUITED | FULLY_SENT} -> CLOSED.
    The terminal outcome stays available on ``outcome`` after closing.
    """

    def __init__(
        self,
        response: Response,
        conditional: ConditionalRequest,
        method: str = 'GET',
        algorithm: str = DEFAULT_HASH,
        digest_length: int = DEFAULT_DIGEST_LENGTH,
    ):
        self.response = response
        self.conditional = conditional
        self.method = method.upper()
        self.algorithm = algorithm
        self.digest_length = digest_length
        self.state = WriterState.PENDING
        self.outcome: Optional[WriterState] = None
        self.etag: Optional[EntityTag] = None
        self.result = MatchResult.NOT_MATCHED

    @property
    def taggable(self) -> bool:
        status = self.response.status_code
        return 200 <= status < 400 and status != 304

    @property
    def may_short_circuit(self) -> bool:
        return self.method in SAFE_METHODS and 200 <= self.response.status_code < 300

    def hash(self) -> Optional[EntityTag]:
        if self.state is not WriterState.PENDING:
            raise RuntimeError(f'cannot hash in state {self.state.value}')
        if self.taggable:
            self.etag = generate_etag(self.response.get_data(), self.algorithm, self.digest_length)
        self.state = WriterState.HASHED
        return self.etag

    def finalize(self) -> Response:
        if self.state not in (WriterState.PENDING, WriterState.HASHED):
            raise RuntimeError('response already finalized')
        if self.state is WriterState.PENDING:
            self.hash()
        if self.etag is not None and self.may_short_circuit:
            self.result = self.conditional.evaluate_if_none_match(self.etag)
        if self.result is MatchResult.MATCHED:
            self._short_circuit()
            self.outcome = WriterState.SHORT_CIRCUITED
        else:
            if self.etag is not None:
                self.response.headers['ETag'] = self.etag.to_header()
            self.outcome = WriterState.FULLY_SENT
        self.state = WriterState.CLOSED
        return self.response

    def _short_circuit(self):
        resp = self.response
        resp.status_code = 304
        resp.set_data(b'')
        for name in BODY_HEADERS:
            resp.headers.pop(name, None)
        resp.headers['ETag'] = self.etag.to_header()


class ConditionalCache:
    """Flask extension registering the conditional response hook."""

    def __init__(self, app: Optional[Flask] = None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask):
        for key, value in caching_config_from_env().items():
            app.config.setdefault(key, value)
        # bad hash settings must fail at startup, not per request
        algorithm = ensure_hash_algorithm(app.config['CONDITIONAL_CACHE_HASH'])
        app.config['CONDITIONAL_CACHE_DIGEST_LENGTH'] = ensure_digest_length(
            algorithm, app.config['CONDITIONAL_CACHE_DIGEST_LENGTH'])
        excluded = app.config['CONDITIONAL_CACHE_EXCLUDED_PATHS']
        if isinstance(excluded, str):
            excluded = excluded.split(',')
        app.config['CONDITIONAL_CACHE_EXCLUDED_PATHS'] = tuple(p.strip() for p in excluded if p.strip())
        app.after_request(self._after_request)
        app.extensions['conditional_cache'] = self

    def should_handle(self, response: Response) -> bool:
        cfg = current_app.config
        if not cfg['CONDITIONAL_CACHE_ENABLED']:
            return False
        if request.path in cfg['CONDITIONAL_CACHE_EXCLUDED_PATHS']:
            return False
        if response.is_streamed or response.direct_passthrough:
            return False
        max_bytes = cfg['CONDITIONAL_CACHE_MAX_BODY_BYTES']
        length = response.calculate_content_length()
        if max_bytes and length is not None and length > max_bytes:
            logger.debug('Body of %s %s too large to fingerprint (%d bytes)', request.method, request.path, length)
            return False
        return True

    def _after_request(self, response: Response) -> Response:
        if not self.should_handle(response):
            return response
        cfg = current_app.config
        try:
            writer = ConditionalResponseWriter(
                response,
                ConditionalRequest.from_headers(request.headers),
                method=request.method,
                algorithm=cfg['CONDITIONAL_CACHE_HASH'],
                digest_length=cfg['CONDITIONAL_CACHE_DIGEST_LENGTH'],
            )
            out = writer.finalize()
        except Exception:
            logger.warning('Conditional cache skipped for %s %s', request.method, request.path, exc_info=True)
            return response
        if writer.outcome is WriterState.SHORT_CIRCUITED:
            logger.debug('%s %s not modified (%s)', request.method, request.path, writer.etag)
        return out


__all__ = ['ConditionalCache', 'ConditionalResponseWriter', 'WriterState', 'SAFE_METHODS', 'BODY_HEADERS']
