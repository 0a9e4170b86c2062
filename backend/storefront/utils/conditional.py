"""Parsing and evaluation of entity-tag precondition headers.

If-None-Match / If-Match values are modelled as either ``Wildcard`` or a
``TagSet``. Parsing never raises: malformed tokens are skipped and a header
that yields no usable token behaves as if it were absent.
"""
from __future__ import annotations
import enum
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Mapping, Optional, Union

from storefront.utils.etag import EntityTag, WEAK_PREFIX

WILDCARD_TOKEN = '*'
# opaque value: printable ASCII except DQUOTE and whitespace
_OPAQUE_RE = re.compile(r'^[\x21\x23-\x7e]+$')


class MatchResult(enum.Enum):
    MATCHED = 'matched'
    NOT_MATCHED = 'not_matched'


@dataclass(frozen=True)
class Wildcard:
    def matches(self, tag: EntityTag) -> bool:
        return True

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class TagSet:
    tags: FrozenSet[EntityTag] = field(default_factory=frozenset)

    @classmethod
    def of(cls, tags: Iterable[EntityTag]) -> 'TagSet':
        # unique by opaque value; strong wins over weak for the same value
        by_value = {}
        for t in tags:
            if t.opaque_value not in by_value or not t.is_weak:
                by_value[t.opaque_value] = t
        return cls(frozenset(by_value.values()))

    @property
    def opaque_values(self) -> FrozenSet[str]:
        return frozenset(t.opaque_value for t in self.tags)

    def matches(self, tag: EntityTag) -> bool:
        # weak comparison: W/ markers are ignored, opaque values must be identical
        return tag.opaque_value in self.opaque_values

    def __bool__(self) -> bool:
        return bool(self.tags)

    def __len__(self) -> int:
        return len(self.tags)


Condition = Union[Wildcard, TagSet]
EMPTY = TagSet()


def parse_entity_tag(token: str) -> Optional[EntityTag]:
    """Parse a single list member; None when malformed."""
    token = token.strip()
    weak = False
    if token.startswith(WEAK_PREFIX):
        weak = True
        token = token[len(WEAK_PREFIX):]
    if token.startswith('"') or token.endswith('"'):
        if len(token) < 2 or not (token.startswith('"') and token.endswith('"')):
            return None  # unterminated quote
        token = token[1:-1]
    if not token or not _OPAQUE_RE.match(token):
        return None
    return EntityTag(token, is_weak=weak)


def parse_condition(raw: Optional[str]) -> Condition:
    """Parse a raw If-None-Match / If-Match header value."""
    if not raw:
        return EMPTY
    tags = []
    for part in raw.split(','):
        token = part.strip()
        if not token:
            continue
        if token == WILDCARD_TOKEN:
            return Wildcard()
        tag = parse_entity_tag(token)
        if tag is not None:
            tags.append(tag)
    return TagSet.of(tags)


def evaluate(condition: Condition, tag: EntityTag) -> MatchResult:
    if condition and condition.matches(tag):
        return MatchResult.MATCHED
    return MatchResult.NOT_MATCHED


@dataclass(frozen=True)
class ConditionalRequest:
    if_none_match: Condition = EMPTY
    if_match: Condition = EMPTY

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> 'ConditionalRequest':
        return cls(
            if_none_match=parse_condition(headers.get('If-None-Match')),
            if_match=parse_condition(headers.get('If-Match')),
        )

    @property
    def has_condition(self) -> bool:
        return bool(self.if_none_match)

    def evaluate_if_none_match(self, tag: EntityTag) -> MatchResult:
        return evaluate(self.if_none_match, tag)


__all__ = [
    'MatchResult', 'Wildcard', 'TagSet', 'Condition', 'ConditionalRequest',
    'parse_entity_tag', 'parse_condition', 'evaluate', 'WILDCARD_TOKEN'
]
