from __future__ import annotations
from typing import Dict, Tuple
import re
from flask import request, abort
from sqlalchemy.orm import Query
from storefront.config.pagination import normalize_pagination

_SLUG_STRIP = re.compile(r'[^a-z0-9]+')


def slugify(value: str) -> str:
    return _SLUG_STRIP.sub('-', value.lower()).strip('-')


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


def apply_sort(q: Query, sort_expr: str | None, allowed: Dict[str, object], tie_breaker) -> Query:
    """Order by comma separated keys, '-' prefix for descending.

    ``tie_breaker`` is always appended so page boundaries are stable.
    """
    clauses = []
    for token in (sort_expr or '').split(','):
        token = token.strip()
        if not token:
            continue
        key = token.lstrip('-')
        col = allowed.get(key)
        if col is None:
            abort(400, description=f'Invalid sort field {key}')
        clauses.append(col.desc() if token.startswith('-') else col.asc())
    clauses.append(tie_breaker.asc())
    return q.order_by(*clauses)


def int_arg(name: str, minimum: int | None = None) -> int | None:
    raw = request.args.get(name)
    if raw in (None, ''):
        return None
    try:
        val = int(raw)
    except ValueError:
        abort(400, description=f'{name} must be an integer')
    if minimum is not None and val < minimum:
        abort(400, description=f'{name} must be >= {minimum}')
    return val


def bool_arg(name: str) -> bool | None:
    raw = request.args.get(name)
    if raw is None:
        return None
    if raw.lower() in ('1', 'true', 'yes'):
        return True
    if raw.lower() in ('0', 'false', 'no'):
        return False
    abort(400, description=f'{name} must be a boolean')


def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows)
        }
    }
