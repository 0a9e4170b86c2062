DEFAULT_LIMIT = 50
MAX_LIMIT = 100


def normalize_pagination(limit_raw, offset_raw):
    """Clamp limit to [1, MAX_LIMIT] and offset to >= 0; ValueError on junk."""
    try:
        limit = DEFAULT_LIMIT if limit_raw in (None, '') else int(limit_raw)
        offset = 0 if offset_raw in (None, '') else int(offset_raw)
    except (TypeError, ValueError):
        raise ValueError('limit/offset must be integers')
    return max(1, min(limit, MAX_LIMIT)), max(0, offset)
