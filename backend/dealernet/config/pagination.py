import os

# Defaults can be tuned per deployment (ORG_PAGE_LIMIT / ORG_PAGE_MAX_LIMIT)
DEFAULT_LIMIT = int(os.getenv('ORG_PAGE_LIMIT', '50'))
MAX_LIMIT = int(os.getenv('ORG_PAGE_MAX_LIMIT', '500'))


def normalize_pagination(limit_raw, offset_raw):
    try:
        limit = int(limit_raw) if limit_raw is not None else DEFAULT_LIMIT
        offset = int(offset_raw) if offset_raw is not None else 0
    except ValueError:
        raise ValueError('limit/offset must be int')
    limit = max(1, min(limit, MAX_LIMIT))
    offset = max(0, offset)
    return limit, offset
