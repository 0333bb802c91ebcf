from __future__ import annotations
from typing import Callable, Tuple
from flask import request, abort
from sqlalchemy.orm import Query
from dealernet.config.pagination import normalize_pagination


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


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


def paginated_list(q: Query, serializer: Callable):
    """Paginate ``q`` from the request args and serialize each row."""
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([serializer(r) for r in paged_q.all()], total, limit, offset)
