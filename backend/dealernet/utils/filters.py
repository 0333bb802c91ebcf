from __future__ import annotations
from typing import Any, Dict
from flask import abort


def apply_filters(query, specs: Dict[str, Dict[str, Any]], params: Dict[str, Any]):
    """Apply optional query-string filters.

    specs: { param_name: { 'op': callable(query, value)->query, 'coerce': callable (optional), 'validate': callable (optional) } }
    Missing or empty params are skipped.
    """
    for name, meta in specs.items():
        val = params.get(name)
        if val is None or val == '':
            continue
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except (TypeError, ValueError):
                abort(400, description=f'{name} invalid')
        if 'validate' in meta and not meta['validate'](val):
            abort(400, description=f'{name} invalid')
        query = meta['op'](query, val)
    return query


def split_csv(raw) -> list:
    """'a, b,,c' -> ['a', 'b', 'c']"""
    return [part.strip() for part in (raw or '').split(',') if part.strip()]
