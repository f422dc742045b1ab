from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple
from flask import request, abort, make_response
import hashlib
import json

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def normalize_pagination(limit_raw, offset_raw) -> Tuple[int, int]:
    try:
        limit = int(limit_raw) if limit_raw is not None else DEFAULT_LIMIT
        offset = int(offset_raw) if offset_raw is not None else 0
    except ValueError:
        raise ValueError('limit/offset must be int')
    limit = max(1, min(limit, MAX_LIMIT))
    offset = max(0, offset)
    return limit, offset


def paginate(rows: List[Dict[str, Any]]):
    """Slice already-sorted rows using ?limit/&offset; aborts 400 on malformed values."""
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    return rows[offset:offset + limit], len(rows), limit, offset


def bool_arg(name: str) -> Optional[bool]:
    raw = request.args.get(name)
    if raw is None:
        return None
    if raw.lower() in ('true', '1'):
        return True
    if raw.lower() in ('false', '0'):
        return False
    abort(400, description=f'{name} must be true or false')


def int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        abort(400, description=f'{name} must be int')


def compute_etag(parts: Iterable[Any]) -> str:
    seed = '|'.join(str(p) for p in parts)
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


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


def make_cached_list_response(rows: list, total: int, limit: int, offset: int):
    """List response whose ETag covers every serialized row and the page window."""
    stamp = json.dumps(rows, sort_keys=True, default=str)
    etag = compute_etag([stamp, total, limit, offset])
    resp = make_response(build_list_payload(rows, total, limit, offset))
    resp.headers['ETag'] = etag
    return resp, etag


def handle_conditional(etag_value: str):
    """Return a 304 response when If-None-Match matches ``etag_value``, else None."""
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag_value:
        resp = make_response('', 304)
        resp.headers['ETag'] = etag_value
        return resp
    return None


def if_match_version() -> Optional[int]:
    """Parse an If-Match header carrying a role version (``"3"`` or ``3``)."""
    raw = request.headers.get('If-Match')
    if raw is None:
        return None
    try:
        return int(raw.strip().strip('"'))
    except ValueError:
        abort(400, description='If-Match must carry the role version')
