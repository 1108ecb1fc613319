from __future__ import annotations

import math
from typing import Any, Dict, List
from urllib.parse import quote

from querykit.schemas.query import PageWindow, RawParameters

# encodeURIComponent leaves these unescaped; links stay byte-identical for JS clients
_VALUE_SAFE = "-_.!~*'()"
_KEY_SAFE = _VALUE_SAFE + "[]"


def base_url(raw: RawParameters) -> str:
    return f"{raw.protocol}://{raw.host}{raw.base_path}{raw.path}"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _pairs(key: str, value: Any) -> List[str]:
    if isinstance(value, dict):
        pairs: List[str] = []
        for sub_key, sub_value in value.items():
            pairs.extend(_pairs(f"{key}[{sub_key}]", sub_value))
        return pairs
    if isinstance(value, (list, tuple)):
        values = [v for v in value if not _is_blank(v)]
    elif _is_blank(value):
        values = []
    else:
        values = [value]
    encoded_key = quote(key, safe=_KEY_SAFE)
    return [f"{encoded_key}={quote(_stringify(v), safe=_VALUE_SAFE)}" for v in values]


def build_page_url(raw: RawParameters, page: int) -> str:
    """URL of ``page`` carrying every other request parameter unchanged."""
    params = dict(raw.params)
    params["page"] = page
    pairs: List[str] = []
    for key, value in params.items():
        pairs.extend(_pairs(str(key), value))
    return f"{base_url(raw)}?{'&'.join(pairs)}"


def last_page_for(total: int, limit: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def build_pagination(window: PageWindow, total: int, raw: RawParameters) -> Dict[str, Any]:
    last_page = last_page_for(total, window.limit)
    has_next = window.page < last_page
    has_prev = window.page > 1
    return {
        "total": total,
        "per_page": window.limit,
        "current_page": window.page,
        "last_page": last_page,
        # past the last page "from" exceeds "to"; intentional, not a bug
        "from_": window.skip + 1 if total > 0 else None,
        "to": min(window.skip + window.limit, total) if total > 0 else None,
        "path": base_url(raw),
        "first_page_url": build_page_url(raw, 1),
        "last_page_url": build_page_url(raw, last_page),
        "next_page_url": build_page_url(raw, window.page + 1) if has_next else None,
        "prev_page_url": build_page_url(raw, window.page - 1) if has_prev else None,
        "current_page_url": build_page_url(raw, window.page),
    }
