from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastapi import HTTPException, Request

from querykit.core.errors import InvalidQueryParameter, QueryBuilderError
from querykit.schemas.query import QueryConfig, RawParameters
from querykit.services.query_builder import build_paginated_response
from querykit.services.query_executor import QueryTarget
from querykit.services.query_parser import CategoryResolver


def raw_parameters_from_request(request: Request) -> RawParameters:
    grouped: Dict[str, List[str]] = {}
    for key, value in request.query_params.multi_items():
        grouped.setdefault(key, []).append(value)
    params: Dict[str, Any] = {key: values[0] if len(values) == 1 else values for key, values in grouped.items()}

    base_path = str(request.scope.get("root_path") or "").rstrip("/")
    path = request.url.path
    if base_path and path.startswith(base_path):
        path = path[len(base_path):]
    return RawParameters(
        params=params,
        protocol=request.url.scheme,
        host=request.headers.get("host") or request.url.netloc,
        base_path=base_path,
        path=path,
    )


def paginated_listing(
    request: Request,
    target: QueryTarget,
    config: Optional[QueryConfig] = None,
    *,
    category_resolver: Optional[CategoryResolver] = None,
    serialize: Optional[Callable[[Any], Any]] = None,
) -> Dict[str, Any]:
    raw = raw_parameters_from_request(request)
    try:
        result = build_paginated_response(
            target,
            raw,
            config,
            category_resolver=category_resolver,
            serialize=serialize,
        )
    except InvalidQueryParameter as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except QueryBuilderError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return result.envelope.model_dump()
