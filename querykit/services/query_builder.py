from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from querykit.core.errors import QueryBuilderError, QueryError
from querykit.schemas.query import ListingResult, QueryConfig, QueryInfo, RawParameters, ResponseEnvelope
from querykit.services.pagination import build_pagination
from querykit.services.query_executor import QueryTarget, execute_query
from querykit.services.query_parser import CategoryResolver, parse_request

_LOG = logging.getLogger("querykit.query")


def build_paginated_response(
    target: QueryTarget,
    raw: RawParameters,
    config: Optional[QueryConfig] = None,
    *,
    category_resolver: Optional[CategoryResolver] = None,
    serialize: Optional[Callable[[Any], Any]] = None,
) -> ListingResult:
    """Run one listing request: parse, compile, count + fetch, paginate.

    ``InvalidQueryParameter`` propagates as raised. Any other failure is
    re-raised as ``QueryBuilderError`` with the original exception chained.
    """
    config = config or QueryConfig()
    try:
        parsed = parse_request(raw, config, category_resolver)
        criteria = target.compiler.compile_filter(parsed.filter_spec)
        order = target.compiler.compile_sort(parsed.sort)
        documents, total = execute_query(target, criteria, order, parsed.window, config.populate)
        if serialize is not None:
            documents = [serialize(doc) for doc in documents]
        envelope = ResponseEnvelope(
            data=documents,
            query_info=QueryInfo(
                filters_applied=parsed.filter_spec.filters_applied,
                sort_by=parsed.sort.field,
                sort_direction=parsed.sort.direction,
            ),
            **build_pagination(parsed.window, total, raw),
        )
    except QueryError:
        raise
    except Exception as exc:
        _LOG.warning("query builder failed path=%s error=%s", raw.path, exc)
        raise QueryBuilderError.wrap(exc) from exc
    return ListingResult(
        envelope=envelope,
        filter_spec=parsed.filter_spec,
        sort=parsed.sort,
        window=parsed.window,
    )
