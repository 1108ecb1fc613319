"""
Request parameters -> PageWindow, SortSpec and FilterSpec.

Rules worth knowing when reading this module:
- bad ``page``/``limit`` values are corrected, never rejected;
- sort and filter fields outside the configured allowlists are dropped
  silently (security control, not user validation);
- a malformed ``date_from``/``date_to`` aborts the call, a dropped date
  bound would widen the result set.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from querykit.schemas.query import (
    ExactMatch,
    FilterSpec,
    FilterValue,
    ListOfString,
    PageWindow,
    QueryConfig,
    RangeMatch,
    RawParameters,
    ScalarBool,
    ScalarNumber,
    ScalarString,
    SearchClause,
    SetMembership,
    SortSpec,
    SubstringMatch,
)
from querykit.services.value_coercion import parse_date_bound

_LOG = logging.getLogger("querykit.query")

_FILTER_KEY_RE = re.compile(r"^filter\[(.+)\]$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_REGEX_SPECIAL_RE = re.compile(r"[.*+?^${}()|\[\]\\]")


class CategoryResolver(Protocol):
    def resolve(self, name: str) -> Optional[Any]:
        ...


@dataclass
class ParsedQuery:
    window: PageWindow
    sort: SortSpec
    filter_spec: FilterSpec


def escape_regex(text: str) -> str:
    return _REGEX_SPECIAL_RE.sub(lambda m: "\\" + m.group(0), text)


def substring_match(text: str) -> SubstringMatch:
    return SubstringMatch(text=text, pattern=escape_regex(text))


def _leading_int(value) -> int:
    """Integer prefix of ``value``, 0 when there is none."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT_RE.match(str(value or ""))
    if not match:
        return 0
    return int(match.group(1))


def parse_page_window(raw: RawParameters, config: QueryConfig) -> PageWindow:
    page = max(1, _leading_int(raw.first("page")) or 1)
    limit = min(max(1, _leading_int(raw.first("limit")) or config.default_limit), config.max_limit)
    return PageWindow.of(page, limit)


def parse_sort(raw: RawParameters, config: QueryConfig) -> SortSpec:
    fallback = SortSpec(field=config.default_sort, direction="desc")
    requested = raw.text("sort")
    if not requested:
        return fallback
    descending = requested.startswith("-")
    field = requested[1:] if descending else requested
    if not field or not config.allowed_sort_fields.allows(field):
        return fallback
    return SortSpec(field=field, direction="desc" if descending else "asc")


def extract_filter_source(raw: RawParameters) -> Dict[str, Any]:
    nested = raw.params.get("filter")
    if isinstance(nested, dict):
        return dict(nested)
    source: Dict[str, Any] = {}
    for key, value in raw.params.items():
        match = _FILTER_KEY_RE.match(str(key))
        if match:
            source[match.group(1)] = value
    return source


def classify_filter_value(value) -> FilterValue:
    if isinstance(value, bool):
        return ScalarBool(value)
    if isinstance(value, (int, float)):
        return ScalarNumber(value)
    if isinstance(value, (list, tuple)):
        return ListOfString(tuple(str(v).strip() for v in value))
    text = str(value)
    if "," in text:
        return ListOfString(tuple(part.strip() for part in text.split(",")))
    return ScalarString(text)


def _predicate_for(field: str, value: FilterValue, config: QueryConfig):
    if isinstance(value, ListOfString):
        return SetMembership(values=value.values)
    if isinstance(value, ScalarString):
        if field in config.exact_match_fields:
            return ExactMatch(value=value.value)
        return substring_match(value.value)
    if isinstance(value, (ScalarNumber, ScalarBool)):
        return ExactMatch(value=value.value)
    raise TypeError(f"unsupported filter value {value!r}")


def parse_filters(source: Dict[str, Any], config: QueryConfig) -> Dict[str, Any]:
    predicates: Dict[str, Any] = {}
    for field, raw_value in source.items():
        if not config.allowed_filter_fields.allows(field):
            _LOG.debug("filter field dropped field=%s", field)
            continue
        if raw_value is None:
            continue
        if isinstance(raw_value, dict):
            # operator objects (filter[price][gte]=...) are not part of the syntax
            _LOG.debug("nested filter value ignored field=%s", field)
            continue
        predicates[field] = _predicate_for(field, classify_filter_value(raw_value), config)
    return predicates


def build_search_clauses(raw: RawParameters, config: QueryConfig) -> List[SearchClause]:
    term = raw.first("search")
    if term is None or str(term) == "" or not config.search_fields:
        return []
    match = substring_match(str(term))
    return [SearchClause(field=field, match=match) for field in config.search_fields]


def parse_date_range(raw: RawParameters) -> Optional[RangeMatch]:
    date_from = raw.text("date_from")
    date_to = raw.text("date_to")
    if not date_from and not date_to:
        return None
    return RangeMatch(
        gte=parse_date_bound("date_from", date_from) if date_from else None,
        lte=parse_date_bound("date_to", date_to, end_of_day=True) if date_to else None,
    )


def resolve_category_filter(
    raw: RawParameters,
    config: QueryConfig,
    resolver: Optional[CategoryResolver],
) -> Dict[str, ExactMatch]:
    if resolver is None or not config.category_param:
        return {}
    name = raw.text(config.category_param)
    if not name:
        return {}
    category_id = resolver.resolve(name)
    if category_id is None:
        return {}
    _LOG.info("category resolved name=%s id=%s", name, category_id)
    return {config.category_field: ExactMatch(value=category_id)}


def parse_request(
    raw: RawParameters,
    config: QueryConfig,
    category_resolver: Optional[CategoryResolver] = None,
) -> ParsedQuery:
    window = parse_page_window(raw, config)
    sort = parse_sort(raw, config)

    predicates: Dict[str, Any] = {}
    predicates.update(resolve_category_filter(raw, config, category_resolver))
    predicates.update(parse_filters(extract_filter_source(raw), config))
    search = build_search_clauses(raw, config)
    date_range = parse_date_range(raw)
    if date_range is not None:
        predicates[config.date_field] = date_range

    return ParsedQuery(
        window=window,
        sort=sort,
        filter_spec=FilterSpec(predicates=predicates, any_of=tuple(search)),
    )
