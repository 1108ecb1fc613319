"""
FilterSpec/SortSpec -> store-native predicates.

Compilers only translate structure. Allowlisting and value semantics are
settled by the parser before anything reaches this module.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Protocol, Tuple

from sqlalchemy import String, asc, cast, desc, false, inspect, or_

from querykit.schemas.query import (
    ExactMatch,
    FilterSpec,
    RangeMatch,
    SetMembership,
    SortSpec,
    SubstringMatch,
)
from querykit.services.value_coercion import coerce_column_value, column_python_type

_LOG = logging.getLogger("querykit.compiler")


class FilterCompiler(Protocol):
    def compile_filter(self, spec: FilterSpec) -> Any:
        ...

    def compile_sort(self, sort: SortSpec) -> Any:
        ...


class DocumentFilterCompiler:
    """MongoDB query documents, usable with any pymongo-compatible collection."""

    def compile_predicate(self, predicate) -> Any:
        if isinstance(predicate, ExactMatch):
            return predicate.value
        if isinstance(predicate, SubstringMatch):
            return {"$regex": predicate.pattern, "$options": "i"}
        if isinstance(predicate, SetMembership):
            return {"$in": list(predicate.values)}
        if isinstance(predicate, RangeMatch):
            bounds: Dict[str, Any] = {}
            if predicate.gte is not None:
                bounds["$gte"] = predicate.gte
            if predicate.lte is not None:
                bounds["$lte"] = predicate.lte
            return bounds
        raise TypeError(f"unsupported predicate {predicate!r}")

    def compile_filter(self, spec: FilterSpec) -> Dict[str, Any]:
        query: Dict[str, Any] = {
            field: self.compile_predicate(predicate) for field, predicate in spec.predicates.items()
        }
        if spec.any_of:
            query["$or"] = [{clause.field: self.compile_predicate(clause.match)} for clause in spec.any_of]
        return query

    def compile_sort(self, sort: SortSpec) -> List[Tuple[str, int]]:
        return [(sort.field, -1 if sort.descending else 1)]


def _like_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyFilterCompiler:
    """WHERE/ORDER BY clauses for a mapped SQLAlchemy model.

    Field names are looked up among the model's mapped columns only; names
    that do not map to a column are skipped.
    """

    def __init__(self, model):
        self.model = model
        self._column_keys = {attr.key for attr in inspect(model).column_attrs}

    def column(self, field: str):
        if field not in self._column_keys:
            return None
        return getattr(self.model, field)

    def _range_bound(self, column, value: datetime):
        if column_python_type(column) is date:
            return value.date()
        return value

    def compile_predicate(self, column, predicate):
        if isinstance(predicate, ExactMatch):
            return column == coerce_column_value(column, predicate.value)
        if isinstance(predicate, SubstringMatch):
            target = column if column_python_type(column) is str else cast(column, String)
            return target.ilike(f"%{_like_escape(predicate.text)}%", escape="\\")
        if isinstance(predicate, SetMembership):
            return column.in_([coerce_column_value(column, v) for v in predicate.values])
        if isinstance(predicate, RangeMatch):
            bounds = []
            if predicate.gte is not None:
                bounds.append(column >= self._range_bound(column, predicate.gte))
            if predicate.lte is not None:
                bounds.append(column <= self._range_bound(column, predicate.lte))
            return bounds
        raise TypeError(f"unsupported predicate {predicate!r}")

    def compile_filter(self, spec: FilterSpec) -> list:
        criteria = []
        for field, predicate in spec.predicates.items():
            column = self.column(field)
            if column is None:
                _LOG.debug("filter on unknown column skipped model=%s field=%s", self.model.__name__, field)
                continue
            compiled = self.compile_predicate(column, predicate)
            if isinstance(compiled, list):
                criteria.extend(compiled)
            else:
                criteria.append(compiled)
        if spec.any_of:
            alternatives = []
            for clause in spec.any_of:
                column = self.column(clause.field)
                if column is None:
                    _LOG.debug("search on unknown column skipped model=%s field=%s", self.model.__name__, clause.field)
                    continue
                alternatives.append(self.compile_predicate(column, clause.match))
            # a search over no known column matches nothing
            criteria.append(or_(*alternatives) if alternatives else false())
        return criteria

    def compile_sort(self, sort: SortSpec) -> list:
        column = self.column(sort.field)
        if column is not None:
            columns = [column]
        else:
            # skip/limit need a stable order; fall back to the primary key
            _LOG.debug("sort on unknown column uses primary key model=%s field=%s", self.model.__name__, sort.field)
            columns = list(inspect(self.model).primary_key)
        return [desc(c) if sort.descending else asc(c) for c in columns]
