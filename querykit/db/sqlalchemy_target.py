from __future__ import annotations

from typing import Any, List

from sqlalchemy.orm import Query, Session

from querykit.services.filter_compiler import SqlAlchemyFilterCompiler


class SqlAlchemyFetch:
    def __init__(self, query: Query):
        self.query = query

    def populate(self, relation: Any) -> "SqlAlchemyFetch":
        # relation descriptors are loader options, e.g. selectinload(Plant.category)
        return SqlAlchemyFetch(self.query.options(relation))

    def sort(self, order: list) -> "SqlAlchemyFetch":
        if not order:
            return self
        return SqlAlchemyFetch(self.query.order_by(*order))

    def skip(self, count: int) -> "SqlAlchemyFetch":
        return SqlAlchemyFetch(self.query.offset(count))

    def limit(self, count: int) -> "SqlAlchemyFetch":
        return SqlAlchemyFetch(self.query.limit(count))

    def all(self) -> List[Any]:
        return self.query.all()


class SqlAlchemyTarget:
    """Listing target over one mapped model.

    ``base_query`` lets a route pre-scope the rows (ownership, soft delete)
    before request filters are added.
    """

    def __init__(self, session: Session, model, base_query: Query | None = None):
        self.session = session
        self.model = model
        self.base_query = base_query
        self.compiler = SqlAlchemyFilterCompiler(model)

    def _query(self) -> Query:
        if self.base_query is not None:
            return self.base_query
        return self.session.query(self.model)

    def count(self, criteria: list) -> int:
        return self._query().filter(*criteria).count()

    def find(self, criteria: list) -> SqlAlchemyFetch:
        return SqlAlchemyFetch(self._query().filter(*criteria))
