"""
Count + fetch against a query target.

The count and the page fetch are two separate reads with no shared
snapshot: a concurrent write between them can leave ``total`` off by the
rows it touched. The total is best-effort.
"""

from __future__ import annotations

from typing import Any, List, Protocol, Sequence, Tuple

from querykit.schemas.query import PageWindow


class FetchQuery(Protocol):
    def populate(self, relation: Any) -> "FetchQuery":
        ...

    def sort(self, order: Any) -> "FetchQuery":
        ...

    def skip(self, count: int) -> "FetchQuery":
        ...

    def limit(self, count: int) -> "FetchQuery":
        ...

    def all(self) -> List[Any]:
        ...


class QueryTarget(Protocol):
    compiler: Any

    def count(self, criteria: Any) -> int:
        ...

    def find(self, criteria: Any) -> FetchQuery:
        ...


def execute_query(
    target: QueryTarget,
    criteria: Any,
    order: Any,
    window: PageWindow,
    populate: Sequence[Any] = (),
) -> Tuple[List[Any], int]:
    total = int(target.count(criteria))
    query = target.find(criteria)
    for relation in populate:
        query = query.populate(relation)
    # sort must precede skip/limit or the page boundaries are undefined
    documents = query.sort(order).skip(window.skip).limit(window.limit).all()
    return list(documents), total
