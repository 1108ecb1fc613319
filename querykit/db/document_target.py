from __future__ import annotations

from typing import Any, Callable, List

from querykit.services.filter_compiler import DocumentFilterCompiler


class CursorFetch:
    def __init__(self, cursor):
        self.cursor = cursor

    def populate(self, relation: Callable[[Any], Any]) -> "CursorFetch":
        return CursorFetch(relation(self.cursor))

    def sort(self, order: list) -> "CursorFetch":
        if not order:
            return self
        return CursorFetch(self.cursor.sort(order))

    def skip(self, count: int) -> "CursorFetch":
        return CursorFetch(self.cursor.skip(count))

    def limit(self, count: int) -> "CursorFetch":
        return CursorFetch(self.cursor.limit(count))

    def all(self) -> List[Any]:
        return list(self.cursor)


class DocumentCollectionTarget:
    """Listing target over a pymongo-compatible collection.

    Only ``count_documents(filter)`` and ``find(filter)`` are required; the
    returned cursor must chain ``sort``, ``skip`` and ``limit``. Relation
    descriptors are callables that take and return the cursor.
    """

    def __init__(self, collection):
        self.collection = collection
        self.compiler = DocumentFilterCompiler()

    def count(self, criteria: dict) -> int:
        return self.collection.count_documents(criteria)

    def find(self, criteria: dict) -> CursorFetch:
        return CursorFetch(self.collection.find(criteria))
