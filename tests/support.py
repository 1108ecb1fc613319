"""In-memory stand-in for a pymongo collection, enough for listing tests."""

import re
import unicodedata


def _fold(text):
    folded = unicodedata.normalize("NFKD", str(text).casefold())
    return "".join(ch for ch in folded if not unicodedata.combining(ch)).replace("ı", "i")


def _matches_condition(doc_value, condition):
    if not isinstance(condition, dict):
        return doc_value == condition
    for op, operand in condition.items():
        if op == "$regex":
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if doc_value is None or not re.search(operand, str(doc_value), flags):
                return False
        elif op == "$options":
            continue
        elif op == "$in":
            if doc_value not in operand:
                return False
        elif op == "$gte":
            if doc_value is None or doc_value < operand:
                return False
        elif op == "$lte":
            if doc_value is None or doc_value > operand:
                return False
        else:
            raise AssertionError(f"unexpected operator {op}")
    return True


def matches(doc, query):
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif not _matches_condition(doc.get(key), condition):
            return False
    return True


class InMemoryCursor:
    def __init__(self, docs):
        self.docs = list(docs)
        self.calls = []

    def sort(self, order):
        self.calls.append("sort")
        for field, direction in reversed(order):
            self.docs.sort(key=lambda d: d.get(field), reverse=direction == -1)
        return self

    def skip(self, count):
        self.calls.append("skip")
        self.docs = self.docs[count:]
        return self

    def limit(self, count):
        self.calls.append("limit")
        self.docs = self.docs[:count]
        return self

    def __iter__(self):
        return iter(self.docs)


class InMemoryCollection:
    def __init__(self, docs=None):
        self.docs = list(docs or [])
        self.queries = []
        self.last_cursor = None
        self.collations = []

    def count_documents(self, query):
        self.queries.append(("count", query))
        return sum(1 for doc in self.docs if matches(doc, query))

    def find(self, query):
        self.queries.append(("find", query))
        self.last_cursor = InMemoryCursor(doc for doc in self.docs if matches(doc, query))
        return self.last_cursor

    def find_one(self, query, collation=None):
        self.collations.append(collation)
        strength = (collation or {}).get("strength")
        for doc in self.docs:
            for key, wanted in query.items():
                value = doc.get(key)
                if strength == 1:
                    if value is None or _fold(value) != _fold(wanted):
                        break
                elif value != wanted:
                    break
            else:
                return doc
        return None
