from __future__ import annotations

BUILDER_ERROR_PREFIX = "Query builder error: "


class QueryError(Exception):
    pass


class InvalidQueryParameter(QueryError, ValueError):
    """Request input that cannot be honoured without widening the result set."""

    def __init__(self, param: str, value, kind: str):
        self.param = param
        self.value = value
        self.kind = kind
        super().__init__(f'Invalid {kind} value for "{param}": {value!r}')


class QueryBuilderError(QueryError, RuntimeError):
    """Resolver or store failure raised while building a listing."""

    @classmethod
    def wrap(cls, exc: BaseException) -> "QueryBuilderError":
        return cls(f"{BUILDER_ERROR_PREFIX}{exc}")
