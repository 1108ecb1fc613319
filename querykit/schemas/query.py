from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Dict, FrozenSet, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from querykit.core.config import settings

Dir = Literal["asc", "desc"]


class FieldAllowlist(BaseModel):
    """Closed set of field names a request may touch.

    ``names=None`` is the unrestricted sentinel. A restricted allowlist with
    no names allows nothing; callers passing an empty list to ``QueryConfig``
    get the unrestricted sentinel instead.
    """

    model_config = ConfigDict(frozen=True)

    names: Optional[FrozenSet[str]] = None

    @classmethod
    def unrestricted(cls) -> "FieldAllowlist":
        return cls(names=None)

    @classmethod
    def restricted(cls, names: Iterable[str]) -> "FieldAllowlist":
        return cls(names=frozenset(names))

    @property
    def is_restricted(self) -> bool:
        return self.names is not None

    def allows(self, name: str) -> bool:
        if self.names is None:
            return True
        return name in self.names


class QueryConfig(BaseModel):
    """Per-call listing configuration.

    Every field not given by the caller falls back to the process-wide
    ``settings`` value, so a route only names what it wants to change.
    """

    model_config = ConfigDict(frozen=True)

    default_limit: int = Field(default_factory=lambda: settings.QUERY_DEFAULT_LIMIT, ge=1)
    max_limit: int = Field(default_factory=lambda: settings.QUERY_MAX_LIMIT, ge=1)
    default_sort: str = Field(default_factory=lambda: settings.QUERY_DEFAULT_SORT, min_length=1)
    allowed_sort_fields: FieldAllowlist = Field(default_factory=FieldAllowlist.unrestricted)
    allowed_filter_fields: FieldAllowlist = Field(default_factory=FieldAllowlist.unrestricted)
    search_fields: Tuple[str, ...] = ()
    date_field: str = Field(default_factory=lambda: settings.QUERY_DATE_FIELD, min_length=1)
    populate: Tuple[Any, ...] = ()
    exact_match_fields: FrozenSet[str] = Field(default_factory=lambda: settings.exact_match_fields_set)
    category_param: str = Field(default_factory=lambda: settings.QUERY_CATEGORY_PARAM)
    category_field: str = Field(default_factory=lambda: settings.QUERY_CATEGORY_FIELD)

    @field_validator("allowed_sort_fields", "allowed_filter_fields", mode="before")
    @classmethod
    def _coerce_allowlist(cls, value):
        if value is None:
            return FieldAllowlist.unrestricted()
        if isinstance(value, FieldAllowlist):
            return value
        if isinstance(value, str):
            value = [value]
        names = [str(v) for v in value]
        if not names:
            return FieldAllowlist.unrestricted()
        return FieldAllowlist.restricted(names)

    @field_validator("search_fields", mode="before")
    @classmethod
    def _coerce_search_fields(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(value)

    @field_validator("populate", mode="before")
    @classmethod
    def _coerce_populate(cls, value):
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(value)
        return (value,)


class RawParameters(BaseModel):
    """Inbound query parameters plus the request context used for URLs."""

    model_config = ConfigDict(frozen=True)

    params: Dict[str, Any] = Field(default_factory=dict)
    protocol: str = "http"
    host: str = "localhost"
    base_path: str = ""
    path: str = ""

    def first(self, key: str) -> Any:
        value = self.params.get(key)
        if isinstance(value, (list, tuple)):
            return value[0] if value else None
        return value

    def text(self, key: str) -> str:
        value = self.first(key)
        if value is None:
            return ""
        return str(value).strip()


# Filter values are classified once, right after they leave the raw mapping.


@dataclass(frozen=True)
class ScalarString:
    value: str


@dataclass(frozen=True)
class ScalarNumber:
    value: Union[int, float]


@dataclass(frozen=True)
class ScalarBool:
    value: bool


@dataclass(frozen=True)
class ListOfString:
    values: Tuple[str, ...]


FilterValue = Union[ScalarString, ScalarNumber, ScalarBool, ListOfString]


class ExactMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["exact"] = "exact"
    value: Any


class SubstringMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["substring"] = "substring"
    text: str
    pattern: str  # regex-escaped text


class SetMembership(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["in"] = "in"
    values: Tuple[Any, ...]


class RangeMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["range"] = "range"
    gte: Optional[datetime] = None
    lte: Optional[datetime] = None


Predicate = Annotated[
    Union[ExactMatch, SubstringMatch, SetMembership, RangeMatch],
    Field(discriminator="kind"),
]


class SearchClause(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    match: SubstringMatch


class FilterSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    predicates: Dict[str, Predicate] = Field(default_factory=dict)
    any_of: Tuple[SearchClause, ...] = ()

    @property
    def filters_applied(self) -> int:
        # the OR-group counts as one filter
        return len(self.predicates) + (1 if self.any_of else 0)


class SortSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    direction: Dir = "desc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


class PageWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    skip: int = Field(ge=0)

    @classmethod
    def of(cls, page: int, limit: int) -> "PageWindow":
        return cls(page=page, limit=limit, skip=(page - 1) * limit)

    @model_validator(mode="after")
    def _check_skip(self):
        if self.skip != (self.page - 1) * self.limit:
            raise ValueError("skip must equal (page - 1) * limit")
        return self


class QueryInfo(BaseModel):
    filters_applied: int
    sort_by: str
    sort_direction: Dir


class ResponseEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: List[Any] = Field(default_factory=list)
    total: int = Field(ge=0)
    per_page: int
    current_page: int
    last_page: int
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None
    path: str
    first_page_url: str
    last_page_url: str
    next_page_url: Optional[str] = None
    prev_page_url: Optional[str] = None
    current_page_url: str
    query_info: QueryInfo

    def model_dump(self, **kwargs) -> Dict[str, Any]:
        # "from" is a keyword; the wire name is the alias
        kwargs.setdefault("by_alias", True)
        return super().model_dump(**kwargs)


@dataclass
class ListingResult:
    envelope: ResponseEnvelope
    filter_spec: FilterSpec
    sort: SortSpec
    window: PageWindow
