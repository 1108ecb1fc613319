from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import FrozenSet

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "querykit"

    QUERY_DEFAULT_LIMIT: int = 100
    QUERY_MAX_LIMIT: int = 100  # hard ceiling for ?limit=
    QUERY_DEFAULT_SORT: str = "createdAt"
    QUERY_DATE_FIELD: str = "createdAt"
    QUERY_EXACT_MATCH_FIELDS: str = "status"

    # ?categories=<name> is resolved to an id and matched on QUERY_CATEGORY_FIELD
    QUERY_CATEGORY_PARAM: str = "categories"
    QUERY_CATEGORY_FIELD: str = "categoriesIds"
    QUERY_CATEGORY_LOCALE: str = "tr"

    @property
    def exact_match_fields_set(self) -> FrozenSet[str]:
        return frozenset(f.strip() for f in self.QUERY_EXACT_MATCH_FIELDS.split(",") if f.strip())

settings = Settings()
