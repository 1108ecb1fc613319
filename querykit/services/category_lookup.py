"""
Category name -> id resolvers injected into the query parser.

Matching is primary-strength: case and diacritics are ignored, so
"Süs Bitkileri", "sus bitkileri" and "SÜS BİTKİLERİ" name the same category.
"""

from __future__ import annotations

import unicodedata
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from querykit.core.config import settings

# letters with no canonical decomposition onto a base letter
_BASE_LETTERS = str.maketrans({"ı": "i", "ø": "o", "đ": "d", "ł": "l", "ß": "ss"})


def primary_key_of(name: str) -> str:
    folded = unicodedata.normalize("NFKD", name.strip().casefold())
    stripped = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return " ".join(stripped.translate(_BASE_LETTERS).split())


class SqlAlchemyCategoryResolver:
    """Resolve a category name against a mapped category table.

    Folding happens in Python over every row, so this suits small lookup
    tables. Large catalogues should resolve through a folded, indexed column.
    """

    def __init__(self, session: Session, model, name_attr: str = "name", id_attr: str = "id"):
        self.session = session
        self.model = model
        self.name_attr = name_attr
        self.id_attr = id_attr

    def resolve(self, name: str) -> Optional[Any]:
        wanted = primary_key_of(name)
        if not wanted:
            return None
        rows = self.session.execute(
            select(getattr(self.model, self.id_attr), getattr(self.model, self.name_attr))
        ).all()
        for row_id, row_name in rows:
            if row_name is not None and primary_key_of(row_name) == wanted:
                return row_id
        return None


class DocumentCategoryResolver:
    def __init__(self, collection, locale: str | None = None, name_field: str = "name"):
        self.collection = collection
        self.locale = locale or settings.QUERY_CATEGORY_LOCALE
        self.name_field = name_field

    def resolve(self, name: str) -> Optional[Any]:
        # strength 1 compares base letters only
        doc = self.collection.find_one(
            {self.name_field: name.strip()},
            collation={"locale": self.locale, "strength": 1},
        )
        if doc is None:
            return None
        return doc.get("_id")
