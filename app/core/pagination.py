"""
Pagination, recherche et tri communs aux listes.
"""

import math
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, TypeVar

from fastapi import Query
from pydantic import BaseModel, Field
from sqlalchemy import or_
from sqlalchemy.orm import Query as SAQuery

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    data: List[T]
    page: int
    per_page: int = Field(serialization_alias="perPage")
    total: int
    total_pages: int = Field(serialization_alias="totalPages")


class ListParams:
    """Paramètres de liste: page, perPage, search, sort, order."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        per_page: int = Query(10, ge=1, le=100, alias="perPage"),
        search: Optional[str] = Query(None),
        sort: Optional[str] = Query(None),
        order: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    ):
        self.page = page
        self.per_page = per_page
        self.search = search.strip() if search else ""
        self.sort = sort
        self.order = order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def build_page(items: Sequence[Any], total: int, params: ListParams) -> Dict[str, Any]:
    return {
        "data": list(items),
        "page": params.page,
        "per_page": params.per_page,
        "total": total,
        "total_pages": math.ceil(total / params.per_page) if total else 0,
    }


def apply_search(query: SAQuery, search: str, columns: Sequence[Any]) -> SAQuery:
    """Filtre ILIKE sur plusieurs colonnes (OR)."""
    if not search:
        return query
    pattern = f"%{search}%"
    return query.filter(or_(*[column.ilike(pattern) for column in columns]))


def apply_sort(
    query: SAQuery,
    params: ListParams,
    sortable: Mapping[str, Any],
    default_sort: str,
    default_order: str = "desc",
) -> SAQuery:
    """Tri sur une colonne autorisée, sinon tri par défaut."""
    sort_key = params.sort if params.sort in sortable else default_sort
    column = sortable[sort_key]
    order = params.order or default_order
    return query.order_by(column.asc() if order == "asc" else column.desc())


def paginate(query: SAQuery, params: ListParams) -> Dict[str, Any]:
    total = query.order_by(None).count()
    items = query.offset(params.offset).limit(params.per_page).all()
    return build_page(items, total, params)


def paginate_list(items: Sequence[Any], params: ListParams) -> Dict[str, Any]:
    """Pagination en mémoire d'une liste déjà triée."""
    return build_page(
        items[params.offset:params.offset + params.per_page], len(items), params
    )
