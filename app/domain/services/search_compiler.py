# app/domain/services/search_compiler.py
"""
Compile catalog browse requests into query plans.

Query-string values arrive untyped. `build_filter_query` coerces them
(robustness over strictness: bad paging values fall back to defaults, bad
numbers are ignored) and `compile_filter_query` turns the typed FilterQuery
into predicates + sort + window.
"""
from __future__ import annotations
import math
from typing import Any, Iterable, List, Optional

from app.domain.models.search import (
    Equals, FilterQuery, PageWindow, Pagination, QueryPlan, Range,
    SetMembership, SortSpec, TextMatch,
)
from app.domain.services.constants import (
    MAX_SKIP, SORT_FIELDS, SORT_NEWEST, SORT_OLDEST, SORT_POPULAR, SORT_TIEBREAK, TEXT_SEARCH_FIELDS,
)

# ---------- Coercion helpers -------------------------------------------------

def _coerce_positive_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default

def _coerce_float(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None

def _coerce_list(raw: Any) -> List[str]:
    """Accept a single value, a CSV string or repeated query params."""
    if raw is None:
        return []
    items: Iterable[Any] = raw if isinstance(raw, (list, tuple, set)) else [raw]
    out: List[str] = []
    for item in items:
        for part in str(item).split(","):
            part = part.strip()
            if part and part not in out:
                out.append(part)
    return out

def _clean_str(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    s = str(raw).strip()
    return s or None

# ---------- Public API -------------------------------------------------------

def build_filter_query(
    *,
    q: Any = None,
    category: Any = None,
    subcategory: Any = None,
    min_price: Any = None,
    max_price: Any = None,
    hair_type: Any = None,
    skin_type: Any = None,
    min_rating: Any = None,
    sort_by: Any = None,
    sort_order: Any = None,
    page: Any = None,
    limit: Any = None,
    default_limit: int = 10,
    max_limit: int = 100,
) -> FilterQuery:
    """Coerce raw request values into a FilterQuery."""
    eff_limit = min(_coerce_positive_int(limit, default_limit), max_limit)
    # skip = (page - 1) * limit must fit a signed 64-bit BSON int
    eff_page = min(_coerce_positive_int(page, 1), MAX_SKIP // eff_limit + 1)
    return FilterQuery(
        term=_clean_str(q),
        category=_clean_str(category),
        subcategory=_clean_str(subcategory),
        min_price=_coerce_float(min_price),
        max_price=_coerce_float(max_price),
        hair_types=_coerce_list(hair_type),
        skin_types=_coerce_list(skin_type),
        min_rating=_coerce_float(min_rating),
        sort_by=_clean_str(sort_by),
        sort_order=_clean_str(sort_order),
        page=eff_page,
        limit=eff_limit,
    )

def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> SortSpec:
    """
    price / rating / name honour sort_order ("desc" or ascending otherwise).
    newest / oldest / popular are fixed. Anything else sorts newest first.
    product_id is always the last key so pages never overlap.
    """
    key = (sort_by or "").strip().lower()
    direction = -1 if (sort_order or "").strip().lower() == "desc" else 1

    if key in SORT_FIELDS:
        primary = (SORT_FIELDS[key], direction)
    elif key == "oldest":
        primary = SORT_OLDEST
    elif key == "popular":
        primary = SORT_POPULAR
    else:
        primary = SORT_NEWEST
    return SortSpec(keys=(primary, SORT_TIEBREAK))

def compile_filter_query(fq: FilterQuery) -> QueryPlan:
    predicates: list = [Equals(field="is_active", value=True)]

    if fq.term:
        predicates.append(TextMatch(fields=TEXT_SEARCH_FIELDS, term=fq.term))
    if fq.category:
        predicates.append(Equals(field="category", value=fq.category, case_insensitive=True))
    if fq.subcategory:
        predicates.append(Equals(field="subcategory", value=fq.subcategory, case_insensitive=True))
    if fq.min_price is not None or fq.max_price is not None:
        predicates.append(Range(field="price", gte=fq.min_price, lte=fq.max_price))
    if fq.hair_types:
        predicates.append(SetMembership(field="hair_types", values=tuple(fq.hair_types)))
    if fq.skin_types:
        predicates.append(SetMembership(field="skin_types", values=tuple(fq.skin_types)))
    if fq.min_rating is not None:
        predicates.append(Range(field="average_rating", gte=fq.min_rating))

    window = PageWindow(page=fq.page, limit=fq.limit)
    assert window.skip >= 0 and window.take >= 1, "invalid pagination window"
    return QueryPlan(predicates=predicates, sort=resolve_sort(fq.sort_by, fq.sort_order), window=window)

def paginate(page: int, limit: int, total: int) -> Pagination:
    total_pages = math.ceil(total / limit) if total > 0 else 0
    return Pagination(
        current_page=page,
        total_pages=total_pages,
        total_products=total,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
        limit=limit,
    )
