# app/domain/models/search.py
"""
Search query plan types.

A FilterQuery is compiled into a QueryPlan: a list of tagged predicates, a
sort specification and a pagination window. Predicates know how to render
themselves as MongoDB query fragments (`to_mql`) and how to evaluate against
a plain product document (`matches`), so a plan can be checked without a
database.
"""
from __future__ import annotations
import re
from typing import Any, Dict, List, Literal, Optional, Tuple, Union, Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _get(doc: Dict[str, Any], path: str) -> Any:
    node: Any = doc
    for part in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


class Equals(BaseModel):
    kind: Literal["equals"] = "equals"
    field: str
    value: Any
    case_insensitive: bool = False
    model_config = {"frozen": True}

    def to_mql(self) -> Dict[str, Any]:
        if self.case_insensitive and isinstance(self.value, str):
            return {self.field: {"$regex": f"^{re.escape(self.value)}$", "$options": "i"}}
        return {self.field: self.value}

    def matches(self, doc: Dict[str, Any]) -> bool:
        v = _get(doc, self.field)
        if self.case_insensitive and isinstance(v, str) and isinstance(self.value, str):
            return v.lower() == self.value.lower()
        return v == self.value


class Range(BaseModel):
    kind: Literal["range"] = "range"
    field: str
    gte: Optional[float] = None
    lte: Optional[float] = None
    model_config = {"frozen": True}

    def to_mql(self) -> Dict[str, Any]:
        ops: Dict[str, Any] = {}
        if self.gte is not None: ops["$gte"] = self.gte
        if self.lte is not None: ops["$lte"] = self.lte
        return {self.field: ops}

    def matches(self, doc: Dict[str, Any]) -> bool:
        v = _get(doc, self.field)
        if not isinstance(v, (int, float)):
            return False
        if self.gte is not None and v < self.gte:
            return False
        if self.lte is not None and v > self.lte:
            return False
        return True


class SetMembership(BaseModel):
    """Field (scalar or array) shares at least one value with `values`."""
    kind: Literal["set_membership"] = "set_membership"
    field: str
    values: Tuple[str, ...]
    model_config = {"frozen": True}

    def to_mql(self) -> Dict[str, Any]:
        return {self.field: {"$in": list(self.values)}}

    def matches(self, doc: Dict[str, Any]) -> bool:
        v = _get(doc, self.field)
        if isinstance(v, (list, tuple, set)):
            return any(x in self.values for x in v)
        return v in self.values


class TextMatch(BaseModel):
    """Case-insensitive literal substring over several fields (any may match)."""
    kind: Literal["text_match"] = "text_match"
    fields: Tuple[str, ...]
    term: str
    model_config = {"frozen": True}

    def to_mql(self) -> Dict[str, Any]:
        pattern = re.escape(self.term)
        return {"$or": [{f: {"$regex": pattern, "$options": "i"}} for f in self.fields]}

    def matches(self, doc: Dict[str, Any]) -> bool:
        needle = self.term.lower()
        for f in self.fields:
            v = _get(doc, f)
            values = v if isinstance(v, (list, tuple)) else [v]
            if any(isinstance(x, str) and needle in x.lower() for x in values):
                return True
        return False


Predicate = Annotated[Union[Equals, Range, SetMembership, TextMatch], Field(discriminator="kind")]


class SortSpec(BaseModel):
    """Ordered (field, direction) keys; 1 = ascending, -1 = descending."""
    keys: Tuple[Tuple[str, int], ...]
    model_config = {"frozen": True}

    def as_list(self) -> List[Tuple[str, int]]:
        return list(self.keys)


class PageWindow(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    model_config = {"frozen": True}

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def take(self) -> int:
        return self.limit


class FilterQuery(BaseModel):
    term: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    hair_types: List[str] = []
    skin_types: List[str] = []
    min_rating: Optional[float] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)


class QueryPlan(BaseModel):
    predicates: List[Predicate]
    sort: SortSpec
    window: PageWindow
    model_config = {"frozen": True}

    def to_mql_filter(self) -> Dict[str, Any]:
        parts = [p.to_mql() for p in self.predicates]
        if not parts:
            return {}
        return parts[0] if len(parts) == 1 else {"$and": parts}

    def matches(self, doc: Dict[str, Any]) -> bool:
        return all(p.matches(doc) for p in self.predicates)


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_products: int
    has_next_page: bool
    has_prev_page: bool
    limit: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
