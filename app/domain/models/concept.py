from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Union

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_list(v):
    """Models sometimes answer a single string where a list is expected."""
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    return v


class SuggestedProduct(BaseModel):
    """A product idea the catalog does not carry yet."""
    name: str = Field(min_length=1)
    category: Optional[str] = None
    description: Optional[str] = None
    key_ingredients: List[str] = []
    benefits: List[str] = []
    hair_type: List[str] = []
    price_range: Optional[str] = None
    brand: Optional[str] = None
    why: Optional[str] = None

    model_config = _CAMEL

    @field_validator("key_ingredients", "benefits", "hair_type", mode="before")
    @classmethod
    def listify(cls, v):
        return _as_list(v)


class SuggestedProducts(BaseModel):
    products: List[SuggestedProduct] = Field(min_length=1)


class MarketRecommendation(BaseModel):
    category: str = Field(min_length=1)
    reason: Optional[str] = None
    priority: Optional[str] = None
    estimated_demand: Optional[str] = None

    model_config = _CAMEL


class MarketAnalysis(BaseModel):
    missing_categories: List[str] = []
    underserved_hair_types: List[str] = []
    price_gaps: Dict[str, Any] = {}
    trending_opportunities: List[str] = []
    recommendations: List[MarketRecommendation]

    model_config = _CAMEL

    @field_validator("missing_categories", "underserved_hair_types", "trending_opportunities", mode="before")
    @classmethod
    def listify(cls, v):
        return _as_list(v)


class CustomProductConcept(BaseModel):
    """A one-off product designed around a single shopper."""
    name: str = Field(min_length=1)
    tagline: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    # Either plain names or {"name": ..., "why": ...} objects
    key_ingredients: List[Union[str, Dict[str, Any]]] = []
    benefits: List[str] = []
    usage: Optional[str] = None
    target_price: Optional[Union[float, str]] = None
    packaging: Optional[str] = None
    marketing_angle: Optional[str] = None
    why_perfect: Optional[str] = None

    model_config = _CAMEL

    @field_validator("key_ingredients", "benefits", mode="before")
    @classmethod
    def listify(cls, v):
        return _as_list(v)
