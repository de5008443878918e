from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime

class Product(BaseModel):
    product_id: str
    name: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    image_url: Optional[str] = None
    hair_types: List[str] = []
    skin_types: List[str] = []
    ingredients: List[str] = []
    stock: int = Field(default=0, ge=0)
    # Derived from reviews; only the review subsystem writes these
    review_count: int = Field(default=0, ge=0)
    average_rating: float = Field(default=0.0, ge=0, le=5)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"frozen": True}  # immutable snapshot

class RecommendationResult(BaseModel):
    recommended_products: List[Product]
    recommendation_source: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
