# api/v1/schemas/catalog.py
from pydantic import BaseModel, Field
from typing import List, Optional

class ProductIn(BaseModel):
    """Catalog input. review_count / average_rating are not accepted here."""
    product_id: Optional[str] = None
    name: str = Field(min_length=1)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    price: float = Field(ge=0)
    image_url: Optional[str] = None
    hair_types: List[str] = Field(default_factory=list)
    skin_types: List[str] = Field(default_factory=list)
    ingredients: List[str] = Field(default_factory=list)
    stock: int = Field(default=0, ge=0)
    is_active: bool = True

class ProductPatch(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    hair_types: Optional[List[str]] = None
    skin_types: Optional[List[str]] = None
    ingredients: Optional[List[str]] = None
    stock: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
