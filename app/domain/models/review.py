from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class Review(BaseModel):
    review_id: str
    product_id: str
    user_id: str
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=500)
    verified_purchase: bool = False
    helpful_count: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None

class ReviewStats(BaseModel):
    product_id: str
    review_count: int = Field(ge=0)
    average_rating: float = Field(ge=0, le=5)
    model_config = {"frozen": True}
