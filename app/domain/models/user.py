from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime

class PriceRange(BaseModel):
    min: Optional[float] = Field(default=None, ge=0)
    max: Optional[float] = Field(default=None, ge=0)

class Preferences(BaseModel):
    hair_type: Optional[str] = None
    skin_type: Optional[str] = None
    beauty_goals: Optional[str] = None
    price_range: Optional[PriceRange] = None

    def merged(self, overrides: Optional["Preferences"]) -> "Preferences":
        """Return a copy where every field set on `overrides` wins."""
        if overrides is None:
            return self
        return Preferences.model_validate({**self.model_dump(), **overrides.model_dump(exclude_none=True)})

class PurchaseRecord(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)
    price: Optional[float] = Field(default=None, ge=0)
    purchased_at: Optional[datetime] = None

    model_config = {"frozen": True}

class UserProfile(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str = "user"
    preferences: Preferences = Field(default_factory=Preferences)
    purchase_history: List[PurchaseRecord] = []
    cart: Dict[str, int] = {}
    created_at: Optional[datetime] = None

    def purchased_ids(self) -> set[str]:
        return {p.product_id for p in self.purchase_history}
