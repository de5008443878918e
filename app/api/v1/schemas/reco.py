# api/v1/schemas/reco.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Union

from app.domain.models.user import Preferences, PriceRange

class PriceRangeIn(BaseModel):
    min: Optional[float] = Field(default=None, ge=0)
    max: Optional[float] = Field(default=None, ge=0)

class PreferencesIn(BaseModel):
    """Preference fields sent by clients (camelCase or snake_case)."""
    hair_type: Optional[str] = None
    skin_type: Optional[str] = None
    beauty_goals: Optional[str] = None
    price_range: Optional[PriceRangeIn] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_domain(self) -> Preferences:
        return Preferences(
            hair_type=self.hair_type,
            skin_type=self.skin_type,
            beauty_goals=self.beauty_goals,
            price_range=PriceRange(**self.price_range.model_dump()) if self.price_range else None,
        )

class CustomProductIn(BaseModel):
    specific_needs: List[str] = []
    budget: Optional[Union[float, str]] = None
    preferences: Optional[PreferencesIn] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
