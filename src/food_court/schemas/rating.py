from pydantic import BaseModel, Field
from typing import List


class ItemRatingIn(BaseModel):
    food_item_id: str
    rating: int


class RatingSubmission(BaseModel):
    ratings: List[ItemRatingIn] = Field(..., min_length=1)


class RatingStatus(BaseModel):
    order_id: str
    has_rated: bool
