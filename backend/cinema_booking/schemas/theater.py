"""
Pydantic schemas for theater requests and responses.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

MAX_THEATER_CAPACITY = 1000


class TheaterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(..., gt=0, le=MAX_THEATER_CAPACITY)


class TheaterUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    capacity: Optional[int] = Field(None, gt=0, le=MAX_THEATER_CAPACITY)


class TheaterResponse(BaseModel):
    id: int
    name: str
    capacity: int
    created_at: datetime

    model_config = {"from_attributes": True}
