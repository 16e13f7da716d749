"""
Pydantic schemas for movie catalog requests and responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class MovieCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    genre: str = Field(..., min_length=1, max_length=50)
    duration_minutes: int = Field(..., ge=1, le=600)
    rating: Decimal = Field(..., ge=0, le=10, max_digits=3, decimal_places=1)
    release_year: int = Field(..., ge=1900, le=2100)


class MovieUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    genre: Optional[str] = Field(None, min_length=1, max_length=50)
    duration_minutes: Optional[int] = Field(None, ge=1, le=600)
    rating: Optional[Decimal] = Field(None, ge=0, le=10, max_digits=3, decimal_places=1)
    release_year: Optional[int] = Field(None, ge=1900, le=2100)


class MovieResponse(BaseModel):
    id: int
    title: str
    genre: str
    duration_minutes: int
    rating: Decimal
    release_year: int
    created_at: datetime

    model_config = {"from_attributes": True}
