from datetime import date, datetime
from typing import Optional

from pydantic import model_validator
from sqlmodel import SQLModel, Field


class SpecialDishBase(SQLModel):
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)
    id_category: Optional[int] = None
    ingredients: Optional[str] = Field(default=None, max_length=255)
    estimated_time: int = Field(default=20, ge=0)
    price: float = Field(gt=0)
    available: bool = True
    vegetarian: bool = False
    spicy: bool = False
    starts_on: Optional[date] = None
    ends_on: Optional[date] = None


class SpecialDishCreate(SpecialDishBase):

    @model_validator(mode="after")
    def check_window(self):
        if self.starts_on and self.ends_on and self.ends_on < self.starts_on:
            raise ValueError("ends_on no puede ser anterior a starts_on")
        return self


class SpecialDishUpdate(SQLModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)
    id_category: Optional[int] = None
    ingredients: Optional[str] = Field(default=None, max_length=255)
    estimated_time: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, gt=0)
    vegetarian: Optional[bool] = None
    spicy: Optional[bool] = None
    starts_on: Optional[date] = None
    ends_on: Optional[date] = None


class SpecialDishAvailability(SQLModel):
    available: bool


class SpecialDishRead(SpecialDishBase):
    id: int
    is_current: bool = False
    created_at: datetime
    updated_at: datetime
