"""
Shared Pydantic schema building blocks.

API payloads use camelCase field names; Python code uses snake_case.
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    """Base schema exposing camelCase aliases and reading ORM attributes."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Journey(CamelModel):
    """
    Journey snapshot as exposed in API payloads.

    ``class``, ``from`` and ``to`` are Python keywords, hence the explicit aliases.
    """
    train_number: Optional[str] = None
    train_name: Optional[str] = None
    travel_class: Optional[str] = Field(default=None, alias="class")
    from_station: Optional[str] = Field(default=None, alias="from")
    to_station: Optional[str] = Field(default=None, alias="to")
    boarding_date: Optional[str] = None


class RequestStatusOut(CamelModel):
    """Minimal {id, status} answer for create/respond operations."""
    id: int
    status: str
