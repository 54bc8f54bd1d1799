"""
Shared pydantic base classes
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises with camelCase keys and accepts either casing on input"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Address(CamelModel):
    street: str
    city: str
    state: str
    pincode: str


class Pagination(CamelModel):
    total: int
    page: int
    pages: int
    limit: int


class MessageResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
