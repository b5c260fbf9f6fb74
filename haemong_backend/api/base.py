"""Shared pydantic bases: camelCase on the wire, snake_case in Python."""
from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """``{success, data, message}`` envelope used by the community API."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
