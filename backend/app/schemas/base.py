"""
Base schemas with standardized field types for consistent API responses.
"""
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict

from ..utils.time_utils import ensure_utc

# Naive values coming back from SQLite are UTC; always emit offset-aware timestamps
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class StandardizedModel(BaseModel):
    """Base model for responses built from ORM rows."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


class RequestModel(BaseModel):
    """
    Base model for client payloads.

    Accepts both the camelCase wire names and the snake_case field names,
    and ignores unknown keys.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)
